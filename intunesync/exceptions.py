# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Exception hierarchy for intunesync.

Errors fall into two tiers:

- Fatal: AuthenticationError (and ConfigError raised before any record is
  touched). These propagate to the CLI, which exits with status 1.
- Recoverable: GraphError (and ConfigError for a single unreadable file).
  The export/import loops catch these per record or per assignment, log
  them, and continue with the next item.

All exceptions inherit from IntuneSyncError, allowing callers to catch all
intunesync errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from intunesync.core import export_tenant
        from intunesync.exceptions import AuthenticationError, ConfigError

        try:
            result = export_tenant(Path("./export"), config)
        except AuthenticationError as e:
            print(f"Could not sign in: {e}")
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "IntuneSyncError",
    "ConfigError",
    "AuthenticationError",
    "GraphError",
]


class IntuneSyncError(Exception):
    """Base exception for all intunesync errors."""

    pass


class ConfigError(IntuneSyncError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Unknown record type keys
    - Missing input folders
    - Exported record files that are not valid JSON objects
    """

    pass


class AuthenticationError(IntuneSyncError):
    """Raised when an access token cannot be obtained.

    This is the fatal error of a run: without a token no Graph call can
    succeed, so the CLI stops immediately with exit code 1.
    """

    pass


class GraphError(IntuneSyncError):
    """Raised when a Microsoft Graph call fails.

    Attributes:
        status_code: HTTP status code of the failed response, or None when
            the request never got a response (connection error, timeout).

    Example:
        Telling a missing record apart from other failures:
            ```python
            try:
                client.get(f"deviceManagement/deviceConfigurations/{record_id}")
            except GraphError as e:
                if e.status_code == 404:
                    print("Record no longer exists")
            ```
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
