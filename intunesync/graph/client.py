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

"""Microsoft Graph REST client for intunesync.

This module wraps the Graph collection-resource model that the export and
import workflows rely on:

- list endpoint -> paginated records (``value`` + ``@odata.nextLink``)
- detail endpoint -> one record
- assignments sub-endpoint -> list
- POST to create, DELETE to remove

Key Features:

- **Transparent pagination** - list_all() follows @odata.nextLink until the
  last page and returns one flat list.
- **Retry on transient failures** - GET and DELETE are retried on 429, 500,
  502, 503, 504 with exponential backoff via urllib3.util.Retry. POST is
  never retried, so a create is never sent twice.
- **Token refresh** - the bearer token is requested from the token provider
  on every call; the credential manager returns a cached token until it is
  about to expire.
- **Typed failures** - non-2xx responses raise GraphError carrying the status
  code and the Graph error message. A 2xx body that is not a JSON object
  (a proxy error page, for instance) is a GraphError too.

Example:
    Listing device configuration profiles:
        ```python
        from intunesync.auth import CredentialManager
        from intunesync.graph import GraphClient

        credentials = CredentialManager()
        client = GraphClient(credentials.get_token)
        profiles = client.list_all("deviceManagement/deviceConfigurations")
        print(len(profiles))
        ```
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from intunesync import __version__
from intunesync.exceptions import GraphError
from intunesync.logging import Logger, SilentLogger

DEFAULT_BASE_URL = "https://graph.microsoft.com"
DEFAULT_API_VERSION = "beta"


def make_session() -> requests.Session:
    """
    Create a requests.Session with sane retry/backoff defaults.

    - Retries on common transient status codes (Graph throttling is 429).
    - Applies exponential backoff and honours Retry-After.
    - Only idempotent methods are retried; POST creates a record and a
      blind retry could create it twice.
    """
    s = requests.Session()
    retries = Retry(
        total=5,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "DELETE"),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    s.headers.update(
        {
            "User-Agent": f"intunesync/{__version__}",
            "Accept": "application/json",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def _error_message(resp: requests.Response) -> str:
    """Extract the Graph error message from a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason or "no response body"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get("code", "")
        message = error.get("message", "")
        return f"{code}: {message}" if code else message
    return str(body)


def _json_object(resp: requests.Response, where: str) -> dict[str, Any]:
    """Decode a successful response body that must be a JSON object.

    Args:
        resp: Successful response.
        where: "METHOD url" of the request, used in error messages.

    Raises:
        GraphError: If the body is not JSON, or is JSON but not an object.
    """
    try:
        data = resp.json()
    except ValueError as err:
        raise GraphError(
            f"{where}: invalid JSON body", status_code=resp.status_code
        ) from err
    if not isinstance(data, dict):
        raise GraphError(
            f"{where}: expected a JSON object, got {type(data).__name__}",
            status_code=resp.status_code,
        )
    return data


class GraphClient:
    """Thin Microsoft Graph client over a retrying requests.Session.

    Attributes:
        base_url: Graph host, e.g. "https://graph.microsoft.com".
        api_version: Graph API version segment ("beta" or "v1.0").
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: int = 60,
        logger: Logger | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version.strip("/")
        self.timeout = timeout
        self._logger = logger or SilentLogger()
        self._session = session or make_session()

    def __enter__(self) -> GraphClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def url(self, path: str) -> str:
        """Build an absolute URL; absolute inputs (nextLink) pass through."""
        if path.startswith(("https://", "http://")):
            return path
        return f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = self.url(path)
        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        self._logger.debug("HTTP", f"{method} {url}")
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as err:
            raise GraphError(f"{method} {url} failed: {err}") from err

        self._logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")
        if not resp.ok:
            raise GraphError(
                f"{method} {url} failed ({resp.status_code}): {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    def get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET one resource and return its JSON body."""
        resp = self._request("GET", path, params=params)
        return _json_object(resp, f"GET {self.url(path)}")

    def list_all(
        self, path: str, params: dict[str, str] | None = None
    ) -> list[dict[str, Any]]:
        """GET a collection, following @odata.nextLink to the last page.

        Args:
            path: Collection path or absolute URL.
            params: Query parameters for the first page only; nextLink URLs
                already carry them.

        Returns:
            Every item of every page, in server order.
        """
        items: list[dict[str, Any]] = []
        next_url: str | None = path
        page = 0
        while next_url:
            resp = self._request("GET", next_url, params=params)
            data = _json_object(resp, f"GET {self.url(next_url)}")
            params = None
            page += 1
            value = data.get("value", [])
            if not isinstance(value, list):
                raise GraphError(
                    f"GET {self.url(next_url)}: 'value' is not a list",
                    status_code=resp.status_code,
                )
            items.extend(value)
            next_url = data.get("@odata.nextLink")
        self._logger.debug("HTTP", f"{path}: {len(items)} item(s) in {page} page(s)")
        return items

    def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON body; returns the created resource ({} on 204)."""
        resp = self._request("POST", path, body=body)
        if resp.status_code == 204 or not resp.content:
            return {}
        return _json_object(resp, f"POST {self.url(path)}")

    def delete(self, path: str) -> None:
        self._request("DELETE", path)
