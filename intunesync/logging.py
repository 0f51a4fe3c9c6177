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

"""Logging interface for intunesync.

This module provides the logger that workflow functions write progress and
errors to. A logger is an explicit instance: the CLI builds one per command
and passes it down, and library functions fall back to a silent logger when
none is given. There is no process-wide log file path.

The logger supports these output levels:

- Step: Always printed (for progress indicators)
- Info: Always printed
- Warning / Error: Always printed, prefixed with [WARNING] / [ERROR]
- Verbose: Only printed when verbose mode is enabled
- Debug: Only printed when debug mode is enabled (implies verbose)

When a log file is configured, every line that reaches the console is also
appended to the file as ``timestamp - LEVEL - message``.

Example:
    Console plus log file:
        ```python
        from pathlib import Path
        from intunesync.logging import get_logger

        logger = get_logger(verbose=True, log_file=Path("intunesync.log"))
        logger.step(1, 3, "Authenticating...")
        logger.warning("Skipping 'WiFi-Policy': already exists")
        ```

    Use with dependency injection:

        def my_function(logger=None):
            if logger is None:
                logger = SilentLogger()
            logger.verbose("MODULE", "Processing...")
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Protocol

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class Logger(Protocol):
    """Protocol for logger implementations."""

    def step(self, step: int, total: int, message: str) -> None:
        """Print a step indicator.

        Args:
            step: Current step number (1-based).
            total: Total number of steps.
            message: Step description.
        """
        ...

    def info(self, message: str) -> None:
        """Print an informational message."""
        ...

    def warning(self, message: str) -> None:
        """Print a warning (recoverable condition, nothing was changed)."""
        ...

    def error(self, message: str) -> None:
        """Print an error (an operation failed, the run continues)."""
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message.

        Args:
            prefix: Message prefix (e.g., "GRAPH", "EXPORT").
            message: Log message.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message.

        Args:
            prefix: Message prefix (e.g., "HTTP", "PAYLOAD").
            message: Log message.
        """
        ...


class DefaultLogger:
    """Logger that prints to stdout and optionally appends to a log file.

    Attributes:
        log_file: Path of the append-only log file, or None for console only.
    """

    def __init__(
        self,
        verbose: bool = False,
        debug: bool = False,
        log_file: Path | None = None,
    ) -> None:
        """Initialize logger with verbosity settings.

        Args:
            verbose: If True, print verbose messages.
            debug: If True, print debug messages (implies verbose).
            log_file: If set, append every emitted line to this file.
                Parent directories are created on first write.
        """
        self._verbose = verbose or debug
        self._debug = debug
        self.log_file = log_file

    def _write(self, level: str, message: str) -> None:
        if self.log_file is None:
            return
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(f"{timestamp} - {level} - {message}\n")

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")
        self._write("INFO", f"[{step}/{total}] {message}")

    def info(self, message: str) -> None:
        print(message)
        self._write("INFO", message)

    def warning(self, message: str) -> None:
        print(f"[WARNING] {message}")
        self._write("WARNING", message)

    def error(self, message: str) -> None:
        print(f"[ERROR] {message}")
        self._write("ERROR", message)

    def verbose(self, prefix: str, message: str) -> None:
        """Print a verbose log message (only when verbose mode is active)."""
        if self._verbose:
            print(f"[{prefix}] {message}")
            self._write("INFO", f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        """Print a debug log message (only when debug mode is active)."""
        if self._debug:
            print(f"[{prefix}] {message}")
            self._write("DEBUG", f"[{prefix}] {message}")


class SilentLogger:
    """Logger that suppresses all output.

    Used as the default for library calls that were not handed a logger.
    """

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass


def get_logger(
    verbose: bool = False, debug: bool = False, log_file: Path | None = None
) -> Logger:
    """Get a logger instance with specified verbosity.

    Args:
        verbose: If True, logger will print verbose messages.
        debug: If True, logger will print debug messages (implies verbose).
        log_file: Optional append-only log file.

    Returns:
        A logger instance configured with the specified verbosity.
    """
    return DefaultLogger(verbose=verbose, debug=debug, log_file=log_file)
