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

"""Command-line interface for intunesync.

Commands:

    export: Export Intune configuration records to JSON files
    import: Import an export folder into a tenant
    validate: Check an export folder offline
    types: List the supported record types

Example:
    Export everything to ./export:
        ```bash
        $ intunesync export --output-dir ./export
        ```

    Import only compliance policies, overwriting same-named ones:
        ```bash
        $ intunesync import ./export --types compliance_policies --force
        ```

    See what an import would do:
        ```bash
        $ intunesync import ./export --dry-run --verbose
        ```

Credentials are read from INTUNE_TENANT_ID, INTUNE_CLIENT_ID and
INTUNE_CLIENT_SECRET (a .env file in the working directory is honoured).

Exit Codes:

- 0: Success (individual record failures are listed in the summary and log)
- 1: Fatal error (authentication, configuration, missing input folder)
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import Any

from intunesync import __version__
from intunesync.config import load_effective_config
from intunesync.core import export_tenant, import_tenant
from intunesync.exceptions import (
    AuthenticationError,
    ConfigError,
    IntuneSyncError,
)
from intunesync.logging import Logger, get_logger
from intunesync.records.types import get_record_types
from intunesync.validation import validate_export


def _parse_types(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    return [t.strip() for t in raw.split(",") if t.strip()]


def _setup(args: argparse.Namespace) -> tuple[dict[str, Any], Logger]:
    """Load configuration and build the logger for a command.

    Raises:
        ConfigError: If the configuration file is invalid.
    """
    config = load_effective_config(Path(args.config) if args.config else None)
    log_file = args.log_file or config.get("logging", {}).get("file")
    logger = get_logger(
        verbose=getattr(args, "verbose", False),
        debug=getattr(args, "debug", False),
        log_file=Path(log_file) if log_file else None,
    )
    return config, logger


def _report_error(
    err: Exception, args: argparse.Namespace, logger: Logger | None = None
) -> int:
    """Report a fatal error; through the logger, it also reaches the log file."""
    if logger is not None:
        logger.error(str(err))
    else:
        print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        import traceback

        traceback.print_exc()
    return 1


def cmd_export(args: argparse.Namespace) -> int:
    """Handler for 'intunesync export' command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for fatal errors).
    """
    output_dir = Path(args.output_dir).resolve()

    try:
        config, logger = _setup(args)
    except ConfigError as err:
        return _report_error(err, args)

    try:
        logger.info(f"Exporting Intune configuration to: {output_dir}")
        result = export_tenant(
            output_dir,
            config,
            types=_parse_types(args.types),
            logger=logger,
        )
    except (AuthenticationError, ConfigError) as err:
        return _report_error(err, args, logger)
    except IntuneSyncError as err:
        # Catch any other intunesync errors we might have missed
        return _report_error(err, args, logger)

    print("=" * 70)
    print("EXPORT RESULTS")
    print("=" * 70)
    for item in result.results:
        status = f"ERROR: {item.error}" if item.error else f"{len(item.files)} file(s)"
        failed = f", {len(item.failed)} failed" if item.failed else ""
        print(f"{item.record_type:<24} {status}{failed}")
    print("=" * 70)
    print()

    if result.failure_count:
        print(f"[DONE] Export finished with {result.failure_count} failure(s); see log.")
    else:
        print(f"[SUCCESS] Exported {result.file_count} record(s).")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Handler for 'intunesync import' command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for fatal errors).
    """
    input_dir = Path(args.input_dir).resolve()

    if not input_dir.exists():
        print(f"Error: Input directory not found: {input_dir}")
        return 1

    try:
        config, logger = _setup(args)
    except ConfigError as err:
        return _report_error(err, args)

    try:
        logger.info(f"Importing Intune configuration from: {input_dir}")
        result = import_tenant(
            input_dir,
            config,
            types=_parse_types(args.types),
            force=args.force,
            dry_run=args.dry_run,
            logger=logger,
        )
    except (AuthenticationError, ConfigError) as err:
        return _report_error(err, args, logger)
    except IntuneSyncError as err:
        # Catch any other intunesync errors we might have missed
        return _report_error(err, args, logger)

    print("=" * 70)
    print("IMPORT RESULTS" + (" (DRY RUN)" if result.dry_run else ""))
    print("=" * 70)
    print(
        f"{'Type':<24} {'Created':>7} {'Replaced':>8} {'Skipped':>7} "
        f"{'Failed':>6} {'Assign OK':>9} {'Assign X':>8}"
    )
    for item in result.results:
        if item.error:
            print(f"{item.record_type:<24} ERROR: {item.error}")
            continue
        print(
            f"{item.record_type:<24} {item.created:>7} {item.replaced:>8} "
            f"{item.skipped:>7} {item.failed:>6} {item.assignments_applied:>9} "
            f"{item.assignments_failed:>8}"
        )
    print("=" * 70)
    print()

    if result.failure_count:
        print(f"[DONE] Import finished with {result.failure_count} failure(s); see log.")
    else:
        print("[SUCCESS] Import finished.")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'intunesync validate' command.

    Returns:
        Exit code (0 for a valid export, 1 otherwise).
    """
    input_dir = Path(args.input_dir).resolve()

    try:
        config = load_effective_config(Path(args.config) if args.config else None)
        result = validate_export(input_dir, config, types=_parse_types(args.types))
    except ConfigError as err:
        return _report_error(err, args)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Folder:      {result.input_dir}")
    print(f"Status:      {result.status.upper()}")
    print(f"Records:     {result.record_count}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Export folder is valid!")
        return 0
    print()
    print(f"[FAILED] Validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_types(args: argparse.Namespace) -> int:
    """Handler for 'intunesync types' command."""
    try:
        config = load_effective_config(Path(args.config) if args.config else None)
        record_types = get_record_types(config)
    except ConfigError as err:
        return _report_error(err, args)

    print(f"{'Key':<24} {'Folder':<22} Graph collection")
    for record_type in record_types:
        print(f"{record_type.key:<24} {record_type.folder:<22} {record_type.collection}")
    return 0


def _add_common(parser: argparse.ArgumentParser, logging_flags: bool = True) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--types",
        default=None,
        help="Comma-separated record type keys (default: all enabled types)",
    )
    if not logging_flags:
        return
    parser.add_argument(
        "--log-file",
        default=None,
        help="Append log lines to this file (default: logging.file from config)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show per-record progress",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show HTTP requests and configuration (implies --verbose)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intunesync",
        description="Export and import Microsoft Intune configuration via Microsoft Graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"intunesync {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'export' command
    parser_export = subparsers.add_parser(
        "export",
        help="Export configuration records to JSON files",
        description="Write one JSON file per record, assignments included, under one folder per record type.",
    )
    parser_export.add_argument(
        "--output-dir",
        default="./export",
        help="Root folder for exported files (default: ./export)",
    )
    _add_common(parser_export)
    parser_export.set_defaults(func=cmd_export)

    # 'import' command
    parser_import = subparsers.add_parser(
        "import",
        help="Import an export folder into the tenant",
        description="Create records from exported JSON files and re-apply their assignments.",
    )
    parser_import.add_argument(
        "input_dir",
        help="Root folder of a previous export",
    )
    parser_import.add_argument(
        "--force",
        action="store_true",
        help="Delete same-named records in the tenant and re-create them",
    )
    parser_import.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be created or replaced without changing the tenant",
    )
    _add_common(parser_import)
    parser_import.set_defaults(func=cmd_import)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate an export folder (no network calls)",
        description="Check exported files for JSON errors and missing names before importing.",
    )
    parser_validate.add_argument(
        "input_dir",
        help="Root folder of a previous export",
    )
    _add_common(parser_validate, logging_flags=False)
    parser_validate.set_defaults(func=cmd_validate)

    # 'types' command
    parser_types = subparsers.add_parser(
        "types",
        help="List supported record types",
    )
    parser_types.add_argument(
        "--config",
        default=None,
        help="YAML configuration file (default: built-in defaults)",
    )
    parser_types.set_defaults(func=cmd_types)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the intunesync CLI.

    This function is registered as the 'intunesync' console script in
    pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Call the appropriate command handler
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
