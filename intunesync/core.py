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

"""Core orchestration for intunesync.

This module ties configuration, authentication and the per-type workflows
together into the two tenant-level operations behind the CLI:

- export_tenant: every selected record type -> one folder each
- import_tenant: every recognized folder of an export -> the tenant

Both run front-to-back in a single thread. Authentication happens before
any record is touched; an AuthenticationError propagates to the caller and
is the only failure that ends a run early. Every per-record or
per-assignment failure is logged and counted in the returned result.

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from intunesync.config import load_effective_config
        from intunesync.core import export_tenant, import_tenant
        from intunesync.logging import get_logger

        config = load_effective_config()
        logger = get_logger(verbose=True, log_file=Path("intunesync.log"))

        exported = export_tenant(Path("./export"), config, logger=logger)
        print(f"{exported.file_count} files written")

        imported = import_tenant(Path("./export"), config, force=False, logger=logger)
        ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from intunesync.auth import CredentialManager
from intunesync.config.loader import load_effective_config
from intunesync.exceptions import ConfigError
from intunesync.graph.client import GraphClient
from intunesync.logging import Logger, SilentLogger
from intunesync.records.types import (
    RecordType,
    available_record_types,
    find_record_type_by_folder,
    get_record_types,
)
from intunesync.results import (
    ExportResult,
    ImportResult,
    TenantExportResult,
    TenantImportResult,
)
from intunesync.sync.export import export_records
from intunesync.sync.importer import import_records


def connect(
    config: dict[str, Any],
    credentials: CredentialManager | None = None,
    logger: Logger | None = None,
) -> GraphClient:
    """Authenticate and return a Graph client.

    The token is requested eagerly so a bad tenant, client id or secret
    fails here rather than on the first record.

    Raises:
        AuthenticationError: If no access token can be obtained.
    """
    if logger is None:
        logger = SilentLogger()
    graph = config.get("graph", {})
    base_url = graph.get("base_url", "https://graph.microsoft.com").rstrip("/")
    if credentials is None:
        credentials = CredentialManager(scope=f"{base_url}/.default")

    credentials.get_token()
    logger.verbose("AUTH", f"Token acquired for tenant {credentials.get_tenant_id()}")

    return GraphClient(
        credentials.get_token,
        base_url=base_url,
        api_version=graph.get("api_version", "beta"),
        timeout=int(graph.get("timeout", 60)),
        logger=logger,
    )


def export_tenant(
    output_dir: Path,
    config: dict[str, Any] | None = None,
    types: list[str] | None = None,
    credentials: CredentialManager | None = None,
    client: GraphClient | None = None,
    logger: Logger | None = None,
) -> TenantExportResult:
    """Export every selected record type to ``output_dir``.

    Args:
        output_dir: Root of the export tree; created if missing.
        config: Effective configuration. Defaults to the built-in defaults.
        types: Record type keys to export. Defaults to all enabled types.
        credentials: Credential manager. Defaults to one reading INTUNE_*.
        client: Pre-built Graph client (skips authentication).
        logger: Logger for progress and errors. Defaults to silent.

    Returns:
        TenantExportResult with one ExportResult per record type.

    Raises:
        ConfigError: On unknown record types or malformed configuration.
        AuthenticationError: If authentication fails.
    """
    if logger is None:
        logger = SilentLogger()
    if config is None:
        config = load_effective_config()

    record_types = get_record_types(config, types)
    total = len(record_types) + 1

    logger.step(1, total, "Authenticating to Microsoft Graph...")
    owns_client = client is None
    if client is None:
        client = connect(config, credentials, logger)

    results: list[ExportResult] = []
    try:
        for n, record_type in enumerate(record_types, start=2):
            logger.step(n, total, f"Exporting {record_type.key}...")
            results.append(export_records(client, record_type, output_dir, logger))
    finally:
        if owns_client:
            client.close()

    return TenantExportResult(output_dir=output_dir, results=results)


def _resolve_folders(
    input_dir: Path,
    config: dict[str, Any],
    record_types: list[RecordType],
    logger: Logger,
) -> list[tuple[RecordType, Path]]:
    """Pair each recognized sub-folder of an export with its record type."""
    all_types = get_record_types(config, available_record_types())
    pairs = []
    for sub in sorted(p for p in input_dir.iterdir() if p.is_dir()):
        record_type = find_record_type_by_folder(sub.name, record_types)
        if record_type is not None:
            pairs.append((record_type, sub))
        elif find_record_type_by_folder(sub.name, all_types) is not None:
            logger.verbose("IMPORT", f"Folder {sub.name} not selected, ignoring")
        else:
            logger.warning(f"Ignoring unrecognized folder: {sub}")
    return pairs


def import_tenant(
    input_dir: Path,
    config: dict[str, Any] | None = None,
    types: list[str] | None = None,
    force: bool = False,
    dry_run: bool = False,
    credentials: CredentialManager | None = None,
    client: GraphClient | None = None,
    logger: Logger | None = None,
) -> TenantImportResult:
    """Import an export tree into the tenant.

    Only sub-folders whose name matches a selected record type's folder are
    processed; other folders are logged and ignored.

    Args:
        input_dir: Root of an export tree.
        config: Effective configuration. Defaults to the built-in defaults.
        types: Record type keys to import. Defaults to all enabled types.
        force: Delete same-named remote records before re-creating them.
        dry_run: Log planned actions without any write call.
        credentials: Credential manager. Defaults to one reading INTUNE_*.
        client: Pre-built Graph client (skips authentication).
        logger: Logger for progress and errors. Defaults to silent.

    Returns:
        TenantImportResult with one ImportResult per processed folder.

    Raises:
        ConfigError: If input_dir is not a directory, or on unknown record
            types or malformed configuration.
        AuthenticationError: If authentication fails.
    """
    if logger is None:
        logger = SilentLogger()
    if config is None:
        config = load_effective_config()
    if not input_dir.is_dir():
        raise ConfigError(f"Input directory not found: {input_dir}")

    record_types = get_record_types(config, types)
    pairs = _resolve_folders(input_dir, config, record_types, logger)
    if not pairs:
        logger.warning(f"No recognized record folders in {input_dir}")
        return TenantImportResult(input_dir=input_dir, results=[], dry_run=dry_run)

    total = len(pairs) + 1
    logger.step(1, total, "Authenticating to Microsoft Graph...")
    owns_client = client is None
    if client is None:
        client = connect(config, credentials, logger)

    if force and not dry_run:
        logger.warning("Force overwrite: same-named records will be deleted and re-created")

    results: list[ImportResult] = []
    try:
        for n, (record_type, folder) in enumerate(pairs, start=2):
            logger.step(n, total, f"Importing {record_type.key} from {folder.name}...")
            results.append(
                import_records(
                    client,
                    record_type,
                    folder,
                    force=force,
                    dry_run=dry_run,
                    logger=logger,
                )
            )
    finally:
        if owns_client:
            client.close()

    return TenantImportResult(input_dir=input_dir, results=results, dry_run=dry_run)
