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

"""Import of exported Configuration Records into a tenant.

For one record type folder:

1. List the existing remote records once and index them by exact display
   name.
2. For each ``*.json`` file (sorted by name):

   - name exists remotely, no force: skip with a warning; the remote
     record is not touched.
   - name exists remotely, force: DELETE every same-named remote record,
     then POST the stripped local representation (a new id is assigned by
     Graph).
   - name does not exist: POST the stripped local representation.

3. Re-apply the record's assignments, one call per assignment.

Failure policy:

- A file that cannot be read, a failed DELETE, or a failed POST counts as
  a failed record; the next file is processed.
- A failed assignment is logged and counted; the remaining assignments of
  the same record are still applied. A record created with some failed
  assignments is left as created.
- There is no rollback between DELETE and POST. If the POST fails after a
  force delete, the record is gone from the tenant; this is logged as an
  error naming the deleted ids so it can be restored from the export.

Example:
    ```python
    from intunesync.records.types import get_record_type
    from intunesync.sync.importer import import_records

    result = import_records(
        client,
        get_record_type("device_configurations"),
        Path("./export/DeviceConfigurations"),
        force=True,
    )
    print(result.created, result.replaced, result.skipped, result.failed)
    ```
"""

from __future__ import annotations

from pathlib import Path

from intunesync.exceptions import ConfigError, GraphError
from intunesync.graph.client import GraphClient
from intunesync.logging import Logger, SilentLogger
from intunesync.records.files import iter_record_files, read_record
from intunesync.records.model import Assignment
from intunesync.records.types import RecordType
from intunesync.results import ImportResult


def index_by_name(
    client: GraphClient, record_type: RecordType
) -> dict[str, list[str]]:
    """Map each remote display name to the ids carrying it.

    Raises:
        GraphError: If the collection cannot be listed.
    """
    index: dict[str, list[str]] = {}
    for item in client.list_all(record_type.collection):
        name = item.get(record_type.name_field)
        if isinstance(name, str) and item.get("id"):
            index.setdefault(name, []).append(item["id"])
    return index


def apply_assignments(
    client: GraphClient,
    record_type: RecordType,
    record_id: str,
    assignments: list[Assignment],
    record_name: str,
    logger: Logger,
) -> tuple[int, int]:
    """Re-apply assignments to a record, one call per assignment.

    Returns:
        A tuple (applied, failed).
    """
    applied = 0
    failed = 0
    accepted: list[dict] = []
    for assignment in assignments:
        payload = assignment.to_payload()
        target = assignment.group_id or payload.get("target", {}).get("@odata.type", "?")
        try:
            if record_type.assign_mode == "action":
                client.post(
                    record_type.assign_action_path(record_id),
                    {record_type.assign_key: accepted + [payload]},
                )
            else:
                client.post(record_type.assignments_path(record_id), payload)
        except GraphError as err:
            logger.error(f"Failed to assign '{record_name}' to {target}: {err}")
            failed += 1
            continue
        accepted.append(payload)
        applied += 1
        logger.verbose("ASSIGN", f"Assigned '{record_name}' to {target}")
    return applied, failed


def import_records(
    client: GraphClient,
    record_type: RecordType,
    folder: Path,
    force: bool = False,
    dry_run: bool = False,
    logger: Logger | None = None,
) -> ImportResult:
    """Import every record file of one folder.

    Args:
        client: Authenticated Graph client.
        record_type: Record type the folder holds.
        folder: Folder containing ``<id>_<name>.json`` files.
        force: Delete same-named remote records and re-create them.
        dry_run: Log what would happen without any write call.
        logger: Logger for progress and errors. Defaults to silent.

    Returns:
        ImportResult with per-outcome counts. In dry-run mode ``created`` and
        ``replaced`` count planned operations.
    """
    if logger is None:
        logger = SilentLogger()

    try:
        existing = index_by_name(client, record_type)
    except GraphError as err:
        logger.error(f"Failed to list existing {record_type.key}: {err}")
        return ImportResult(record_type=record_type.key, error=str(err))

    created = replaced = skipped = failed = 0
    assignments_applied = assignments_failed = 0
    seen: set[str] = set()

    for path in iter_record_files(folder):
        try:
            record = read_record(path)
        except ConfigError as err:
            logger.error(f"Skipping {path.name}: {err}")
            failed += 1
            continue

        name = record.display_name(record_type.name_field)
        if not name:
            logger.error(f"Skipping {path.name}: no '{record_type.name_field}' field")
            failed += 1
            continue
        if name in seen:
            logger.warning(f"Skipping {path.name}: '{name}' already imported in this run")
            skipped += 1
            continue
        seen.add(name)

        old_ids = existing.get(name, [])
        if old_ids and not force:
            logger.warning(
                f"Skipping {record_type.key} '{name}': already exists "
                f"({', '.join(old_ids)}); use --force to overwrite"
            )
            skipped += 1
            continue

        if dry_run:
            action = "replace" if old_ids else "create"
            logger.info(
                f"[DRY RUN] Would {action} {record_type.key} '{name}' "
                f"with {len(record.assignments)} assignment(s)"
            )
            if old_ids:
                replaced += 1
            else:
                created += 1
            continue

        deleted: list[str] = []
        try:
            for old_id in old_ids:
                client.delete(record_type.record_path(old_id))
                deleted.append(old_id)
                logger.verbose("IMPORT", f"Deleted existing '{name}' ({old_id})")
        except GraphError as err:
            logger.error(f"Failed to delete existing {record_type.key} '{name}': {err}")
            failed += 1
            continue

        try:
            response = client.post(
                record_type.collection, record.to_payload(record_type.strip_fields)
            )
        except GraphError as err:
            if deleted:
                logger.error(
                    f"Re-creating {record_type.key} '{name}' failed after deleting "
                    f"{', '.join(deleted)}; the record is no longer in the tenant: {err}"
                )
            else:
                logger.error(f"Failed to create {record_type.key} '{name}': {err}")
            failed += 1
            continue

        new_id = response.get("id")
        if not new_id:
            logger.error(f"Created {record_type.key} '{name}' but Graph returned no id")
            failed += 1
            continue

        if deleted:
            replaced += 1
            logger.info(f"Replaced {record_type.key} '{name}' ({', '.join(deleted)} -> {new_id})")
        else:
            created += 1
            logger.info(f"Created {record_type.key} '{name}' ({new_id})")

        applied, assign_failed = apply_assignments(
            client, record_type, new_id, record.assignments, name, logger
        )
        assignments_applied += applied
        assignments_failed += assign_failed

    logger.info(
        f"{record_type.key}: {created} created, {replaced} replaced, "
        f"{skipped} skipped, {failed} failed"
    )
    return ImportResult(
        record_type=record_type.key,
        created=created,
        replaced=replaced,
        skipped=skipped,
        failed=failed,
        assignments_applied=assignments_applied,
        assignments_failed=assignments_failed,
    )
