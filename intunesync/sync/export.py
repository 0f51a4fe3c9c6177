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

"""Export of Configuration Records to JSON files.

For one record type:

1. List the collection (pagination handled by the client).
2. For each record, GET its detail representation (with the type's
   $expand, if any) and list its assignments.
3. Merge both into one ConfigurationRecord and write
   ``<output_dir>/<folder>/<id>_<name>.json``.

A failure on a single record is logged as an error naming the record, and
enumeration continues with the next one. Only a failure to list the
collection ends the export of that type early.

Example:
    ```python
    from intunesync.records.types import get_record_type
    from intunesync.sync.export import export_records

    result = export_records(client, get_record_type("scripts"), Path("./export"))
    print(f"{len(result.files)} written, {len(result.failed)} failed")
    ```
"""

from __future__ import annotations

from pathlib import Path

from intunesync.exceptions import ConfigError, GraphError
from intunesync.graph.client import GraphClient
from intunesync.logging import Logger, SilentLogger
from intunesync.records.files import write_record
from intunesync.records.model import ConfigurationRecord
from intunesync.records.types import RecordType
from intunesync.results import ExportResult


def fetch_record(client: GraphClient, record_type: RecordType, record_id: str) -> ConfigurationRecord:
    """Fetch the full detail of one record together with its assignments.

    Raises:
        GraphError: If the detail or the assignment list cannot be fetched.
    """
    params = {"$expand": record_type.detail_expand} if record_type.detail_expand else None
    detail = client.get(record_type.record_path(record_id), params=params)
    detail["assignments"] = client.list_all(record_type.assignments_path(record_id))
    return ConfigurationRecord.from_dict(detail)


def export_records(
    client: GraphClient,
    record_type: RecordType,
    output_dir: Path,
    logger: Logger | None = None,
) -> ExportResult:
    """Export every record of one type to ``output_dir / record_type.folder``.

    Args:
        client: Authenticated Graph client.
        record_type: Record type to export.
        output_dir: Root folder of the export tree.
        logger: Logger for progress and errors. Defaults to silent.

    Returns:
        ExportResult with the files written and the ids that failed. When
        the collection cannot be listed, ``error`` is set and no file is
        written.
    """
    if logger is None:
        logger = SilentLogger()

    folder = output_dir / record_type.folder
    try:
        summaries = client.list_all(record_type.collection)
    except GraphError as err:
        logger.error(f"Failed to list {record_type.key}: {err}")
        return ExportResult(record_type=record_type.key, error=str(err))

    logger.verbose("EXPORT", f"{record_type.key}: {len(summaries)} record(s) found")

    files: list[Path] = []
    failed: list[str] = []
    for summary in summaries:
        record_id = summary.get("id") or ""
        name = summary.get(record_type.name_field) or "(unnamed)"
        try:
            record = fetch_record(client, record_type, record_id)
            path = write_record(record, folder, record_type.name_field)
        except (GraphError, ConfigError, OSError) as err:
            logger.error(f"Failed to export {record_type.key} '{name}' ({record_id}): {err}")
            failed.append(record_id)
            continue
        logger.verbose(
            "EXPORT",
            f"Exported '{name}' with {len(record.assignments)} assignment(s) -> {path.name}",
        )
        files.append(path)

    logger.info(
        f"{record_type.key}: exported {len(files)} of {len(summaries)} record(s)"
        + (f", {len(failed)} failed" if failed else "")
    )
    return ExportResult(record_type=record_type.key, files=files, failed=failed)
