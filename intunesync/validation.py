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

"""Export tree validation module.

This module checks an export folder before it is imported, without making
network calls. It is useful after hand-editing exported files and as a CI
pre-check for configuration kept in version control.

Validation Checks:

- The input folder exists
- Each recognized record folder contains readable JSON objects
- Each record carries its type's name field
- ``assignments``, when present, is a list of objects
- File names follow ``<id>_<sanitized name>.json`` (warning only)
- Unrecognized sub-folders and empty record folders (warning only)

Example:
    ```python
    from pathlib import Path
    from intunesync.validation import validate_export

    result = validate_export(Path("./export"))
    if result.status == "valid":
        print(f"{result.record_count} record(s) ready to import")
    else:
        for error in result.errors:
            print(f"Error: {error}")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from intunesync.exceptions import ConfigError
from intunesync.records.files import iter_record_files, read_record, record_filename
from intunesync.records.types import find_record_type_by_folder, get_record_types
from intunesync.results import ValidationResult

__all__ = ["validate_export"]


def validate_export(
    input_dir: Path,
    config: dict[str, Any] | None = None,
    types: list[str] | None = None,
) -> ValidationResult:
    """Validate an export tree without contacting Graph.

    Args:
        input_dir: Root of the export tree.
        config: Effective configuration (folder overrides are honoured).
        types: Record type keys to check. Defaults to all enabled types.

    Returns:
        ValidationResult; status is "invalid" when any error was found.

    Raises:
        ConfigError: On unknown record types or malformed configuration.
    """
    errors: list[str] = []
    warnings: list[str] = []
    record_count = 0

    if not input_dir.is_dir():
        errors.append(f"Input directory not found: {input_dir}")
        return ValidationResult(
            status="invalid",
            errors=errors,
            warnings=warnings,
            record_count=0,
            input_dir=str(input_dir),
        )

    record_types = get_record_types(config, types)

    for sub in sorted(p for p in input_dir.iterdir() if p.is_dir()):
        record_type = find_record_type_by_folder(sub.name, record_types)
        if record_type is None:
            warnings.append(f"Unrecognized folder ignored: {sub.name}")
            continue

        files = list(iter_record_files(sub))
        if not files:
            warnings.append(f"{sub.name}: no record files")
            continue

        for path in files:
            record_count += 1
            try:
                record = read_record(path)
            except ConfigError as err:
                errors.append(f"{sub.name}/{path.name}: {err}")
                continue

            name = record.display_name(record_type.name_field)
            if not name:
                errors.append(
                    f"{sub.name}/{path.name}: missing '{record_type.name_field}'"
                )
                continue
            if record.id and path.name != record_filename(record.id, name):
                warnings.append(
                    f"{sub.name}/{path.name}: expected file name "
                    f"{record_filename(record.id, name)}"
                )

    return ValidationResult(
        status="invalid" if errors else "valid",
        errors=errors,
        warnings=warnings,
        record_count=record_count,
        input_dir=str(input_dir),
    )
