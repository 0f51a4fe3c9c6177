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

"""Local file layout for exported records.

One directory per record type, one JSON file per record, named
``<id>_<sanitized display name>.json``. Files are written with 2-space
indentation, sorted keys and a trailing newline, so exporting unchanged
records twice produces byte-identical files.
"""

from __future__ import annotations

from collections.abc import Iterator
import json
from pathlib import Path
import re

from intunesync.exceptions import ConfigError
from intunesync.records.model import ConfigurationRecord

# Characters Windows does not allow in file names, plus control characters.
_INVALID_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def sanitize_name(name: str) -> str:
    """Make a display name safe for use in a file name.

    Example:
        ```python
        sanitize_name('Win10: "Baseline" / Pilot')  # 'Win10_ _Baseline_ _ Pilot'
        ```
    """
    cleaned = _INVALID_FILENAME_CHARS.sub("_", name).strip(" .")
    return cleaned or "unnamed"


def record_filename(record_id: str, display_name: str) -> str:
    return f"{record_id}_{sanitize_name(display_name)}.json"


def write_record(
    record: ConfigurationRecord, folder: Path, name_field: str = "displayName"
) -> Path:
    """Write one record to ``folder`` and return the file path.

    Raises:
        ConfigError: If the record has no id (only fetched records are
            exported).
        OSError: If the file cannot be written.
    """
    if not record.id:
        raise ConfigError("Cannot export a record without an id")
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / record_filename(record.id, record.display_name(name_field))
    with open(path, "w", encoding="utf-8") as f:
        json.dump(record.to_dict(), f, indent=2, sort_keys=True, ensure_ascii=False)
        f.write("\n")
    return path


def read_record(path: Path) -> ConfigurationRecord:
    """Read one exported record.

    Raises:
        ConfigError: If the file cannot be read, is not valid JSON, or does
            not contain a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as err:
        raise ConfigError(f"Invalid JSON in {path}: {err}") from err
    except OSError as err:
        raise ConfigError(f"Cannot read {path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    assignments = data.get("assignments")
    if assignments is not None and not (
        isinstance(assignments, list) and all(isinstance(a, dict) for a in assignments)
    ):
        raise ConfigError(f"'assignments' must be a list of objects in {path}")
    return ConfigurationRecord.from_dict(data)


def iter_record_files(folder: Path) -> Iterator[Path]:
    """Yield the ``*.json`` files of a record folder, sorted by name."""
    yield from sorted(p for p in folder.glob("*.json") if p.is_file())
