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

"""Public API return types for intunesync.

This module defines dataclasses for return values from public API functions:
per-type export/import results, the tenant-wide aggregates built from them,
and offline validation results.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from intunesync.core import import_tenant

        result = import_tenant(Path("./export"), config, force=True)
        for item in result.results:
            print(item.record_type, item.created, item.failed)
        ```

Note:
    Domain types (ConfigurationRecord, Assignment, RecordType) live in the
    records package next to their logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ExportResult:
    """Result from exporting one record type.

    Attributes:
        record_type: Key of the exported record type.
        files: Files written, one per exported record.
        failed: Ids of records that could not be exported.
        error: Set when the collection itself could not be listed.
    """

    record_type: str
    files: list[Path] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """Result from importing one record type folder.

    Attributes:
        record_type: Key of the imported record type.
        created: Records created where no same-named record existed.
        replaced: Records deleted and re-created (force overwrite).
        skipped: Records left untouched because the name already existed.
        failed: Records that could not be read, deleted, or created.
        assignments_applied: Assignment calls that succeeded.
        assignments_failed: Assignment calls that failed.
        error: Set when the existing records could not be listed.
    """

    record_type: str
    created: int = 0
    replaced: int = 0
    skipped: int = 0
    failed: int = 0
    assignments_applied: int = 0
    assignments_failed: int = 0
    error: str | None = None


@dataclass(frozen=True)
class TenantExportResult:
    """Result from exporting every selected record type.

    Attributes:
        output_dir: Root folder of the export.
        results: One ExportResult per record type, in processing order.
    """

    output_dir: Path
    results: list[ExportResult]

    @property
    def file_count(self) -> int:
        return sum(len(r.files) for r in self.results)

    @property
    def failure_count(self) -> int:
        return sum(len(r.failed) + (1 if r.error else 0) for r in self.results)


@dataclass(frozen=True)
class TenantImportResult:
    """Result from importing an export folder.

    Attributes:
        input_dir: Root folder that was imported.
        results: One ImportResult per recognized record type folder.
        dry_run: True when no write calls were made.
    """

    input_dir: Path
    results: list[ImportResult]
    dry_run: bool = False

    @property
    def failure_count(self) -> int:
        return sum(
            r.failed + r.assignments_failed + (1 if r.error else 0)
            for r in self.results
        )


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating an export folder offline.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        record_count: Number of record files that were checked.
        input_dir: String path to the validated folder.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    record_count: int
    input_dir: str
