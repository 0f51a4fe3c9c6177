"""intunesync - Intune configuration export/import

A Python CLI tool and library that exports Microsoft Intune tenant
configuration (device configuration profiles, compliance policies, Settings
Catalog policies, scripts, Autopilot profiles) to JSON files through
Microsoft Graph, and imports such files back into a tenant.

intunesync provides:

- One JSON file per record, assignments included, one folder per type
- Deterministic output (sorted keys) so exports diff cleanly in git
- Import that skips same-named records, or replaces them with --force
- Per-record and per-assignment error isolation
- Console plus append-only file logging
- Offline validation of export folders

Quick Start:
Export everything:

    $ intunesync export --output-dir ./export

Import into another tenant:

    $ intunesync import ./export

For full CLI documentation:

    $ intunesync --help

Package Structure:

cli : module
    Command-line interface with argparse.
core : module
    Tenant-level export/import orchestration.
config : package
    YAML configuration loading and merging.
auth : package
    Client-credentials token acquisition.
graph : package
    Microsoft Graph REST client.
records : package
    Configuration Record model, per-type table, file layout.
sync : package
    Per-type export and import workflows.
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Export and import Microsoft Intune configuration via Microsoft Graph"

# Re-export commonly used functions for convenience
from intunesync.config import load_effective_config
from intunesync.core import export_tenant, import_tenant
from intunesync.exceptions import (
    AuthenticationError,
    ConfigError,
    GraphError,
    IntuneSyncError,
)
from intunesync.results import (
    ExportResult,
    ImportResult,
    TenantExportResult,
    TenantImportResult,
    ValidationResult,
)
from intunesync.validation import validate_export

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "export_tenant",
    "import_tenant",
    "validate_export",
    "load_effective_config",
    "ExportResult",
    "ImportResult",
    "TenantExportResult",
    "TenantImportResult",
    "ValidationResult",
    "IntuneSyncError",
    "ConfigError",
    "AuthenticationError",
    "GraphError",
]
