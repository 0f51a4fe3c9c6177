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

"""Record type table and registry for intunesync.

Each Intune object family that can be exported and imported is described by
a RecordType: where it lives in Graph, which folder it is written to, which
field holds its name, how assignments are re-applied, and which fields must
be removed before the object can be POSTed again.

The denylist is an explicit per-type table. Nothing is discovered at
runtime: a field that is not listed is kept.

Assignment modes:

- collection: one POST per assignment to ``{collection}/{id}/assignments``
  with the assignment body.
- action: POST to ``{collection}/{id}/assign`` with ``{assign_key: [...]}``.
  The action replaces the whole list, so each call carries the assignments
  that already succeeded plus the next one.

Built-in types register themselves at import, the same way discovery
strategies do; ``register_record_type`` lets callers add their own.

Example:
    Looking up and overriding types:
        ```python
        from intunesync.records.types import get_record_type, get_record_types

        rt = get_record_type("settings_catalog")
        print(rt.collection)  # deviceManagement/configurationPolicies

        config = {"record_types": {"scripts": {"enabled": False}}}
        keys = [t.key for t in get_record_types(config)]
        ```
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from intunesync.exceptions import ConfigError

COMMON_STRIP_FIELDS: tuple[str, ...] = (
    "id",
    "createdDateTime",
    "lastModifiedDateTime",
    "version",
    "assignments",
)

ASSIGN_MODES = ("collection", "action")


@dataclass(frozen=True)
class RecordType:
    """Description of one Graph collection of Configuration Records.

    Attributes:
        key: Stable identifier used in config files and --types.
        folder: Sub-folder name in an export tree.
        collection: Graph path of the collection, without API version.
        name_field: Field holding the display name.
        detail_expand: Optional $expand for the detail GET.
        strip_fields: Fields removed before re-creating a record.
        assign_mode: "collection" or "action" (see module docstring).
        assign_key: Body key for the assign action.
    """

    key: str
    folder: str
    collection: str
    name_field: str = "displayName"
    detail_expand: str | None = None
    strip_fields: tuple[str, ...] = COMMON_STRIP_FIELDS
    assign_mode: str = "collection"
    assign_key: str = "assignments"

    def record_path(self, record_id: str) -> str:
        return f"{self.collection}/{record_id}"

    def assignments_path(self, record_id: str) -> str:
        return f"{self.collection}/{record_id}/assignments"

    def assign_action_path(self, record_id: str) -> str:
        return f"{self.collection}/{record_id}/assign"


# -------------------------------
# Registry
# -------------------------------

_RECORD_TYPES: dict[str, RecordType] = {}


def register_record_type(record_type: RecordType) -> None:
    """Register a record type by key.

    Registering the same key twice overwrites the previous entry.

    Raises:
        ConfigError: If assign_mode is not one of ASSIGN_MODES.
    """
    if record_type.assign_mode not in ASSIGN_MODES:
        raise ConfigError(
            f"Invalid assign_mode {record_type.assign_mode!r} for {record_type.key}"
        )
    _RECORD_TYPES[record_type.key] = record_type


def available_record_types() -> list[str]:
    return list(_RECORD_TYPES)


def get_record_type(key: str) -> RecordType:
    """Get a registered record type by key.

    Raises:
        ConfigError: If the key is not registered. The message lists the
            available keys.
    """
    if key not in _RECORD_TYPES:
        available = ", ".join(_RECORD_TYPES) or "(none)"
        raise ConfigError(f"Unknown record type: {key!r}. Available: {available}")
    return _RECORD_TYPES[key]


def get_record_types(
    config: dict[str, Any] | None = None, keys: list[str] | None = None
) -> list[RecordType]:
    """Resolve the record types to process, with config overrides applied.

    Args:
        config: Effective configuration. ``record_types.<key>`` may set
            ``enabled`` (bool), ``folder`` (str) and ``strip_fields`` (list,
            added to the built-in denylist).
        keys: Explicit selection (e.g. from --types). Disabled types are
            still returned when explicitly selected.

    Returns:
        Record types in registry order (or in the order of ``keys``).

    Raises:
        ConfigError: On unknown keys or malformed overrides.
    """
    overrides_by_key = (config or {}).get("record_types") or {}
    for key in overrides_by_key:
        get_record_type(key)

    selected = keys if keys else list(_RECORD_TYPES)
    result = []
    for key in selected:
        record_type = get_record_type(key)
        overrides = overrides_by_key.get(key) or {}
        if not keys and overrides.get("enabled", True) is False:
            continue

        changes: dict[str, Any] = {}
        folder = overrides.get("folder")
        if folder is not None:
            if not isinstance(folder, str) or not folder.strip():
                raise ConfigError(f"record_types.{key}.folder must be a non-empty string")
            changes["folder"] = folder
        extra = overrides.get("strip_fields")
        if extra is not None:
            if not isinstance(extra, list):
                raise ConfigError(f"record_types.{key}.strip_fields must be a list")
            changes["strip_fields"] = record_type.strip_fields + tuple(
                f for f in extra if f not in record_type.strip_fields
            )
        result.append(replace(record_type, **changes) if changes else record_type)
    return result


def find_record_type_by_folder(
    folder_name: str, record_types: list[RecordType]
) -> RecordType | None:
    """Match an export sub-folder to a record type (case-insensitive)."""
    for record_type in record_types:
        if record_type.folder.lower() == folder_name.lower():
            return record_type
    return None


# -------------------------------
# Built-in types
# -------------------------------

register_record_type(
    RecordType(
        key="device_configurations",
        folder="DeviceConfigurations",
        collection="deviceManagement/deviceConfigurations",
        strip_fields=COMMON_STRIP_FIELDS + ("supportsScopeTags",),
    )
)

register_record_type(
    RecordType(
        key="compliance_policies",
        folder="CompliancePolicies",
        collection="deviceManagement/deviceCompliancePolicies",
        detail_expand="scheduledActionsForRule($expand=scheduledActionConfigurations)",
        assign_mode="action",
    )
)

register_record_type(
    RecordType(
        key="settings_catalog",
        folder="SettingsCatalog",
        collection="deviceManagement/configurationPolicies",
        name_field="name",
        detail_expand="settings",
        strip_fields=COMMON_STRIP_FIELDS
        + ("settingCount", "creationSource", "isAssigned", "priorityMetaData"),
        assign_mode="action",
    )
)

register_record_type(
    RecordType(
        key="scripts",
        folder="Scripts",
        collection="deviceManagement/deviceManagementScripts",
        assign_mode="action",
        assign_key="deviceManagementScriptAssignments",
    )
)

register_record_type(
    RecordType(
        key="autopilot_profiles",
        folder="AutopilotProfiles",
        collection="deviceManagement/windowsAutopilotDeploymentProfiles",
        strip_fields=COMMON_STRIP_FIELDS + ("managementServiceAppId",),
    )
)
