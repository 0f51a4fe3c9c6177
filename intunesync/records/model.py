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

"""Configuration Record and Assignment types.

A Configuration Record is an Intune management object (profile, policy,
script) as Graph returns it. Only three things are interpreted here: the
opaque ``id``, the display name (read through the record type's name
field), and the embedded ``assignments`` list. Every other field is kept in
``properties`` untouched, so re-exporting a record reproduces fields this
tool knows nothing about.

Example:
    From an exported file to a create payload:
        ```python
        record = ConfigurationRecord.from_dict(
            {"id": "123", "displayName": "WiFi-Policy",
             "assignments": [{"groupId": "G1"}]}
        )
        record.to_payload(["id", "version"])   # {"displayName": "WiFi-Policy"}
        record.assignments[0].to_payload()
        # {"target": {"@odata.type": "#microsoft.graph.groupAssignmentTarget",
        #             "groupId": "G1"}}
        ```
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

GROUP_TARGET_TYPE = "#microsoft.graph.groupAssignmentTarget"

# Fields Graph returns on an assignment that it rejects on create.
ASSIGNMENT_STRIP_FIELDS = ("id", "sourceId", "source")


def _is_response_metadata(key: str) -> bool:
    return key.endswith("@odata.context")


def _drop_response_metadata(value: Any) -> Any:
    """Recursively remove ``@odata.context`` keys (response metadata)."""
    if isinstance(value, dict):
        return {
            k: _drop_response_metadata(v)
            for k, v in value.items()
            if not _is_response_metadata(k)
        }
    if isinstance(value, list):
        return [_drop_response_metadata(v) for v in value]
    return value


@dataclass
class Assignment:
    """Link between a Configuration Record and a target group.

    Attributes:
        id: Assignment id as returned by Graph (None for the short form).
        target: Graph assignment target object, or None for the short form
            ``{"groupId": "..."}``.
        properties: Every other field (intent, settings, groupId, ...).
    """

    id: str | None = None
    target: dict[str, Any] | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Assignment:
        data = _drop_response_metadata(dict(data))
        assignment_id = data.pop("id", None)
        target = data.pop("target", None)
        return cls(id=assignment_id, target=target, properties=data)

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape, as exported."""
        out: dict[str, Any] = {}
        if self.id is not None:
            out["id"] = self.id
        if self.target is not None:
            out["target"] = self.target
        out.update(self.properties)
        return out

    @property
    def group_id(self) -> str | None:
        if self.target is not None:
            return self.target.get("groupId")
        return self.properties.get("groupId")

    def to_payload(self) -> dict[str, Any]:
        """Return the body used to re-create this assignment.

        Read-only fields are dropped and the short form is expanded to a
        group assignment target.
        """
        body = {
            k: v for k, v in self.properties.items() if k not in ASSIGNMENT_STRIP_FIELDS
        }
        if self.target is not None:
            body["target"] = dict(self.target)
        elif "groupId" in body:
            body["target"] = {
                "@odata.type": GROUP_TARGET_TYPE,
                "groupId": body.pop("groupId"),
            }
        return body


@dataclass
class ConfigurationRecord:
    """One Intune management object.

    Attributes:
        id: Opaque Graph id (None for records not created yet).
        properties: All API fields other than id and assignments, preserved
            as-is (includes the display name field and @odata.type).
        assignments: Embedded assignment sub-list.
    """

    id: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    assignments: list[Assignment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConfigurationRecord:
        """Parse a Graph response or an exported file."""
        data = _drop_response_metadata(dict(data))
        record_id = data.pop("id", None)
        raw_assignments = data.pop("assignments", None) or []
        return cls(
            id=record_id,
            properties=data,
            assignments=[Assignment.from_dict(a) for a in raw_assignments],
        )

    def display_name(self, name_field: str = "displayName") -> str:
        value = self.properties.get(name_field)
        return value if isinstance(value, str) else ""

    def to_dict(self) -> dict[str, Any]:
        """Return the exported representation (id, properties, assignments)."""
        out: dict[str, Any] = {}
        if self.id is not None:
            out["id"] = self.id
        out.update(self.properties)
        out["assignments"] = [a.to_dict() for a in self.assignments]
        return out

    def to_payload(self, strip_fields: Iterable[str]) -> dict[str, Any]:
        """Return the create body: properties minus the denylist.

        ``id`` and ``assignments`` are never part of the payload regardless
        of the denylist; assignments are re-applied by separate calls.
        """
        denied = set(strip_fields) | {"id", "assignments"}
        return {k: v for k, v in self.properties.items() if k not in denied}
