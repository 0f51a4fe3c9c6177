"""
Tests for intunesync.records module.

Tests the record model and file layout including:
- ConfigurationRecord parsing and export shape
- Create payloads (denylist, short-form assignments)
- File naming and sanitizing
- Deterministic writing and error handling on read
"""

from __future__ import annotations

import json

import pytest

from intunesync.exceptions import ConfigError
from intunesync.records.files import (
    iter_record_files,
    read_record,
    record_filename,
    sanitize_name,
    write_record,
)
from intunesync.records.model import GROUP_TARGET_TYPE, Assignment, ConfigurationRecord

pytestmark = pytest.mark.unit


class TestConfigurationRecord:
    """Tests for ConfigurationRecord."""

    def test_from_dict_splits_id_assignments_and_properties(self, sample_profile):
        """Test that id and assignments are separated from other fields."""
        data = dict(sample_profile, assignments=[{"id": "a1", "target": {"groupId": "G1"}}])

        record = ConfigurationRecord.from_dict(data)

        assert record.id == sample_profile["id"]
        assert record.display_name() == "Win10 - Baseline"
        assert "id" not in record.properties
        assert "assignments" not in record.properties
        assert record.properties["passwordMinimumLength"] == 12
        assert len(record.assignments) == 1
        assert record.assignments[0].group_id == "G1"

    def test_odata_context_is_dropped(self, sample_profile):
        """Test that response metadata does not end up in the record."""
        data = dict(sample_profile)
        data["settings@odata.context"] = "https://graph.microsoft.com/beta/$metadata#x"

        record = ConfigurationRecord.from_dict(data)

        assert "@odata.context" not in record.properties
        assert "settings@odata.context" not in record.properties
        assert record.properties["@odata.type"] == sample_profile["@odata.type"]

    def test_round_trip_preserves_unknown_fields(self):
        """Test that fields the tool does not understand survive export."""
        exported = {
            "id": "42",
            "displayName": "Custom",
            "someFutureField": {"nested": [1, 2, {"deep": True}]},
            "assignments": [
                {"id": "x", "target": {"groupId": "G9"}, "intent": "required"}
            ],
        }

        assert ConfigurationRecord.from_dict(exported).to_dict() == exported

    def test_display_name_uses_name_field(self):
        """Test Settings Catalog style records named by 'name'."""
        record = ConfigurationRecord.from_dict({"id": "1", "name": "Edge baseline"})

        assert record.display_name("name") == "Edge baseline"
        assert record.display_name() == ""

    def test_payload_strips_denylist_id_and_assignments(self, sample_profile):
        """Test that the create payload carries no read-only fields."""
        record = ConfigurationRecord.from_dict(
            dict(sample_profile, assignments=[{"groupId": "G1"}])
        )

        payload = record.to_payload(
            ["createdDateTime", "lastModifiedDateTime", "version", "supportsScopeTags"]
        )

        assert "id" not in payload
        assert "assignments" not in payload
        assert "createdDateTime" not in payload
        assert "version" not in payload
        assert "supportsScopeTags" not in payload
        assert payload["displayName"] == "Win10 - Baseline"
        assert payload["@odata.type"] == "#microsoft.graph.windows10GeneralConfiguration"
        assert payload["roleScopeTagIds"] == ["0"]


class TestAssignment:
    """Tests for Assignment payloads."""

    def test_short_form_becomes_group_target(self):
        """Test that {'groupId': ...} expands to a group assignment target."""
        assignment = Assignment.from_dict({"groupId": "G1"})

        assert assignment.to_payload() == {
            "target": {"@odata.type": GROUP_TARGET_TYPE, "groupId": "G1"}
        }
        # Stored shape is unchanged
        assert assignment.to_dict() == {"groupId": "G1"}

    def test_full_form_drops_read_only_fields(self):
        """Test that id/source/sourceId are not sent on create."""
        assignment = Assignment.from_dict(
            {
                "id": "abc_G1",
                "source": "direct",
                "sourceId": "abc",
                "intent": "apply",
                "target": {
                    "@odata.type": "#microsoft.graph.exclusionGroupAssignmentTarget",
                    "groupId": "G1",
                },
            }
        )

        payload = assignment.to_payload()

        assert payload == {
            "intent": "apply",
            "target": {
                "@odata.type": "#microsoft.graph.exclusionGroupAssignmentTarget",
                "groupId": "G1",
            },
        }

    def test_all_devices_target_has_no_group(self):
        """Test targets without a group id."""
        assignment = Assignment.from_dict(
            {"target": {"@odata.type": "#microsoft.graph.allDevicesAssignmentTarget"}}
        )

        assert assignment.group_id is None
        assert assignment.to_payload()["target"]["@odata.type"].endswith(
            "allDevicesAssignmentTarget"
        )


class TestFileLayout:
    """Tests for file naming, writing and reading."""

    def test_record_filename(self):
        """Test the <id>_<name>.json convention."""
        assert record_filename("123", "WiFi-Policy") == "123_WiFi-Policy.json"

    @pytest.mark.parametrize(
        "name,expected",
        [
            ('Win10: "Baseline" / Pilot', "Win10_ _Baseline_ _ Pilot"),
            ("a\\b|c?d*e<f>g", "a_b_c_d_e_f_g"),
            ("  trailing dots.. ", "trailing dots"),
            ("", "unnamed"),
            ("...", "unnamed"),
        ],
    )
    def test_sanitize_name(self, name, expected):
        """Test that characters invalid on Windows are replaced."""
        assert sanitize_name(name) == expected

    def test_write_record_is_deterministic(self, tmp_test_dir, sample_profile):
        """Test that writing the same record twice gives identical bytes."""
        record = ConfigurationRecord.from_dict(
            dict(sample_profile, assignments=[{"groupId": "G1"}])
        )

        first = write_record(record, tmp_test_dir / "a")
        second = write_record(
            ConfigurationRecord.from_dict(json.loads(first.read_text(encoding="utf-8"))),
            tmp_test_dir / "b",
        )

        assert first.name == f"{sample_profile['id']}_Win10 - Baseline.json"
        assert first.read_bytes() == second.read_bytes()
        assert first.read_text(encoding="utf-8").endswith("\n")

    def test_write_record_without_id_raises(self, tmp_test_dir):
        """Test that only fetched records can be exported."""
        with pytest.raises(ConfigError, match="without an id"):
            write_record(ConfigurationRecord(properties={"displayName": "x"}), tmp_test_dir)

    def test_read_record_invalid_json_raises(self, tmp_test_dir):
        """Test that invalid JSON raises ConfigError."""
        path = tmp_test_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            read_record(path)

    def test_read_record_non_object_raises(self, tmp_test_dir):
        """Test that a JSON array is rejected."""
        path = tmp_test_dir / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ConfigError, match="Expected a JSON object"):
            read_record(path)

    def test_read_record_bad_assignments_raises(self, tmp_test_dir):
        """Test that assignments must be a list of objects."""
        path = tmp_test_dir / "bad.json"
        path.write_text('{"displayName": "x", "assignments": "G1"}', encoding="utf-8")

        with pytest.raises(ConfigError, match="assignments"):
            read_record(path)

    def test_iter_record_files_sorted_json_only(self, tmp_test_dir):
        """Test that only .json files are yielded, sorted by name."""
        (tmp_test_dir / "b.json").write_text("{}", encoding="utf-8")
        (tmp_test_dir / "a.json").write_text("{}", encoding="utf-8")
        (tmp_test_dir / "notes.txt").write_text("x", encoding="utf-8")

        names = [p.name for p in iter_record_files(tmp_test_dir)]

        assert names == ["a.json", "b.json"]
