"""
Tests for intunesync.config.loader module.

Tests configuration loading and merging including:
- Built-in defaults
- YAML file loading and deep merge
- Path resolution
- Error handling
"""

from __future__ import annotations

from pathlib import Path

import pytest

from intunesync.config.loader import DEFAULT_CONFIG, load_effective_config
from intunesync.exceptions import ConfigError
from intunesync.records.types import find_record_type_by_folder, get_record_types

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "intunesync.example.yaml"


class TestConfigLoading:
    """Tests for basic configuration loading."""

    def test_defaults_without_file(self):
        """Test that no file yields a copy of the defaults."""
        config = load_effective_config()

        assert config == DEFAULT_CONFIG
        config["graph"]["timeout"] = 1
        assert DEFAULT_CONFIG["graph"]["timeout"] == 60

    def test_file_overrides_defaults(self, create_yaml_file):
        """Test that file values win and untouched defaults remain."""
        path = create_yaml_file(
            "intunesync.yaml",
            "graph:\n  timeout: 120\nrecord_types:\n  scripts:\n    enabled: false\n",
        )

        config = load_effective_config(path)

        assert config["graph"]["timeout"] == 120
        assert config["graph"]["api_version"] == "beta"
        assert config["record_types"]["scripts"]["enabled"] is False

    def test_missing_file_raises(self, tmp_test_dir):
        """Test that a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="file not found"):
            load_effective_config(tmp_test_dir / "nonexistent.yaml")

    def test_empty_file_raises(self, create_yaml_file):
        """Test that an empty file raises ConfigError."""
        path = create_yaml_file("empty.yaml", "")
        with pytest.raises(ConfigError, match="empty"):
            load_effective_config(path)

    def test_invalid_yaml_raises(self, create_yaml_file):
        """Test that a parse error raises ConfigError."""
        path = create_yaml_file("bad.yaml", "graph: [unclosed\n")
        with pytest.raises(ConfigError, match="Error parsing YAML"):
            load_effective_config(path)

    def test_non_mapping_top_level_raises(self, create_yaml_file):
        """Test that a YAML list at the top level is rejected."""
        path = create_yaml_file("list.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="top-level YAML must be a mapping"):
            load_effective_config(path)

    def test_non_mapping_section_raises(self, create_yaml_file):
        """Test that a known section must be a mapping."""
        path = create_yaml_file("section.yaml", "graph: https://graph.microsoft.com\n")
        with pytest.raises(ConfigError, match="'graph' must be a mapping"):
            load_effective_config(path)

    def test_non_mapping_record_type_raises(self, create_yaml_file):
        """Test that record type overrides must be mappings."""
        path = create_yaml_file("types.yaml", "record_types:\n  scripts: false\n")
        with pytest.raises(ConfigError, match="record_types.scripts"):
            load_effective_config(path)


class TestConfigMerging:
    """Tests for configuration merging behavior."""

    def test_lists_are_replaced(self, create_yaml_file):
        """Test that lists replace rather than extend."""
        path = create_yaml_file(
            "intunesync.yaml",
            "record_types:\n  device_configurations:\n    strip_fields: [a, b]\n",
        )

        config = load_effective_config(path)

        assert config["record_types"]["device_configurations"]["strip_fields"] == ["a", "b"]


class TestPathResolution:
    """Tests for relative path resolution."""

    def test_log_file_relative_to_config(self, tmp_test_dir, create_yaml_file):
        """Test that logging.file is resolved against the config directory."""
        path = create_yaml_file("conf/intunesync.yaml", "logging:\n  file: logs/run.log\n")

        config = load_effective_config(path)

        expected = (tmp_test_dir / "conf" / "logs" / "run.log").resolve()
        assert config["logging"]["file"] == str(expected)

    def test_absolute_log_file_unchanged(self, tmp_test_dir, create_yaml_file):
        """Test that absolute paths are kept."""
        target = (tmp_test_dir / "abs.log").resolve()
        path = create_yaml_file("intunesync.yaml", f"logging:\n  file: '{target}'\n")

        config = load_effective_config(path)

        assert config["logging"]["file"] == str(target)


class TestExampleConfig:
    """Tests for the shipped intunesync.example.yaml."""

    def test_example_loads(self):
        """Test that the example file is accepted by the loader."""
        config = load_effective_config(EXAMPLE_CONFIG)

        assert config["graph"]["api_version"] == "beta"
        assert config["record_types"]["autopilot_profiles"]["enabled"] is False

    def test_example_maps_profiles_folder(self):
        """Test that a Profiles/ export tree is recognized with the example file."""
        record_types = get_record_types(load_effective_config(EXAMPLE_CONFIG))

        matched = find_record_type_by_folder("Profiles", record_types)

        assert matched is not None
        assert matched.key == "device_configurations"
        assert find_record_type_by_folder("DeviceConfigurations", record_types) is None
