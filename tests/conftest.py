"""
Pytest configuration and shared fixtures for intunesync tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from intunesync.graph.client import GraphClient

GRAPH = "https://graph.microsoft.com/beta"


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self) -> None:
        self.steps: list[str] = []
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.verbose_lines: list[str] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.steps.append(f"[{step}/{total}] {message}")

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def verbose(self, prefix: str, message: str) -> None:
        self.verbose_lines.append(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        pass


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def graph_client() -> GraphClient:
    """Graph client with a fixed token (HTTP is mocked per test)."""
    return GraphClient(lambda: "test-token")


@pytest.fixture
def create_record_file(tmp_test_dir: Path):
    """
    Factory fixture for writing exported record files.

    Usage:
        path = create_record_file("Profiles", "123_WiFi-Policy.json", {...})
    """

    def _create(folder: str, filename: str, data: Any) -> Path:
        path = tmp_test_dir / folder / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _create


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files from text.

    Usage:
        yaml_path = create_yaml_file("intunesync.yaml", "graph:\\n  timeout: 5\\n")
    """

    def _create(filename: str, text: str) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _create


@pytest.fixture
def sample_profile() -> dict[str, Any]:
    """A device configuration profile as Graph returns it."""
    return {
        "@odata.context": f"{GRAPH}/$metadata#deviceManagement/deviceConfigurations/$entity",
        "@odata.type": "#microsoft.graph.windows10GeneralConfiguration",
        "id": "11111111-aaaa-bbbb-cccc-000000000001",
        "displayName": "Win10 - Baseline",
        "description": "Baseline restrictions",
        "createdDateTime": "2024-01-01T00:00:00Z",
        "lastModifiedDateTime": "2024-02-01T00:00:00Z",
        "version": 3,
        "supportsScopeTags": True,
        "roleScopeTagIds": ["0"],
        "passwordRequired": True,
        "passwordMinimumLength": 12,
    }
