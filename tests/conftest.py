"""
Pytest configuration and shared fixtures for recipegen tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from recipegen.config import DEFAULT_SETTINGS, load_settings
from recipegen.core import templates_from_settings


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def output_dir(tmp_test_dir: Path) -> Path:
    """Provide a (not yet created) recipe output directory."""
    return tmp_test_dir / "Recipes"


@pytest.fixture
def settings() -> dict[str, Any]:
    """Provide built-in settings (a private copy)."""
    return load_settings()


@pytest.fixture
def templates(settings):
    """Provide the bundled templates, loaded once per test."""
    return templates_from_settings(settings)


@pytest.fixture
def msi_template_path() -> Path:
    return Path(DEFAULT_SETTINGS["templates"]["msi"])


@pytest.fixture
def script_template_path() -> Path:
    return Path(DEFAULT_SETTINGS["templates"]["script"])


@pytest.fixture
def msi_record() -> dict[str, Any]:
    """Provide a complete MSI package record."""
    return {
        "Name": "7-Zip",
        "Description": "File archiver with a high compression ratio",
        "Publisher": "Igor Pavlov",
        "HomePage": "https://www.7-zip.org/",
        "InstallerType": "msi",
        "InstallerURL": "https://www.7-zip.org/a/7z2408-x64.msi",
        "APIUrl": "N/A",
        "SilentSwitches": "N/A",
        "SilentWithProgressSwitches": "N/A",
    }


@pytest.fixture
def script_record() -> dict[str, Any]:
    """Provide a Nullsoft package record with no silent switches."""
    return {
        "Name": "Notepad++",
        "Description": "Source code editor",
        "Publisher": "Notepad++ Team",
        "HomePage": "https://notepad-plus-plus.org/",
        "InstallerType": "nullsoft",
        "InstallerURL": "https://github.com/notepad-plus-plus/npp.8.6.9.Installer.x64.exe",
    }


@pytest.fixture
def create_records_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary record files.

    Usage:
        path = create_records_file("packages.json", [{"Name": ...}])
    """

    def _create(filename: str, data: Any) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                yaml.safe_dump(data, f)
            else:
                json.dump(data, f)
        return path

    return _create


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.messages.append(("step", f"{step}/{total}", message))

    def verbose(self, prefix: str, message: str) -> None:
        self.messages.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        self.messages.append(("debug", prefix, message))

    def warning(self, prefix: str, message: str) -> None:
        self.messages.append(("warning", prefix, message))

    def error(self, prefix: str, message: str) -> None:
        self.messages.append(("error", prefix, message))

    def of_kind(self, kind: str) -> list[str]:
        return [m for k, _, m in self.messages if k == kind]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
