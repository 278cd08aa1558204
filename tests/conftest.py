"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory into the test's tmp_path.

    Also clears SYNSYU_* variables so the developer's shell cannot leak
    settings into a test.
    """
    for key in list(os.environ):
        if key.startswith("SYNSYU_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    return tmp_path


@pytest.fixture(autouse=True)
def no_pacnew_scan(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep update runs from walking the host's /etc."""
    monkeypatch.setattr("synsyu.core.runner.find_pacnew_files", lambda: [])


@pytest.fixture
def sample_manifest_data() -> dict[str, Any]:
    """Manifest with one package of each source, most with updates."""
    return {
        "metadata": {
            "generated_at": "2026-10-01T08:00:00Z",
            "generated_by": "synsyu_core",
            "total_packages": 5,
            "updates_available": 4,
            "min_free_bytes": 0,
        },
        "packages": {
            "linux": {
                "source": "PACMAN",
                "installed_version": "6.11.1.arch1-1",
                "newer_version": "6.11.2.arch1-1",
                "update_available": True,
                "download_size_selected": 140_000_000,
                "installed_size_selected": 150_000_000,
            },
            "mesa": {
                "source": "PACMAN",
                "installed_version": "24.2.3-1",
                "newer_version": "24.2.4-1",
                "update_available": True,
                "download_size_selected": 30_000_000,
                "installed_size_selected": 90_000_000,
            },
            "paru-bin": {
                "source": "AUR",
                "installed_version": "2.0.3-1",
                "newer_version": "2.0.4-1",
                "update_available": True,
                "build_size_estimate": 12_000_000,
            },
            "my-local-tool": {
                "source": "LOCAL",
                "installed_version": "0.1-1",
                "update_available": True,
            },
            "bash": {
                "source": "PACMAN",
                "installed_version": "5.2.037-1",
                "update_available": False,
            },
        },
    }


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Factory writing a manifest document to tmp_path/manifest.json."""

    def _write(data: dict[str, Any]) -> Path:
        path = tmp_path / "manifest.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def manifest_path(
    write_manifest: Callable[[dict[str, Any]], Path],
    sample_manifest_data: dict[str, Any],
) -> Path:
    """Path to the sample manifest on disk."""
    return write_manifest(sample_manifest_data)
