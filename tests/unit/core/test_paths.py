"""Unit tests for XDG path management."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from synsyu.core.paths import (
    APP_NAME,
    ensure_config_dir,
    ensure_log_dir,
    get_config_dir,
    get_config_path,
    get_fallback_log_dir,
    get_log_dir,
    get_manifest_path,
)


class TestPaths:
    """Tests for path getters."""

    def test_default_config_dir(self) -> None:
        """get_config_dir falls back to ~/.config when XDG_CONFIG_HOME is unset."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_config_dir()
            expected = Path.home() / ".config" / APP_NAME

        assert result == expected

    def test_respects_xdg(self, tmp_path: Path) -> None:
        assert get_config_path() == tmp_path / "config" / APP_NAME / "config.toml"
        assert get_manifest_path() == tmp_path / "cache" / APP_NAME / "manifest.json"
        assert get_log_dir() == tmp_path / "state" / APP_NAME / "logs"

    def test_fallback_log_dir_in_tmp(self) -> None:
        assert get_fallback_log_dir().parts[-2:] == (APP_NAME, "logs")


class TestEnsureDirs:
    """Tests for directory creation helpers."""

    def test_creates_config_dir(self, tmp_path: Path) -> None:
        path = ensure_config_dir()

        assert path.is_dir()
        assert path == tmp_path / "config" / APP_NAME

    def test_creates_given_log_dir(self, tmp_path: Path) -> None:
        path = ensure_log_dir(tmp_path / "a" / "b")

        assert path.is_dir()

    def test_unusable_path_raises_runtime_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(RuntimeError, match="Cannot create log directory"):
            ensure_log_dir(blocker / "logs")
