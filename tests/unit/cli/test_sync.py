"""Unit tests for the run commands.

Tests for sync, aur, repo and update, including their exit codes.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from synsyu.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()

_GIB = 1024 * 1024 * 1024


@pytest.fixture
def system() -> Iterator[dict[str, MagicMock]]:
    """Patch every external program a run could start."""
    with (
        patch("synsyu.operators.pacman.run_interactive", return_value=0) as pacman,
        patch("synsyu.operators.base.run_interactive", return_value=0) as helper,
        patch("synsyu.core.safety.run_interactive", return_value=0) as snapshot,
        patch("synsyu.core.safety.free_space", return_value=100 * _GIB),
        patch("synsyu.core.runner.detect_helpers", return_value=("paru",)) as detect,
        patch("synsyu.core.runner.command_exists", return_value=False),
    ):
        yield {"pacman": pacman, "helper": helper, "snapshot": snapshot, "detect": detect}


class TestSyncCommand:
    """Tests for synsyu sync."""

    def test_help(self) -> None:
        result = runner.invoke(app, ["sync", "--help"])

        assert result.exit_code == 0
        assert "--dry-run" in result.stdout
        assert "--batch" in result.stdout

    def test_sync_success(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "sync"])

        assert result.exit_code == 0
        system["pacman"].assert_called_once_with(
            ["sudo", "pacman", "-S", "--noconfirm", "linux", "mesa"]
        )
        system["helper"].assert_called_once_with(["paru", "-S", "--noconfirm", "paru-bin"])
        assert "Processed: 3" in result.stdout

    def test_conflicting_source_flags(self, manifest_path: Path) -> None:
        """--no-aur with --no-repo would update nothing."""
        result = runner.invoke(
            app, ["--manifest", str(manifest_path), "sync", "--no-aur", "--no-repo"]
        )

        assert result.exit_code == 103
        assert "cannot be combined" in result.output

    def test_missing_manifest(self, tmp_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(tmp_path / "none.json"), "sync"])

        assert result.exit_code == 130
        assert "Manifest not found" in result.output
        system["pacman"].assert_not_called()

    def test_invalid_manifest(self, tmp_path: Path, system: dict[str, MagicMock]) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("{", encoding="utf-8")

        result = runner.invoke(app, ["--manifest", str(path), "sync"])

        assert result.exit_code == 131

    def test_package_failure_exits_one(
        self, manifest_path: Path, system: dict[str, MagicMock]
    ) -> None:
        system["helper"].return_value = 1

        result = runner.invoke(app, ["--manifest", str(manifest_path), "sync"])

        assert result.exit_code == 1
        assert "Failed Updates" in result.stdout
        system["pacman"].assert_called_once()

    def test_required_snapshot_failure(
        self, tmp_path: Path, manifest_path: Path, system: dict[str, MagicMock]
    ) -> None:
        """A failing required pre-snapshot exits 164 before any update."""
        config = tmp_path / "config.toml"
        config.write_text(
            '[snapshots]\nenabled = true\npre_command = "false"\nrequire_success = true\n',
            encoding="utf-8",
        )
        system["snapshot"].return_value = 1

        result = runner.invoke(
            app, ["--config", str(config), "--manifest", str(manifest_path), "sync"]
        )

        assert result.exit_code == 164
        system["pacman"].assert_not_called()
        system["helper"].assert_not_called()

    def test_enforce_disk_shortage(self, tmp_path: Path, manifest_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text('[space]\nmode = "enforce"\nmin_free_gb = 2\n', encoding="utf-8")

        with (
            patch("synsyu.core.safety.free_space", return_value=_GIB),
            patch("synsyu.core.runner.detect_helpers", return_value=("paru",)),
            patch("synsyu.operators.pacman.run_interactive") as mock_pacman,
        ):
            result = runner.invoke(
                app, ["--config", str(config), "--manifest", str(manifest_path), "sync"]
            )

        assert result.exit_code == 140
        mock_pacman.assert_not_called()

    def test_invalid_config(self, tmp_path: Path, manifest_path: Path) -> None:
        config = tmp_path / "config.toml"
        config.write_text("[core]\nbatch = 3\n", encoding="utf-8")

        result = runner.invoke(
            app, ["--config", str(config), "--manifest", str(manifest_path), "sync"]
        )

        assert result.exit_code == 100

    def test_invalid_include_regex(self, manifest_path: Path) -> None:
        result = runner.invoke(
            app, ["--manifest", str(manifest_path), "sync", "--include", "linux("]
        )

        assert result.exit_code == 100
        assert "Invalid filter pattern" in result.output

    def test_dry_run(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "sync", "--dry-run"])

        assert result.exit_code == 0
        system["pacman"].assert_not_called()
        system["helper"].assert_not_called()
        assert "Dry-run completed" in result.stdout

    def test_json_summary(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "sync", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["command"] == "sync"
        assert data["processed"] == 3
        assert data["skipped"] == 1
        assert data["failures"] == []
        assert data["helper"] == "paru"
        assert data["exit_code"] == 0

    def test_include_exclude(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(
            app,
            [
                "--manifest",
                str(manifest_path),
                "sync",
                "--include",
                "^(linux|mesa)$",
                "--exclude",
                "mesa",
            ],
        )

        assert result.exit_code == 0
        system["pacman"].assert_called_once_with(["sudo", "pacman", "-S", "--noconfirm", "linux"])
        system["helper"].assert_not_called()

    def test_batch_and_confirm(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(
            app,
            ["--manifest", str(manifest_path), "sync", "--batch", "1", "--confirm", "--no-aur"],
        )

        assert result.exit_code == 0
        calls = [c.args[0] for c in system["pacman"].call_args_list]
        assert calls == [["sudo", "pacman", "-S", "linux"], ["sudo", "pacman", "-S", "mesa"]]

    def test_offline(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "sync", "--offline"])

        assert result.exit_code == 0
        system["pacman"].assert_not_called()
        assert "Offline mode active" in result.stdout

    def test_global_json_flag(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        """--json before the command name selects the JSON summary."""
        result = runner.invoke(app, ["--json", "--manifest", str(manifest_path), "sync"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["command"] == "sync"
        assert data["processed"] == 3

    def test_global_quiet_flag(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(
            app, ["-q", "--manifest", str(manifest_path), "sync", "--offline"]
        )

        assert result.exit_code == 0
        assert "Offline mode active" not in result.output


class TestAurAndRepoCommands:
    """Tests for synsyu aur and synsyu repo."""

    def test_repo_skips_aur(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "repo"])

        assert result.exit_code == 0
        system["pacman"].assert_called_once()
        system["helper"].assert_not_called()
        system["detect"].assert_not_called()

    def test_aur_skips_repo(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "aur"])

        assert result.exit_code == 0
        system["pacman"].assert_not_called()
        system["helper"].assert_called_once_with(["paru", "-S", "--noconfirm", "paru-bin"])

    def test_aur_without_helper(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        system["detect"].return_value = ()

        result = runner.invoke(app, ["--manifest", str(manifest_path), "aur"])

        assert result.exit_code == 111

    def test_forced_helper(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        result = runner.invoke(
            app, ["--manifest", str(manifest_path), "aur", "--helper", "yay"]
        )

        system["helper"].assert_called_once_with(["yay", "-S", "--noconfirm", "paru-bin"])
        assert "Forced helper yay" in result.output


class TestUpdateCommand:
    """Tests for synsyu update."""

    def test_requires_names(self, manifest_path: Path) -> None:
        result = runner.invoke(app, ["--manifest", str(manifest_path), "update"])

        assert result.exit_code == 110
        assert "at least one package" in result.output

    def test_targets_named_packages(
        self, manifest_path: Path, system: dict[str, MagicMock]
    ) -> None:
        with patch("synsyu.core.runner.rebuild_manifest"):
            result = runner.invoke(
                app, ["--manifest", str(manifest_path), "update", "mesa", "paru-bin", "ghost"]
            )

        assert result.exit_code == 0
        system["pacman"].assert_called_once_with(["sudo", "pacman", "-S", "--noconfirm", "mesa"])
        system["helper"].assert_called_once_with(["paru", "-S", "--noconfirm", "paru-bin"])
        assert "ghost not found" in result.output

    def test_rebuilds_manifest_by_default(
        self, manifest_path: Path, system: dict[str, MagicMock]
    ) -> None:
        with patch("synsyu.core.runner.rebuild_manifest") as mock_rebuild:
            result = runner.invoke(app, ["--manifest", str(manifest_path), "update", "mesa"])

        assert result.exit_code == 0
        mock_rebuild.assert_called_once()
        assert mock_rebuild.call_args.args[0] == manifest_path

    def test_no_rebuild(self, manifest_path: Path, system: dict[str, MagicMock]) -> None:
        with patch("synsyu.core.runner.rebuild_manifest") as mock_rebuild:
            result = runner.invoke(
                app, ["--manifest", str(manifest_path), "update", "mesa", "--no-rebuild"]
            )

        assert result.exit_code == 0
        mock_rebuild.assert_not_called()
        system["pacman"].assert_called_once()

    def test_offline_skips_rebuild(
        self, manifest_path: Path, system: dict[str, MagicMock]
    ) -> None:
        with patch("synsyu.core.runner.rebuild_manifest") as mock_rebuild:
            result = runner.invoke(
                app, ["--manifest", str(manifest_path), "update", "mesa", "--offline"]
            )

        assert result.exit_code == 0
        mock_rebuild.assert_not_called()
        system["pacman"].assert_not_called()

    def test_repeated_name_updated_once(
        self, manifest_path: Path, system: dict[str, MagicMock]
    ) -> None:
        result = runner.invoke(
            app,
            [
                "--json",
                "--manifest",
                str(manifest_path),
                "update",
                "linux",
                "linux",
                "--no-rebuild",
            ],
        )

        assert result.exit_code == 0
        system["pacman"].assert_called_once_with(["sudo", "pacman", "-S", "--noconfirm", "linux"])
        assert json.loads(result.stdout)["processed"] == 1
