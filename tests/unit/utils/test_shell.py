"""Unit tests for shell execution utilities."""

from unittest.mock import MagicMock, patch

import pytest
from synsyu.utils.shell import command_exists, run_command, run_interactive


class TestRunInteractive:
    """Tests for run_interactive function."""

    @patch("synsyu.utils.shell.subprocess.run")
    def test_returns_exit_code(self, mock_run: MagicMock) -> None:
        """run_interactive returns the subprocess exit code."""
        mock_run.return_value = MagicMock(returncode=3)

        assert run_interactive(["false"]) == 3

    @patch("synsyu.utils.shell.subprocess.run")
    def test_does_not_capture_output(self, mock_run: MagicMock) -> None:
        """Package managers keep the terminal for progress and prompts."""
        mock_run.return_value = MagicMock(returncode=0)

        run_interactive(["pacman", "-S", "linux"])

        kwargs = mock_run.call_args.kwargs
        assert "capture_output" not in kwargs
        assert "stdout" not in kwargs
        assert "timeout" not in kwargs

    @patch("synsyu.utils.shell.subprocess.run")
    def test_merges_env(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(returncode=0)

        run_interactive(["echo"], env={"MY_VAR": "value"})

        call_env = mock_run.call_args.kwargs["env"]
        assert call_env["MY_VAR"] == "value"
        assert "PATH" in call_env

    def test_raises_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            run_interactive(["definitely-not-a-real-command-xyz"])


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("synsyu.utils.shell.shutil.which", return_value="/usr/bin/pacman")
    def test_found(self, mock_which: MagicMock) -> None:
        assert command_exists("pacman") is True

    @patch("synsyu.utils.shell.shutil.which", return_value=None)
    def test_missing(self, mock_which: MagicMock) -> None:
        assert command_exists("pacman") is False


class TestRunCommand:
    """Tests for run_command function."""

    @patch("synsyu.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(stdout="linux\n\n mesa \n", stderr="", returncode=0)

        result = run_command(["pacman", "-Qqen"])

        assert result.success
        assert result.lines == ["linux", "mesa"]
        kwargs = mock_run.call_args.kwargs
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True

    @patch("synsyu.utils.shell.subprocess.run")
    def test_non_zero_is_not_raised(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=1)

        result = run_command(["pacman", "-Qqem"])

        assert result.success is False
        assert result.lines == []
