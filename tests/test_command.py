"""Tests for external command execution."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from rigup.adapters.command import command_exists, format_argv, run_command
from rigup.exceptions import CommandError, PreconditionMissingError


class TestRunCommand:
    """Test suite for run_command function."""

    @patch("rigup.adapters.command.subprocess.run")
    def test_captures_output(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout="main\n", stderr="")

        result = run_command(["git", "config", "--global", "--get", "init.defaultBranch"])

        assert result.succeeded
        assert result.stdout == "main\n"
        assert mock_run.call_args.kwargs["capture_output"] is True
        assert mock_run.call_args.kwargs.get("shell", False) is False

    @patch("rigup.adapters.command.subprocess.run")
    def test_non_zero_raises_when_checked(self, mock_run):
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="boom\n")

        with pytest.raises(CommandError) as exc_info:
            run_command(["winget", "install", "--id", "Git.Git"])

        assert exc_info.value.returncode == 2
        assert "boom" in str(exc_info.value)

    @patch("rigup.adapters.command.subprocess.run")
    def test_non_zero_returned_when_unchecked(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="")

        result = run_command(["git", "config", "--get", "user.name"], check=False)
        assert result.returncode == 1
        assert not result.succeeded

    @patch("rigup.adapters.command.subprocess.run", side_effect=FileNotFoundError("winget"))
    def test_missing_executable_is_precondition(self, mock_run):
        with pytest.raises(PreconditionMissingError, match="winget is not installed"):
            run_command(["winget", "list"])

    @patch("rigup.adapters.command.subprocess.run", side_effect=subprocess.TimeoutExpired("git", 30))
    def test_timeout(self, mock_run):
        with pytest.raises(CommandError, match="timed out"):
            run_command(["git", "clone", "https://example.com/x.git"])


class TestHelpers:
    def test_format_argv_quotes(self):
        assert format_argv(["git", "config", "user.name", "Ada Lovelace"]) == "git config user.name 'Ada Lovelace'"

    @patch("rigup.adapters.command.shutil.which", return_value=None)
    def test_command_exists_false(self, mock_which):
        assert command_exists("winget") is False
