"""Tests for environment detector module."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from rigup.setup.env_detector import (
    SUPPORTED_TOOLS,
    DetectionResult,
    ToolInfo,
    _parse_version_string,
    detect_tools,
    get_tool_version,
)


class TestToolInfo:
    """Test suite for ToolInfo dataclass."""

    def test_tool_info_immutable(self):
        """ToolInfo should be immutable (frozen)."""
        tool = ToolInfo("git", "C:/Program Files/Git/cmd/git.exe", "2.43.0.windows.1")

        with pytest.raises(AttributeError):
            tool.path = None

    def test_found_follows_path(self):
        assert ToolInfo("git", "/usr/bin/git").found is True
        assert ToolInfo("winget").found is False


class TestDetectionResult:
    """Test suite for DetectionResult dataclass."""

    def test_counts(self):
        result = DetectionResult(
            tools={
                "git": ToolInfo("git", "/usr/bin/git", "2.43.0"),
                "pwsh": ToolInfo("pwsh"),
            }
        )

        assert result.total_found == 1
        assert result.total_checked == 2

    def test_is_found(self):
        result = DetectionResult(tools={"git": ToolInfo("git", "/usr/bin/git"), "pwsh": ToolInfo("pwsh")})

        assert result.is_found("git") is True
        assert result.is_found("pwsh") is False
        assert result.is_found("code") is False


class TestDetectTools:
    """Test suite for detect_tools function."""

    @patch("rigup.setup.env_detector.shutil.which")
    @patch("rigup.setup.env_detector.get_tool_version")
    def test_detect_all_tools_found(self, mock_get_version, mock_which):
        """All tools found in PATH with versions."""
        mock_which.side_effect = lambda tool: f"/usr/local/bin/{tool}"
        mock_get_version.side_effect = lambda name, path: {
            "git": "2.43.0",
            "ssh": "9.6p1",
            "winget": "1.7.10861",
            "pwsh": "7.4.1",
            "code": "1.85.1",
        }[name]

        result = detect_tools()

        assert result.total_checked == 5
        assert result.total_found == 5
        assert result.tools["git"].version == "2.43.0"
        assert result.tools["ssh"].version == "9.6p1"
        assert result.tools["pwsh"].path == "/usr/local/bin/pwsh"

    @patch("rigup.setup.env_detector.shutil.which")
    def test_detect_no_tools_found(self, mock_which):
        """No tools found in PATH."""
        mock_which.return_value = None

        result = detect_tools()

        assert result.total_checked == len(SUPPORTED_TOOLS)
        assert result.total_found == 0

        for tool_name in SUPPORTED_TOOLS:
            assert result.tools[tool_name].found is False
            assert result.tools[tool_name].path is None
            assert result.tools[tool_name].version is None

    @patch("rigup.setup.env_detector.shutil.which")
    def test_detect_tools_custom_list(self, mock_which):
        """Detect custom subset of tools."""
        mock_which.side_effect = lambda tool: None

        result = detect_tools(tool_names=["winget"])

        assert result.total_checked == 1
        assert "winget" in result.tools
        assert "git" not in result.tools

    @patch("rigup.setup.env_detector.shutil.which")
    @patch("rigup.setup.env_detector.get_tool_version", return_value=None)
    def test_detect_tools_graceful_degradation(self, mock_get_version, mock_which):
        """Detection continues even if one tool check fails."""

        def which_side_effect(tool):
            if tool == "winget":
                raise OSError("Simulated failure")
            return f"/usr/bin/{tool}"

        mock_which.side_effect = which_side_effect

        result = detect_tools()

        assert result.total_checked == len(SUPPORTED_TOOLS)
        assert result.tools["winget"].found is False
        assert result.tools["git"].found is True
        assert result.tools["git"].version is None


class TestGetToolVersion:
    """Test suite for get_tool_version function."""

    @patch("rigup.setup.env_detector.subprocess.run")
    def test_get_version_git(self, mock_run):
        """Parse git version correctly."""
        mock_run.return_value = MagicMock(returncode=0, stdout="git version 2.43.0.windows.1\n", stderr="")

        version = get_tool_version("git", "/usr/bin/git")

        assert version == "2.43.0.windows.1"
        assert mock_run.call_args.args[0] == ["/usr/bin/git", "--version"]
        assert mock_run.call_args.kwargs.get("shell", False) is False

    @patch("rigup.setup.env_detector.subprocess.run")
    def test_get_version_ssh_reads_stderr(self, mock_run):
        """ssh -V prints to stderr."""
        mock_run.return_value = MagicMock(
            returncode=0,
            stdout="",
            stderr="OpenSSH_for_Windows_8.6p1, LibreSSL 3.4.3\n",
        )

        version = get_tool_version("ssh", "C:/Windows/System32/OpenSSH/ssh.exe")

        assert version == "8.6p1"
        assert mock_run.call_args.args[0] == ["C:/Windows/System32/OpenSSH/ssh.exe", "-V"]

    @patch("rigup.setup.env_detector.subprocess.run")
    def test_get_version_non_zero_exit(self, mock_run):
        """Handle non-zero exit code gracefully."""
        mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="")

        assert get_tool_version("pwsh", "/usr/bin/pwsh") is None

    @patch("rigup.setup.env_detector.subprocess.run")
    def test_get_version_timeout(self, mock_run):
        """Handle timeout gracefully."""
        mock_run.side_effect = subprocess.TimeoutExpired("winget", 2.0)

        assert get_tool_version("winget", "/usr/bin/winget") is None

    @patch("rigup.setup.env_detector.subprocess.run")
    def test_get_version_unparseable_output(self, mock_run):
        """Handle unparseable version output."""
        mock_run.return_value = MagicMock(returncode=0, stdout="Invalid output without version\n", stderr="")

        assert get_tool_version("git", "/usr/bin/git") is None


class TestParseVersionString:
    """Test suite for _parse_version_string function."""

    def test_parse_git_format(self):
        assert _parse_version_string("git", "git version 2.43.0") == "2.43.0"
        assert _parse_version_string("git", "git version 2.43.0.windows.1") == "2.43.0.windows.1"

    def test_parse_winget_format(self):
        assert _parse_version_string("winget", "v1.7.10861") == "1.7.10861"

    def test_parse_pwsh_format(self):
        assert _parse_version_string("pwsh", "PowerShell 7.4.1") == "7.4.1"

    def test_parse_ssh_formats(self):
        assert _parse_version_string("ssh", "OpenSSH_9.6p1 Ubuntu-3ubuntu13, OpenSSL 3.0.13") == "9.6p1"
        assert _parse_version_string("ssh", "OpenSSH_for_Windows_8.6p1, LibreSSL 3.4.3") == "8.6p1"

    def test_parse_empty_string(self):
        assert _parse_version_string("git", "") is None

    def test_parse_multiline_output(self):
        output = "Tool info\nversion 1.2.3\nmore info"
        assert _parse_version_string("tool", output) == "1.2.3"
