"""Tests for append-if-absent file helpers."""

from rigup.adapters.files import append_block_if_absent, append_if_absent, file_contains_line, profile_line_spec
from rigup.core.reconciler import reconcile
from rigup.core.spec import Action


class TestAppendIfAbsent:
    """Test suite for append_if_absent()."""

    def test_creates_file_and_parents(self, tmp_path):
        profile = tmp_path / "Documents" / "PowerShell" / "profile.ps1"

        assert append_if_absent(profile, "Set-PSReadLineOption -EditMode Emacs") is True
        assert profile.read_text() == "Set-PSReadLineOption -EditMode Emacs\n"

    def test_existing_line_not_duplicated(self, tmp_path):
        profile = tmp_path / ".bashrc"
        profile.write_text("  export EDITOR=vim  \n")

        assert append_if_absent(profile, "export EDITOR=vim") is False
        assert profile.read_text() == "  export EDITOR=vim  \n"

    def test_missing_trailing_newline_is_fixed(self, tmp_path):
        profile = tmp_path / ".bashrc"
        profile.write_text("alias ll='ls -l'")

        append_if_absent(profile, "export EDITOR=vim")
        assert profile.read_text() == "alias ll='ls -l'\nexport EDITOR=vim\n"

    def test_contains_line_missing_file(self, tmp_path):
        assert file_contains_line(tmp_path / "nope", "anything") is False


class TestAppendBlock:
    def test_block_separated_by_blank_line(self, tmp_path):
        config = tmp_path / "config"
        config.write_text("Host work\n    User ada\n")

        assert append_block_if_absent(config, "Host github.com", "Host github.com\n    User git") is True
        assert config.read_text() == "Host work\n    User ada\n\nHost github.com\n    User git\n"

    def test_block_marker_present(self, tmp_path):
        config = tmp_path / "config"
        config.write_text("Host github.com\n    User me\n")

        assert append_block_if_absent(config, "Host github.com", "Host github.com\n    User git") is False


class TestProfileLineSpec:
    def test_reconcile_is_idempotent(self, tmp_path):
        profile = tmp_path / "profile.ps1"
        spec = profile_line_spec(profile, "oh-my-posh init pwsh | Invoke-Expression")

        assert spec.name.startswith("profile:profile.ps1:")
        assert reconcile(spec).action is Action.APPLIED
        assert reconcile(spec).action is Action.SKIPPED
        assert profile.read_text().count("oh-my-posh") == 1
