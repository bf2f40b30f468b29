"""Tests for bootstrap configuration loading and writing."""

import tempfile
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from rigup.exceptions import ConfigurationError
from rigup.setup.config import (
    CONFIG_ENV_VAR,
    DEFAULT_SSH_HOSTS,
    BootstrapConfig,
    DateTimeSettings,
    GitSettings,
    PackageEntry,
    Repository,
    WriteResult,
    config_to_dict,
    create_backup,
    default_config_path,
    load_config,
    parse_config,
    validate_config,
    write_config,
)

SAMPLE_YAML = """\
git:
  user_name: Ada Lovelace
  user_email: ada@example.com
  autocrlf: input
  extra:
    pull.rebase: true
ssh:
  comment: ada@laptop
datetime:
  preset: eu
  short_time: HH:mm
  show_seconds: false
packages:
  - Microsoft.PowerShell
  - id: Git.Git
    command: git
    critical: true
environment:
  DOTNET_CLI_TELEMETRY_OPTOUT: "1"
profile:
  lines:
    - Set-PSReadLineOption -EditMode Emacs
repositories:
  - url: https://github.com/ada/dotfiles.git
    path: ~/src/dotfiles
"""


@pytest.fixture
def sample_config():
    """Typical wizard output."""
    return BootstrapConfig(
        git=GitSettings(user_name="Ada Lovelace", user_email="ada@example.com"),
        packages=[PackageEntry(id="Git.Git", command="git", critical=True)],
        repositories=[Repository(url="https://github.com/ada/dotfiles.git", path="~/src/dotfiles")],
    )


class TestDataclasses:
    """Test suite for config dataclasses."""

    def test_config_immutable(self, sample_config):
        with pytest.raises(AttributeError):
            sample_config.git = GitSettings()

    def test_write_result_immutable(self):
        result = WriteResult(success=True, config_path=Path("test.yaml"), backup_path=None, error=None)
        with pytest.raises(AttributeError):
            result.success = False

    def test_default_ssh_hosts(self):
        assert BootstrapConfig().ssh.hosts == DEFAULT_SSH_HOSTS

    def test_datetime_overrides_preset(self):
        resolved = DateTimeSettings(preset="us", short_time="HH:mm").resolved()
        assert resolved["short_date"] == "M/d/yyyy"
        assert resolved["short_time"] == "HH:mm"


class TestDefaultConfigPath:
    def test_env_var_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "custom.yaml"))
        assert default_config_path() == tmp_path / "custom.yaml"

    def test_platform_dir(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        path = default_config_path()
        assert path.name == "bootstrap.yaml"
        assert "rigup" in str(path)


class TestValidateConfig:
    """Test suite for validate_config function."""

    def test_validate_sample(self):
        assert validate_config(yaml.safe_load(SAMPLE_YAML)) == []

    def test_validate_empty_mapping(self):
        assert validate_config({}) == []

    def test_validate_not_a_mapping(self):
        assert validate_config(["git"]) == ["Config must be a mapping"]

    def test_validate_unknown_section(self):
        assert "Unknown section: gti" in validate_config({"gti": {}})

    def test_validate_bad_email(self):
        errors = validate_config({"git": {"user_email": "ada"}})
        assert any("not an email address" in e for e in errors)

    def test_validate_invalid_preset(self):
        errors = validate_config({"datetime": {"preset": "mars"}})
        assert any("datetime.preset" in e for e in errors)

    def test_validate_invalid_boolean(self):
        errors = validate_config({"ssh": {"enabled": "yes"}})
        assert any("boolean" in e.lower() for e in errors)

    def test_validate_ssh_host_options(self):
        errors = validate_config({"ssh": {"hosts": {"github.com": "git", "gitlab.com": None}}})
        assert errors == ["ssh.hosts.github.com must be a mapping"]

    def test_validate_first_day_range(self):
        errors = validate_config({"datetime": {"first_day_of_week": 7}})
        assert any("first_day_of_week" in e for e in errors)

    def test_validate_repository_needs_path(self):
        errors = validate_config({"repositories": [{"url": "https://example.com/x.git"}]})
        assert "repositories[0] needs url and path" in errors

    def test_validate_package_needs_id(self):
        errors = validate_config({"packages": [{"command": "git"}]})
        assert any("packages[0]" in e for e in errors)


class TestParseConfig:
    def test_parse_sample(self):
        config = parse_config(yaml.safe_load(SAMPLE_YAML))

        assert config.git.user_name == "Ada Lovelace"
        assert config.git.default_branch == "main"
        assert config.git.autocrlf == "input"
        assert config.git.extra == {"pull.rebase": True}
        assert config.ssh.enabled is True
        assert config.ssh.comment == "ada@laptop"
        assert config.datetime.preset == "eu"
        assert config.datetime.show_seconds is False
        assert config.packages == [
            PackageEntry(id="Microsoft.PowerShell"),
            PackageEntry(id="Git.Git", command="git", critical=True),
        ]
        assert config.environment == {"DOTNET_CLI_TELEMETRY_OPTOUT": "1"}
        assert config.repositories[0].path == "~/src/dotfiles"


    def test_parse_ssh_paths(self):
        config = parse_config({"ssh": {"key_path": "~/keys/id_work", "config_path": "~/.ssh/config.d/work"}})

        assert config.ssh.key_path == "~/keys/id_work"
        assert config.ssh.config_path == "~/.ssh/config.d/work"
        assert config_to_dict(config)["ssh"]["config_path"] == "~/.ssh/config.d/work"


class TestLoadConfig:
    """Test suite for load_config function."""

    def test_load_valid_file(self, tmp_path):
        config_path = tmp_path / "bootstrap.yaml"
        config_path.write_text(SAMPLE_YAML, encoding="utf-8")

        assert load_config(config_path).git.user_email == "ada@example.com"

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="rigup init") as exc_info:
            load_config(tmp_path / "missing.yaml")
        assert exc_info.value.file_path == str(tmp_path / "missing.yaml")

    def test_load_invalid_yaml_has_line(self, tmp_path):
        config_path = tmp_path / "bootstrap.yaml"
        config_path.write_text("git:\n  user_name: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid YAML") as exc_info:
            load_config(config_path)
        assert exc_info.value.line_number is not None

    def test_load_invalid_structure(self, tmp_path):
        config_path = tmp_path / "bootstrap.yaml"
        config_path.write_text("packages: Git.Git\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="packages must be a list"):
            load_config(config_path)

    def test_load_host_without_options_mapping(self, tmp_path):
        config_path = tmp_path / "bootstrap.yaml"
        config_path.write_text("ssh:\n  hosts:\n    github.com: git\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="ssh.hosts.github.com must be a mapping"):
            load_config(config_path)

    def test_load_empty_file(self, tmp_path):
        config_path = tmp_path / "bootstrap.yaml"
        config_path.write_text("", encoding="utf-8")

        assert load_config(config_path) == BootstrapConfig()


class TestConfigToDict:
    def test_metadata(self, sample_config):
        data = config_to_dict(sample_config)

        assert data["_metadata"]["last_modified_by"] == "setup-wizard"
        assert "rigup_version" in data["_metadata"]
        timestamp = datetime.fromisoformat(data["_metadata"]["generated_at"])
        assert timestamp.tzinfo is not None

    def test_omits_unset_values(self, sample_config):
        data = config_to_dict(sample_config)

        assert "autocrlf" not in data["git"]
        assert "short_date" not in data["datetime"]
        assert data["packages"] == [{"id": "Git.Git", "command": "git", "critical": True}]

    def test_round_trips_through_parse(self, sample_config):
        assert parse_config(config_to_dict(sample_config)) == sample_config


class TestCreateBackup:
    """Test suite for create_backup function."""

    def test_create_backup_success(self):
        """Create backup of existing file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "bootstrap.yaml"
            config_path.write_text("original content", encoding="utf-8")

            backup_path = create_backup(config_path)

            assert backup_path is not None
            assert backup_path.read_text(encoding="utf-8") == "original content"
            assert backup_path.name.startswith("bootstrap.yaml.backup.")

    def test_create_backup_nonexistent_file(self):
        assert create_backup(Path("/nonexistent/bootstrap.yaml")) is None


class TestWriteConfig:
    """Test suite for write_config function."""

    def test_write_config_success(self, sample_config, tmp_path):
        config_path = tmp_path / "nested" / "bootstrap.yaml"

        result = write_config(sample_config, config_path, create_backup_flag=False)

        assert result.success is True
        assert result.backup_path is None
        assert result.error is None
        assert load_config(config_path) == sample_config

    def test_write_config_with_backup(self, sample_config, tmp_path):
        config_path = tmp_path / "bootstrap.yaml"
        config_path.write_text("old content", encoding="utf-8")

        result = write_config(sample_config, config_path, create_backup_flag=True)

        assert result.success is True
        assert result.backup_path.read_text(encoding="utf-8") == "old content"

    def test_write_config_validation_failure(self, tmp_path):
        config = BootstrapConfig(git=GitSettings(user_name="Ada", user_email="not-an-email"))

        result = write_config(config, tmp_path / "bootstrap.yaml")

        assert result.success is False
        assert any("not an email address" in e for e in result.validation_errors)
        assert not (tmp_path / "bootstrap.yaml").exists()

    def test_write_config_atomic_write(self, sample_config, tmp_path):
        """No partial file is left behind when serialization fails."""
        config_path = tmp_path / "bootstrap.yaml"

        with patch("rigup.setup.config.yaml.safe_dump", side_effect=yaml.YAMLError("test error")):
            result = write_config(sample_config, config_path)

        assert result.success is False
        assert not config_path.exists()
        assert list(tmp_path.glob("*.tmp")) == []
