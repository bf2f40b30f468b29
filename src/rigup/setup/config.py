"""Bootstrap configuration file.

Loads, validates and writes the YAML file describing the target machine state.
Writes are atomic (temp file + rename) with timestamped backups and a
_metadata section, so the wizard can be re-run safely.
"""

import logging
import os
import sys
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml
from platformdirs import user_config_dir

from rigup import __version__
from rigup.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RIGUP_CONFIG"
CONFIG_FILE_NAME = "bootstrap.yaml"

# File permissions (Unix only - ignored on Windows)
CONFIG_DIR_PERMS = 0o755  # rwxr-xr-x
CONFIG_FILE_PERMS = 0o644  # rw-r--r--

# Date/time format presets (Windows "Control Panel\International" format strings)
DATETIME_PRESETS: dict[str, dict[str, Any]] = {
    "iso": {
        "description": "ISO 8601 dates, 24-hour clock",
        "hint": "2024-03-15 14:05:09",
        "settings": {
            "short_date": "yyyy-MM-dd",
            "long_date": "dddd, yyyy-MM-dd",
            "short_time": "HH:mm",
            "time_format": "HH:mm:ss",
            "first_day_of_week": 0,
        },
    },
    "us": {
        "description": "US dates, 12-hour clock",
        "hint": "3/15/2024 2:05:09 PM",
        "settings": {
            "short_date": "M/d/yyyy",
            "long_date": "dddd, MMMM d, yyyy",
            "short_time": "h:mm tt",
            "time_format": "h:mm:ss tt",
            "first_day_of_week": 6,
        },
    },
    "eu": {
        "description": "European dates, 24-hour clock",
        "hint": "15.03.2024 14:05:09",
        "settings": {
            "short_date": "dd.MM.yyyy",
            "long_date": "dddd, d. MMMM yyyy",
            "short_time": "HH:mm",
            "time_format": "HH:mm:ss",
            "first_day_of_week": 0,
        },
    },
}

DEFAULT_DATETIME_PRESET = "iso"

DEFAULT_SSH_HOSTS: dict[str, dict[str, str]] = {
    "github.com": {"HostName": "github.com", "User": "git", "IdentitiesOnly": "yes"},
}


def safe_mkdir(path: Path, mode: int = CONFIG_DIR_PERMS) -> None:
    """Create directory with platform-appropriate permissions.

    On Unix/Linux/macOS, applies specified mode.
    On Windows, creates directory with default ACLs (mode is ignored).
    """
    path.mkdir(parents=True, exist_ok=True)
    if sys.platform != "win32":
        # Permission setting failed - not critical for config files
        with suppress(OSError, NotImplementedError):
            path.chmod(mode)


def safe_chmod(path: Path, mode: int) -> None:
    """Set file permissions (Unix only)."""
    if sys.platform != "win32":
        with suppress(OSError, NotImplementedError):
            path.chmod(mode)


def default_config_path() -> Path:
    """Resolve the bootstrap file location.

    Logic:
    - RIGUP_CONFIG if set
    - Otherwise the platform config dir:
        Unix/Linux: ~/.config/rigup/bootstrap.yaml
        Windows: %LOCALAPPDATA%/rigup/rigup/bootstrap.yaml
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path(user_config_dir("rigup", "rigup")) / CONFIG_FILE_NAME


def default_profile_path() -> Path:
    """Shell profile updated by profile lines when none is configured."""
    if sys.platform == "win32":
        return Path("~/Documents/PowerShell/Microsoft.PowerShell_profile.ps1").expanduser()
    return Path("~/.bashrc").expanduser()


@dataclass(frozen=True)
class GitSettings:
    """Global git identity and defaults.

    Attributes:
        user_name: user.name
        user_email: user.email
        default_branch: init.defaultBranch
        autocrlf: core.autocrlf ("true", "input", "false"; None leaves it alone)
        extra: Additional key/value pairs
    """

    user_name: str = ""
    user_email: str = ""
    default_branch: str = "main"
    autocrlf: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SshSettings:
    enabled: bool = True
    algorithm: str = "ed25519"
    comment: Optional[str] = None
    key_path: Optional[str] = None
    config_path: Optional[str] = None
    hosts: dict[str, dict[str, str]] = field(default_factory=lambda: dict(DEFAULT_SSH_HOSTS))


@dataclass(frozen=True)
class DateTimeSettings:
    """Regional date/time formats.

    Explicit fields override the preset. show_seconds needs Windows 11 22H2.
    """

    preset: str = DEFAULT_DATETIME_PRESET
    short_date: Optional[str] = None
    long_date: Optional[str] = None
    short_time: Optional[str] = None
    time_format: Optional[str] = None
    first_day_of_week: Optional[int] = None
    show_seconds: bool = True

    def resolved(self) -> dict[str, Any]:
        """Preset values with explicit overrides applied."""
        values = dict(DATETIME_PRESETS.get(self.preset, DATETIME_PRESETS[DEFAULT_DATETIME_PRESET])["settings"])
        for key in ("short_date", "long_date", "short_time", "time_format", "first_day_of_week"):
            override = getattr(self, key)
            if override is not None:
                values[key] = override
        return values


@dataclass(frozen=True)
class PackageEntry:
    id: str
    command: Optional[str] = None
    critical: bool = False


@dataclass(frozen=True)
class ProfileSettings:
    path: Optional[str] = None
    lines: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Repository:
    url: str
    path: str


@dataclass(frozen=True)
class BootstrapConfig:
    """Complete target state for one workstation."""

    git: GitSettings = field(default_factory=GitSettings)
    ssh: SshSettings = field(default_factory=SshSettings)
    datetime: DateTimeSettings = field(default_factory=DateTimeSettings)
    packages: list[PackageEntry] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    profile: ProfileSettings = field(default_factory=ProfileSettings)
    repositories: list[Repository] = field(default_factory=list)


@dataclass(frozen=True)
class WriteResult:
    """Result of config file write operation.

    Attributes:
        success: Whether write completed successfully
        config_path: Path where config was written
        backup_path: Path to backup file (None if no backup created)
        error: Error message if write failed (None on success)
        validation_errors: List of validation errors (empty on success)
    """

    success: bool
    config_path: Path
    backup_path: Optional[Path]
    error: Optional[str]
    validation_errors: list[str] = field(default_factory=list)


def validate_config(data: Any) -> list[str]:  # noqa: PLR0912 - Validation logic
    """Validate the raw YAML structure.

    Args:
        data: Result of yaml.safe_load

    Returns:
        List of validation errors (empty if valid)
    """
    if not isinstance(data, dict):
        return ["Config must be a mapping"]

    errors: list[str] = []
    known_sections = {"_metadata", "git", "ssh", "datetime", "packages", "environment", "profile", "repositories"}
    for key in data:
        if key not in known_sections:
            errors.append(f"Unknown section: {key}")

    git = data.get("git") or {}
    if not isinstance(git, dict):
        errors.append("git must be a mapping")
    else:
        for key in ("user_name", "user_email", "default_branch", "autocrlf"):
            if key in git and git[key] is not None and not isinstance(git[key], str):
                errors.append(f"git.{key} must be a string")
        email = git.get("user_email")
        if isinstance(email, str) and email and "@" not in email:
            errors.append(f"git.user_email is not an email address: {email}")
        if "extra" in git and not isinstance(git["extra"], dict):
            errors.append("git.extra must be a mapping")

    ssh = data.get("ssh") or {}
    if not isinstance(ssh, dict):
        errors.append("ssh must be a mapping")
    else:
        if "enabled" in ssh and not isinstance(ssh["enabled"], bool):
            errors.append("ssh.enabled must be boolean")
        hosts = ssh.get("hosts", {})
        if not isinstance(hosts, dict):
            errors.append("ssh.hosts must be a mapping")
        else:
            for host, options in hosts.items():
                if options is not None and not isinstance(options, dict):
                    errors.append(f"ssh.hosts.{host} must be a mapping")
        for key in ("key_path", "config_path"):
            if key in ssh and ssh[key] is not None and not isinstance(ssh[key], str):
                errors.append(f"ssh.{key} must be a string")

    dt = data.get("datetime") or {}
    if not isinstance(dt, dict):
        errors.append("datetime must be a mapping")
    else:
        preset = dt.get("preset", DEFAULT_DATETIME_PRESET)
        if preset not in DATETIME_PRESETS:
            errors.append(f"Invalid datetime.preset: {preset}. Must be one of: {', '.join(DATETIME_PRESETS)}")
        first_day = dt.get("first_day_of_week")
        if first_day is not None and (not isinstance(first_day, int) or not 0 <= first_day <= 6):
            errors.append("datetime.first_day_of_week must be an integer 0-6 (0 = Monday)")
        if "show_seconds" in dt and not isinstance(dt["show_seconds"], bool):
            errors.append("datetime.show_seconds must be boolean")

    packages = data.get("packages") or []
    if not isinstance(packages, list):
        errors.append("packages must be a list")
    else:
        for index, entry in enumerate(packages):
            if isinstance(entry, str):
                continue
            if not isinstance(entry, dict) or not entry.get("id"):
                errors.append(f"packages[{index}] must be a package id or a mapping with an id")

    environment = data.get("environment") or {}
    if not isinstance(environment, dict):
        errors.append("environment must be a mapping")

    profile = data.get("profile") or {}
    if not isinstance(profile, dict):
        errors.append("profile must be a mapping")
    elif "lines" in profile and not isinstance(profile["lines"], list):
        errors.append("profile.lines must be a list")

    repositories = data.get("repositories") or []
    if not isinstance(repositories, list):
        errors.append("repositories must be a list")
    else:
        for index, repo in enumerate(repositories):
            if not isinstance(repo, dict) or not repo.get("url") or not repo.get("path"):
                errors.append(f"repositories[{index}] needs url and path")

    return errors


def parse_config(data: dict[str, Any]) -> BootstrapConfig:
    """Build a BootstrapConfig from validated YAML data."""
    git = data.get("git") or {}
    ssh = data.get("ssh") or {}
    dt = data.get("datetime") or {}
    profile = data.get("profile") or {}

    packages = []
    for entry in data.get("packages") or []:
        if isinstance(entry, str):
            packages.append(PackageEntry(id=entry))
        else:
            packages.append(
                PackageEntry(id=entry["id"], command=entry.get("command"), critical=bool(entry.get("critical", False)))
            )

    return BootstrapConfig(
        git=GitSettings(
            user_name=git.get("user_name") or "",
            user_email=git.get("user_email") or "",
            default_branch=git.get("default_branch") or "main",
            autocrlf=git.get("autocrlf"),
            extra=dict(git.get("extra") or {}),
        ),
        ssh=SshSettings(
            enabled=ssh.get("enabled", True),
            algorithm=ssh.get("algorithm", "ed25519"),
            comment=ssh.get("comment"),
            key_path=ssh.get("key_path"),
            config_path=ssh.get("config_path"),
            hosts={host: {k: str(v) for k, v in (opts or {}).items()} for host, opts in ssh["hosts"].items()}
            if "hosts" in ssh
            else dict(DEFAULT_SSH_HOSTS),
        ),
        datetime=DateTimeSettings(
            preset=dt.get("preset", DEFAULT_DATETIME_PRESET),
            short_date=dt.get("short_date"),
            long_date=dt.get("long_date"),
            short_time=dt.get("short_time"),
            time_format=dt.get("time_format"),
            first_day_of_week=dt.get("first_day_of_week"),
            show_seconds=dt.get("show_seconds", True),
        ),
        packages=packages,
        environment={str(k): str(v) for k, v in (data.get("environment") or {}).items()},
        profile=ProfileSettings(path=profile.get("path"), lines=[str(line) for line in profile.get("lines") or []]),
        repositories=[Repository(url=r["url"], path=r["path"]) for r in data.get("repositories") or []],
    )


def load_config(path: Optional[Path] = None) -> BootstrapConfig:
    """Load and validate the bootstrap file.

    Args:
        path: Config file (default: default_config_path())

    Returns:
        Parsed BootstrapConfig

    Raises:
        ConfigurationError: If the file is missing, not valid YAML, or invalid
    """
    if path is None:
        path = default_config_path()

    if not path.exists():
        raise ConfigurationError("Bootstrap config not found. Run: rigup init", file_path=str(path))

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.MarkedYAMLError as e:
        line = e.problem_mark.line + 1 if e.problem_mark else None
        raise ConfigurationError(f"Invalid YAML: {e.problem}", file_path=str(path), line_number=line) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", file_path=str(path)) from e

    if data is None:
        data = {}

    errors = validate_config(data)
    if errors:
        raise ConfigurationError("; ".join(errors), file_path=str(path))

    logger.debug(f"Loaded bootstrap config from {path}")
    return parse_config(data)


def config_to_dict(config: BootstrapConfig) -> dict[str, Any]:
    """Serialize a config for YAML output.

    Notes:
        - Includes metadata (_metadata section with timestamps)
        - Omits unset optional values
    """
    data: dict[str, Any] = {}

    data["_metadata"] = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "rigup_version": __version__,
        "last_modified_by": "setup-wizard",
    }

    git: dict[str, Any] = {
        "user_name": config.git.user_name,
        "user_email": config.git.user_email,
        "default_branch": config.git.default_branch,
    }
    if config.git.autocrlf is not None:
        git["autocrlf"] = config.git.autocrlf
    if config.git.extra:
        git["extra"] = dict(config.git.extra)
    data["git"] = git

    ssh: dict[str, Any] = {"enabled": config.ssh.enabled, "algorithm": config.ssh.algorithm}
    if config.ssh.comment:
        ssh["comment"] = config.ssh.comment
    if config.ssh.key_path:
        ssh["key_path"] = config.ssh.key_path
    if config.ssh.config_path:
        ssh["config_path"] = config.ssh.config_path
    ssh["hosts"] = {host: dict(opts) for host, opts in config.ssh.hosts.items()}
    data["ssh"] = ssh

    dt: dict[str, Any] = {"preset": config.datetime.preset, "show_seconds": config.datetime.show_seconds}
    for key in ("short_date", "long_date", "short_time", "time_format", "first_day_of_week"):
        value = getattr(config.datetime, key)
        if value is not None:
            dt[key] = value
    data["datetime"] = dt

    data["packages"] = [
        {k: v for k, v in (("id", p.id), ("command", p.command), ("critical", p.critical)) if v}
        for p in config.packages
    ]
    data["environment"] = dict(config.environment)
    profile: dict[str, Any] = {"lines": list(config.profile.lines)}
    if config.profile.path:
        profile["path"] = config.profile.path
    data["profile"] = profile
    data["repositories"] = [{"url": r.url, "path": r.path} for r in config.repositories]
    return data


def write_config(
    config: BootstrapConfig,
    config_path: Optional[Path] = None,
    create_backup_flag: bool = True,
) -> WriteResult:
    """Write the bootstrap file.

    Args:
        config: Configuration to persist
        config_path: Destination (default: default_config_path())
        create_backup_flag: Whether to backup an existing file

    Returns:
        WriteResult with success status and paths
    """
    if config_path is None:
        config_path = default_config_path()

    backup_path: Optional[Path] = None

    try:
        data = config_to_dict(config)

        validation_errors = validate_config(data)
        if validation_errors:
            return WriteResult(
                success=False,
                config_path=config_path,
                backup_path=None,
                error="Config validation failed",
                validation_errors=validation_errors,
            )

        if create_backup_flag and config_path.exists():
            backup_path = create_backup(config_path)
            if backup_path:
                logger.info(f"Created backup: {backup_path}")

        safe_mkdir(config_path.parent, CONFIG_DIR_PERMS)
        write_yaml_atomic(config_path, data)
        logger.info(f"Config written to {config_path}")

        return WriteResult(
            success=True,
            config_path=config_path,
            backup_path=backup_path,
            error=None,
            validation_errors=[],
        )

    except Exception as e:
        logger.error(f"Failed to write config: {e}")
        return WriteResult(
            success=False,
            config_path=config_path,
            backup_path=backup_path,
            error=str(e),
            validation_errors=[],
        )


def create_backup(config_path: Path) -> Optional[Path]:
    """Create timestamped backup of existing config file.

    Returns:
        Path to backup file (bootstrap.yaml.backup.20250107_120530), or None
    """
    if not config_path.exists():
        return None

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = config_path.with_suffix(f"{config_path.suffix}.backup.{timestamp}")

    try:
        backup_path.write_text(config_path.read_text(encoding="utf-8"), encoding="utf-8")
        return backup_path
    except Exception as e:
        logger.warning(f"Failed to create backup: {e}")
        return None


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write YAML file atomically using temp file + rename.

    Raises:
        OSError: If write or rename fails
        yaml.YAMLError: If serialization fails
    """
    temp_path = path.with_suffix(path.suffix + ".tmp")

    try:
        with temp_path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(
                data,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

        safe_chmod(temp_path, CONFIG_FILE_PERMS)
        temp_path.replace(path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise
