"""Bootstrap plan builder.

Turns a BootstrapConfig into an ordered list of SettingSpecs. Order encodes the
dependencies between steps: packages first (git must exist before it is
configured), then registry settings, git, SSH, profile lines and clones.
"""

import logging
from dataclasses import dataclass, replace
from functools import partial
from pathlib import Path
from typing import Any, Callable, Optional

from rigup.adapters.command import CommandRunner, run_command
from rigup.adapters.environment import env_var_spec, refresh_process_path
from rigup.adapters.files import profile_line_spec
from rigup.adapters.git import GitConfig, clone_spec, git_config_spec
from rigup.adapters.packages import PackageManager, WingetPackageManager, package_spec
from rigup.adapters.prompts import Prompter, confirm_write
from rigup.adapters.registry import RegistryStore, UnavailableRegistry, open_registry, registry_spec
from rigup.adapters.ssh import DEFAULT_SSH_DIR, default_key_path, ssh_config_host_spec, ssh_key_spec
from rigup.core.spec import SettingSpec, ValueKind
from rigup.core.version_gate import WINDOWS_11_22H2_BUILD, VersionGate, detect_platform_build

from .config import BootstrapConfig, default_profile_path

logger = logging.getLogger(__name__)

INTERNATIONAL_KEY = r"HKCU:\Control Panel\International"
EXPLORER_ADVANCED_KEY = r"HKCU:\Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced"

# DateTimeSettings field -> International registry value (all REG_SZ)
DATETIME_REGISTRY_VALUES = {
    "short_date": "sShortDate",
    "long_date": "sLongDate",
    "short_time": "sShortTime",
    "time_format": "sTimeFormat",
    "first_day_of_week": "iFirstDayOfWeek",
}


@dataclass
class PlanContext:
    """External collaborators a plan is built against.

    Attributes:
        registry: Settings store (UnavailableRegistry off Windows)
        git: Git config adapter
        packages: Package manager
        runner: Command runner for ssh-keygen
        platform_build: Detected Windows build (None if unknown)
        prompter: Confirms destructive or surprising steps (None = no prompts)
    """

    registry: RegistryStore
    git: GitConfig
    packages: PackageManager
    runner: CommandRunner = run_command
    platform_build: Optional[int] = None
    prompter: Optional[Prompter] = None

    @classmethod
    def detect(cls, prompter: Optional[Prompter] = None) -> "PlanContext":
        """Context backed by the real system."""
        return cls(
            registry=open_registry(),
            git=GitConfig(),
            packages=WingetPackageManager(),
            runner=run_command,
            platform_build=detect_platform_build(),
            prompter=prompter,
        )

    @property
    def registry_available(self) -> bool:
        return not isinstance(self.registry, UnavailableRegistry)


def build_plan(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    """Build the ordered spec list for a configuration.

    Args:
        config: Target machine state
        context: Adapters to read and write through

    Returns:
        Specs in execution order
    """
    specs: list[SettingSpec] = []
    specs.extend(package_specs(config, context))
    specs.extend(environment_specs(config, context))
    specs.extend(datetime_specs(config, context))
    specs.extend(git_specs(config, context))
    specs.extend(ssh_specs(config, context))
    specs.extend(profile_specs(config))
    specs.extend(repository_specs(config, context))
    logger.debug(f"Built plan with {len(specs)} specs")
    return specs


def package_specs(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    after_install: Optional[Callable[[], Any]] = None
    if context.registry_available:
        after_install = partial(refresh_process_path, context.registry)

    return [
        package_spec(
            context.packages,
            entry.id,
            command=entry.command,
            critical=entry.critical,
            after_install=after_install,
        )
        for entry in config.packages
    ]


def environment_specs(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    return [env_var_spec(context.registry, name, value) for name, value in config.environment.items()]


def datetime_specs(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    """Regional format values plus the seconds-in-clock toggle."""
    resolved = config.datetime.resolved()
    specs = [
        registry_spec(
            context.registry,
            INTERNATIONAL_KEY,
            value_name,
            str(value),
            ValueKind.STRING,
            name=f"datetime:{value_name}",
        )
        for field_name, value_name in DATETIME_REGISTRY_VALUES.items()
        if (value := resolved.get(field_name)) is not None
    ]

    specs.append(
        registry_spec(
            context.registry,
            EXPLORER_ADVANCED_KEY,
            "ShowSecondsInSystemClock",
            config.datetime.show_seconds,
            ValueKind.BOOLEAN,
            name="datetime:ShowSecondsInSystemClock",
            gate=VersionGate.for_build(WINDOWS_11_22H2_BUILD, context.platform_build),
            description="show seconds in the taskbar clock",
        )
    )
    return specs


def git_specs(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    settings = config.git
    entries: dict[str, Any] = {}
    if settings.user_name:
        entries["user.name"] = settings.user_name
    if settings.user_email:
        entries["user.email"] = settings.user_email
    if settings.default_branch:
        entries["init.defaultBranch"] = settings.default_branch
    if settings.autocrlf is not None:
        entries["core.autocrlf"] = settings.autocrlf
    entries.update(settings.extra)

    return [git_config_spec(context.git, key, value) for key, value in entries.items()]


def ssh_key_path(config: BootstrapConfig) -> Path:
    """Private key location from config, or the default for its algorithm."""
    if config.ssh.key_path:
        return Path(config.ssh.key_path).expanduser()
    return default_key_path(config.ssh.algorithm)


def ssh_config_path(config: BootstrapConfig) -> Path:
    """ssh_config that receives Host blocks. Independent of where the key lives."""
    if config.ssh.config_path:
        return Path(config.ssh.config_path).expanduser()
    return (DEFAULT_SSH_DIR / "config").expanduser()


def ssh_specs(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    settings = config.ssh
    if not settings.enabled:
        return []

    key_path = ssh_key_path(config)
    comment = settings.comment or config.git.user_email or "rigup"

    key_spec = ssh_key_spec(key_path, comment, settings.algorithm, runner=context.runner)
    if context.prompter is not None:
        question = f"Generate a new {settings.algorithm} SSH key at {key_path}?"
        key_spec = replace(key_spec, write=confirm_write(context.prompter, question, key_spec.write))

    specs = [key_spec]
    config_path = ssh_config_path(config)
    for host, options in settings.hosts.items():
        host_options = dict(options)
        host_options.setdefault("IdentityFile", str(key_path))
        specs.append(ssh_config_host_spec(config_path, host, host_options))
    return specs


def profile_specs(config: BootstrapConfig) -> list[SettingSpec]:
    path = Path(config.profile.path).expanduser() if config.profile.path else default_profile_path()
    return [profile_line_spec(path, line) for line in config.profile.lines if line.strip()]


def repository_specs(config: BootstrapConfig, context: PlanContext) -> list[SettingSpec]:
    return [clone_spec(context.git, repo.url, Path(repo.path)) for repo in config.repositories]
