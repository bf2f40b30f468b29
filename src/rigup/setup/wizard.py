"""Wizard helpers for `rigup init`.

Provides the interactive flow that builds a BootstrapConfig, plus display
formatting and validation functions. All console I/O goes through a Prompter.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from rigup.adapters.prompts import Prompter
from rigup.core.spec import SettingSpec

from .config import (
    DATETIME_PRESETS,
    DEFAULT_DATETIME_PRESET,
    BootstrapConfig,
    GitSettings,
    PackageEntry,
)
from .env_detector import DetectionResult

PRESET_ORDER = ["iso", "us", "eu"]

# Offered by the wizard; git is critical because later steps configure it
DEFAULT_PACKAGES = [
    PackageEntry(id="Git.Git", command="git", critical=True),
    PackageEntry(id="Microsoft.PowerShell", command="pwsh"),
    PackageEntry(id="Microsoft.VisualStudioCode", command="code"),
]


def run_wizard(
    prompter: Prompter,
    detection: Optional[DetectionResult] = None,
    existing: Optional[BootstrapConfig] = None,
) -> BootstrapConfig:
    """Ask the operator for the bootstrap settings.

    Args:
        prompter: Console or scripted prompter
        detection: Detected tools; installed tools are not offered for install
        existing: Previous config used for default answers

    Returns:
        New BootstrapConfig (not yet validated or written)

    Raises:
        UserAbortedError: If the operator aborts a prompt
    """
    base = existing or BootstrapConfig()

    user_name = prompter.ask("Git user name", base.git.user_name or None)
    user_email = prompter.ask("Git email", base.git.user_email or None)
    default_branch = prompter.ask("Default branch for new repositories", base.git.default_branch or "main")

    presets = [(name, DATETIME_PRESETS[name]) for name in PRESET_ORDER]
    preset_index = prompter.choose(
        "How should dates and times look?",
        [f"{name}: {preset['description']} (e.g. {preset['hint']})" for name, preset in presets],
        PRESET_ORDER.index(base.datetime.preset) if base.datetime.preset in PRESET_ORDER else 0,
    )
    show_seconds = prompter.confirm("Show seconds in the taskbar clock (Windows 11 22H2+)?", base.datetime.show_seconds)

    generate_ssh = prompter.confirm("Set up an SSH key for GitHub?", base.ssh.enabled)

    packages = list(base.packages)
    known_ids = {entry.id for entry in packages}
    for entry in DEFAULT_PACKAGES:
        if entry.id in known_ids:
            continue
        if detection is not None and entry.command and detection.is_found(entry.command):
            continue
        if prompter.confirm(f"Install {entry.id}?", True):
            packages.append(entry)

    return BootstrapConfig(
        git=GitSettings(
            user_name=user_name,
            user_email=user_email,
            default_branch=default_branch,
            autocrlf=base.git.autocrlf,
            extra=dict(base.git.extra),
        ),
        ssh=replace(base.ssh, enabled=generate_ssh, hosts=dict(base.ssh.hosts)),
        # Explicit format overrides from an earlier config survive a preset change
        datetime=replace(base.datetime, preset=PRESET_ORDER[preset_index], show_seconds=show_seconds),
        packages=packages,
        environment=dict(base.environment),
        profile=base.profile,
        repositories=list(base.repositories),
    )


def format_config_review(config: BootstrapConfig, config_path: Path) -> str:
    """Format config choices for the review step.

    Args:
        config: Wizard result
        config_path: Where the config will be written

    Returns:
        Formatted summary of configuration
    """
    lines = ["Configuration Summary:"]

    lines.append(f"✓ Git identity: {config.git.user_name} <{config.git.user_email}>")
    lines.append(f"✓ Default branch: {config.git.default_branch}")

    preset = DATETIME_PRESETS.get(config.datetime.preset, DATETIME_PRESETS[DEFAULT_DATETIME_PRESET])
    lines.append(f"✓ Date/time: {config.datetime.preset} ({preset['description']})")

    seconds_status = "Enabled" if config.datetime.show_seconds else "Disabled"
    symbol = "✓" if config.datetime.show_seconds else "✗"
    lines.append(f"{symbol} Seconds in clock: {seconds_status}")

    ssh_status = f"Enabled ({config.ssh.algorithm})" if config.ssh.enabled else "Disabled"
    symbol = "✓" if config.ssh.enabled else "✗"
    lines.append(f"{symbol} SSH key: {ssh_status}")

    if config.packages:
        lines.append(f"✓ Packages: {', '.join(entry.id for entry in config.packages)}")
    else:
        lines.append("✗ Packages: none")

    lines.append("")
    lines.append(f"Config will be written to: {config_path}")

    return "\n".join(lines)


def format_plan_review(specs: Sequence[SettingSpec]) -> str:
    """List what a run will reconcile, in order.

    Examples:
        >>> from rigup.core.spec import SettingSpec
        >>> spec = SettingSpec("git:user.name", lambda: None, lambda v: None, "Ada", description="set name")
        >>> print(format_plan_review([spec]))
        Plan (1 specs):
          1. git:user.name - set name
    """
    lines = [f"Plan ({len(specs)} specs):"]
    for number, spec in enumerate(specs, 1):
        flags = []
        if spec.critical:
            flags.append("critical")
        if spec.gate is not None:
            flags.append("gated")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        description = f" - {spec.description}" if spec.description else ""
        lines.append(f"  {number}. {spec.name}{description}{suffix}")
    return "\n".join(lines)


def validate_wizard_config(config: BootstrapConfig) -> list[str]:
    """Validate wizard answers before the config is written.

    Returns:
        List of validation errors (empty if valid)

    Examples:
        >>> from rigup.setup.config import BootstrapConfig, GitSettings
        >>> validate_wizard_config(BootstrapConfig(git=GitSettings("Ada", "ada@example.com")))
        []
        >>> errors = validate_wizard_config(BootstrapConfig(git=GitSettings("", "ada")))
        >>> len(errors)
        2
    """
    errors: list[str] = []

    if not config.git.user_name.strip():
        errors.append("Git user name is required")

    if "@" not in config.git.user_email:
        errors.append(f"Invalid git email: {config.git.user_email!r}")

    if config.datetime.preset not in DATETIME_PRESETS:
        errors.append(
            f"Invalid date/time preset: {config.datetime.preset}. Must be one of: {', '.join(DATETIME_PRESETS)}"
        )

    return errors
