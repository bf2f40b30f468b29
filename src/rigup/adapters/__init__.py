"""Read/write adapters for external systems.

Each adapter wraps one collaborator behind a narrow capability and exposes a
*_spec() factory returning a SettingSpec:
- command: External command runner shared by the other adapters
- registry: Windows registry settings store
- environment: User-scope environment variables
- git: Git config entries and clones
- packages: winget package installs
- ssh: Key pair generation and ssh_config host entries
- files: Profile lines (append-if-absent)
- prompts: Interactive console prompts
"""

from rigup.adapters.command import CommandResult, command_exists, run_command
from rigup.adapters.environment import env_var_spec, refresh_process_path
from rigup.adapters.files import append_if_absent, file_contains_line, profile_line_spec
from rigup.adapters.git import GitConfig, clone_spec, git_config_spec
from rigup.adapters.packages import WingetPackageManager, package_spec
from rigup.adapters.prompts import ConsolePrompter, Prompter, confirm_write
from rigup.adapters.registry import RegistryStore, UnavailableRegistry, WindowsRegistry, open_registry, registry_spec
from rigup.adapters.ssh import generate_key, ssh_config_host_spec, ssh_key_spec

__all__ = [
    # Command
    "CommandResult",
    "command_exists",
    "run_command",
    # Registry / environment
    "RegistryStore",
    "UnavailableRegistry",
    "WindowsRegistry",
    "open_registry",
    "registry_spec",
    "env_var_spec",
    "refresh_process_path",
    # Git
    "GitConfig",
    "clone_spec",
    "git_config_spec",
    # Packages
    "WingetPackageManager",
    "package_spec",
    # SSH
    "generate_key",
    "ssh_config_host_spec",
    "ssh_key_spec",
    # Files
    "append_if_absent",
    "file_contains_line",
    "profile_line_spec",
    # Prompts
    "ConsolePrompter",
    "Prompter",
    "confirm_write",
]
