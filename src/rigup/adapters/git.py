"""Git configuration and repository clones.

Uses the git executable rather than editing ~/.gitconfig directly so includes,
scopes and platform quirks are handled by git itself.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from rigup.core.spec import Precondition, SettingSpec, ValueKind
from rigup.exceptions import CommandError, NotFoundError

from .command import LONG_TIMEOUT, CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)

VALID_SCOPES = ("global", "system", "local")

# `git config --get` exits 1 when the key is not set
GIT_CONFIG_MISSING_EXIT = 1

GIT_ON_PATH = Precondition("git on PATH", lambda: command_exists("git"))


class GitConfig:
    """Read and write git configuration entries.

    Example:
        >>> git = GitConfig()
        >>> git.set("init.defaultBranch", "main")
        >>> git.get("init.defaultBranch")
        'main'
    """

    def __init__(self, runner: CommandRunner = run_command, executable: str = "git"):
        self._runner = runner
        self._git = executable

    def get(self, key: str, scope: str = "global") -> str:
        """Return the configured value.

        Raises:
            NotFoundError: If the key is not set in the scope
            CommandError: For any other git failure
        """
        _check_scope(scope)
        result = self._runner([self._git, "config", f"--{scope}", "--get", key], check=False)
        if result.returncode == GIT_CONFIG_MISSING_EXIT:
            raise NotFoundError(key, f"git {scope} config")
        if not result.succeeded:
            raise CommandError(result.argv, result.returncode, result.stderr)
        return result.stdout.strip()

    def set(self, key: str, value: Any, scope: str = "global") -> None:
        _check_scope(scope)
        self._runner([self._git, "config", f"--{scope}", key, _format_value(value)])

    def clone(self, url: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._runner([self._git, "clone", url, str(path)], timeout=LONG_TIMEOUT)


def _check_scope(scope: str) -> None:
    if scope not in VALID_SCOPES:
        raise ValueError(f"Invalid git config scope: {scope}. Must be one of: {', '.join(VALID_SCOPES)}")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def git_config_spec(
    git: GitConfig,
    key: str,
    value: Any,
    *,
    scope: str = "global",
    kind: Optional[ValueKind] = None,
    precondition: Optional[Precondition] = GIT_ON_PATH,
    critical: bool = False,
) -> SettingSpec:
    """Build a spec for one git config entry.

    Booleans default to ValueKind.BOOLEAN so ``true`` and ``yes`` compare equal.
    """
    if kind is None:
        kind = ValueKind.BOOLEAN if isinstance(value, bool) else ValueKind.STRING
    return SettingSpec(
        name=f"git:{key}",
        read=lambda: git.get(key, scope),
        write=lambda target: git.set(key, target, scope),
        target=value,
        kind=kind,
        precondition=precondition,
        critical=critical,
        description=f"git config --{scope} {key} {_format_value(value)}",
    )


def clone_spec(
    git: GitConfig,
    url: str,
    path: Path,
    *,
    precondition: Optional[Precondition] = GIT_ON_PATH,
) -> SettingSpec:
    """Build a spec that clones a repository unless it is already checked out."""
    path = Path(path).expanduser()

    def read() -> bool:
        return (path / ".git").exists()

    def write(_target: bool) -> None:
        if path.exists() and any(path.iterdir()):
            raise FileExistsError(f"{path} exists and is not a git checkout")
        git.clone(url, path)

    return SettingSpec(
        name=f"clone:{path.name}",
        read=read,
        write=write,
        target=True,
        kind=ValueKind.BOOLEAN,
        precondition=precondition,
        description=f"git clone {url} {path}",
    )
