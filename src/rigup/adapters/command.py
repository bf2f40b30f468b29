"""External command execution shared by all adapters.

Every adapter talks to its tool (git, winget, ssh-keygen) through a
CommandRunner so tests can substitute a recording fake.
"""

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from rigup.exceptions import CommandError, PreconditionMissingError

logger = logging.getLogger(__name__)

# Default timeout for short queries (seconds)
QUERY_TIMEOUT = 30.0

# Installs and clones are network bound
LONG_TIMEOUT = 1800.0


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of an external command."""

    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        timeout: Optional[float] = QUERY_TIMEOUT,
        input_text: Optional[str] = None,
    ) -> CommandResult:  # pragma: no cover - protocol
        ...


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str],
    *,
    check: bool = True,
    timeout: Optional[float] = QUERY_TIMEOUT,
    input_text: Optional[str] = None,
) -> CommandResult:
    """Run a command with consistent logging.

    Args:
        argv: Command and arguments (never passed through a shell)
        check: Raise CommandError on non-zero exit
        timeout: Seconds before the command is killed
        input_text: Text fed to stdin

    Returns:
        CommandResult with captured output

    Raises:
        PreconditionMissingError: If the executable does not exist
        CommandError: On non-zero exit (check=True) or timeout
    """
    argv_list = list(argv)
    logger.debug(f"CMD {format_argv(argv_list)}")

    try:
        completed = subprocess.run(
            argv_list,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,  # Exit status handled below
        )
    except FileNotFoundError as e:
        raise PreconditionMissingError(f"{argv_list[0]} is not installed") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(argv_list, -1, f"timed out after {timeout}s") from e

    if completed.stdout:
        logger.debug(f"STDOUT {completed.stdout.strip()}")
    if completed.stderr:
        logger.debug(f"STDERR {completed.stderr.strip()}")

    result = CommandResult(
        argv=argv_list,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if check and not result.succeeded:
        raise CommandError(argv_list, result.returncode, result.stderr)
    return result


def command_exists(name: str) -> bool:
    """Check whether an executable is on PATH."""
    return shutil.which(name) is not None
