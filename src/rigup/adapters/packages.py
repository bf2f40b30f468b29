"""Package installation through winget.

A package spec has a boolean target (installed). The read side asks winget
first; when the package also provides a command, finding that command on PATH
counts as installed so tools installed by other means are not reinstalled.
"""

import logging
from typing import Callable, Optional, Protocol

from rigup.core.spec import Precondition, SettingSpec, ValueKind

from .command import LONG_TIMEOUT, CommandRunner, command_exists, run_command

logger = logging.getLogger(__name__)


class PackageManager(Protocol):
    def query(self, package_id: str) -> bool:  # pragma: no cover - protocol
        ...

    def install(self, package_id: str) -> None:  # pragma: no cover - protocol
        ...


class WingetPackageManager:
    """Windows Package Manager wrapper."""

    def __init__(self, runner: CommandRunner = run_command, executable: str = "winget"):
        self._runner = runner
        self._winget = executable

    def query(self, package_id: str) -> bool:
        """Return True if the package is installed.

        winget exits non-zero and prints "No installed package found" when the
        id is unknown locally.
        """
        result = self._runner(
            [self._winget, "list", "--id", package_id, "--exact", "--accept-source-agreements"],
            check=False,
        )
        if not result.succeeded:
            return False
        return package_id.lower() in result.stdout.lower()

    def install(self, package_id: str) -> None:
        logger.info(f"Installing {package_id} (this can take a while)")
        self._runner(
            [
                self._winget,
                "install",
                "--id",
                package_id,
                "--exact",
                "--silent",
                "--accept-package-agreements",
                "--accept-source-agreements",
            ],
            timeout=LONG_TIMEOUT,
        )


def package_spec(
    manager: PackageManager,
    package_id: str,
    *,
    command: Optional[str] = None,
    critical: bool = False,
    precondition: Optional[Precondition] = None,
    after_install: Optional[Callable[[], None]] = None,
) -> SettingSpec:
    """Build a spec that installs a package when it is missing.

    Args:
        manager: Package manager implementation
        package_id: Manager-specific id (e.g., ``Git.Git``)
        command: Executable the package provides (e.g., ``git``)
        critical: Halt the batch if the install fails
        precondition: Requirement checked before querying
        after_install: Called after a successful install (e.g., PATH refresh)

    A missing winget surfaces as PreconditionMissingError from the runner.
    """

    def read() -> bool:
        if command and command_exists(command):
            return True
        return manager.query(package_id)

    def write(_target: bool) -> None:
        manager.install(package_id)
        if after_install is not None:
            after_install()

    return SettingSpec(
        name=f"package:{package_id}",
        read=read,
        write=write,
        target=True,
        kind=ValueKind.BOOLEAN,
        precondition=precondition,
        critical=critical,
        description=f"install {package_id}" + (f" (provides {command})" if command else ""),
    )
