"""SSH key pair generation and ~/.ssh/config host entries."""

import logging
from pathlib import Path
from typing import Optional

from rigup.core.spec import Precondition, SettingSpec, ValueKind

from .command import CommandRunner, command_exists, run_command
from .files import append_block_if_absent, file_contains_line

logger = logging.getLogger(__name__)

SUPPORTED_ALGORITHMS = ("ed25519", "rsa", "ecdsa")

DEFAULT_SSH_DIR = Path("~/.ssh")

SSH_KEYGEN_ON_PATH = Precondition("ssh-keygen on PATH", lambda: command_exists("ssh-keygen"))


def default_key_path(algorithm: str = "ed25519") -> Path:
    return (DEFAULT_SSH_DIR / f"id_{algorithm}").expanduser()


def key_pair_exists(path: Path) -> bool:
    """Both halves of the key pair are present."""
    return path.exists() and path.with_name(path.name + ".pub").exists()


def generate_key(
    algorithm: str,
    comment: str,
    path: Path,
    runner: CommandRunner = run_command,
    passphrase: str = "",
) -> Path:
    """Generate a key pair with ssh-keygen.

    Args:
        algorithm: Key type (ed25519, rsa, ecdsa)
        comment: Key comment, usually the git email
        path: Private key path; the public key is written next to it
        runner: Command runner
        passphrase: Key passphrase (empty for none)

    Returns:
        Path to the public key

    Raises:
        ValueError: If the algorithm is not supported
        FileExistsError: If a private key already exists at path
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported key algorithm: {algorithm}. Must be one of: {', '.join(SUPPORTED_ALGORITHMS)}")
    if path.exists():
        # ssh-keygen would prompt to overwrite
        raise FileExistsError(f"Refusing to overwrite existing key {path}")

    path.parent.mkdir(parents=True, exist_ok=True)
    runner(["ssh-keygen", "-t", algorithm, "-C", comment, "-f", str(path), "-N", passphrase])
    logger.info(f"Generated {algorithm} key {path}")
    return path.with_name(path.name + ".pub")


def read_public_key(path: Path) -> Optional[str]:
    """Return the public key text for a private key path, if present."""
    public = path.with_name(path.name + ".pub")
    if not public.exists():
        return None
    return public.read_text(encoding="utf-8").strip()


def ssh_key_spec(
    path: Path,
    comment: str,
    algorithm: str = "ed25519",
    *,
    runner: CommandRunner = run_command,
    precondition: Optional[Precondition] = SSH_KEYGEN_ON_PATH,
) -> SettingSpec:
    """Build a spec that generates a key pair when none exists."""
    path = Path(path).expanduser()

    def write(_target: bool) -> None:
        generate_key(algorithm, comment, path, runner)

    return SettingSpec(
        name=f"ssh:key:{path.name}",
        read=lambda: key_pair_exists(path),
        write=write,
        target=True,
        kind=ValueKind.BOOLEAN,
        precondition=precondition,
        description=f"generate {algorithm} key {path} ({comment})",
    )


def format_host_block(host: str, options: dict[str, str]) -> str:
    """Format an ssh_config Host block.

    Examples:
        >>> print(format_host_block("github.com", {"User": "git"}))
        Host github.com
            User git
    """
    lines = [f"Host {host}"]
    lines.extend(f"    {key} {value}" for key, value in options.items())
    return "\n".join(lines)


def ssh_config_host_spec(config_path: Path, host: str, options: dict[str, str]) -> SettingSpec:
    """Build a spec that adds a Host block to ssh_config when the host is missing.

    Existing blocks for the host are left alone even if their options differ.
    """
    config_path = Path(config_path).expanduser()
    marker = f"Host {host}"

    def write(_target: bool) -> None:
        append_block_if_absent(config_path, marker, format_host_block(host, options))

    return SettingSpec(
        name=f"ssh:config:{host}",
        read=lambda: file_contains_line(config_path, marker),
        write=write,
        target=True,
        kind=ValueKind.BOOLEAN,
        description=f"add '{marker}' to {config_path}",
    )
