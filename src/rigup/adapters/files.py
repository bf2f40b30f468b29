"""Profile and plain-text config files.

Lines are compared after stripping surrounding whitespace, so re-running a
batch never appends a duplicate of a line that is already present.
"""

import logging
from pathlib import Path
from typing import Optional

from rigup.core.spec import SettingSpec, ValueKind

logger = logging.getLogger(__name__)


def file_contains_line(path: Path, line: str) -> bool:
    """Check whether a file contains a line (whitespace-insensitive at the edges).

    Returns False when the file does not exist.
    """
    if not path.exists():
        return False
    wanted = line.strip()
    with path.open(encoding="utf-8", errors="replace") as f:
        return any(existing.strip() == wanted for existing in f)


def append_if_absent(path: Path, line: str) -> bool:
    """Append a line to a file unless it is already there.

    Creates the file and its parent directories when missing. Keeps the
    existing file ending intact: a newline is inserted first when the file
    does not end with one.

    Args:
        path: File to update
        line: Line to add (without trailing newline)

    Returns:
        True if the line was appended, False if it was already present
    """
    if file_contains_line(path, line):
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    prefix = ""
    if path.exists():
        content = path.read_text(encoding="utf-8", errors="replace")
        if content and not content.endswith("\n"):
            prefix = "\n"

    with path.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{line.rstrip()}\n")
    logger.debug(f"Appended to {path}: {line.strip()}")
    return True


def append_block_if_absent(path: Path, marker: str, block: str) -> bool:
    """Append a multi-line block unless its first line (the marker) is present."""
    if file_contains_line(path, marker):
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    prefix = ""
    if path.exists():
        content = path.read_text(encoding="utf-8", errors="replace")
        if content and not content.endswith("\n"):
            prefix = "\n"
        if content.strip():
            prefix += "\n"
    with path.open("a", encoding="utf-8") as f:
        f.write(prefix + block.rstrip("\n") + "\n")
    return True


def profile_line_spec(path: Path, line: str, *, name: Optional[str] = None) -> SettingSpec:
    """Build a spec ensuring a line is present in a shell profile."""
    path = Path(path).expanduser()

    def write(_target: bool) -> None:
        append_if_absent(path, line)

    return SettingSpec(
        name=name or f"profile:{path.name}:{line.strip()[:40]}",
        read=lambda: file_contains_line(path, line),
        write=write,
        target=True,
        kind=ValueKind.BOOLEAN,
        description=f"append to {path}: {line.strip()}",
    )
