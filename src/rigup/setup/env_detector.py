"""Environment detection for the bootstrap wizard and `rigup detect`.

Looks up the command-line tools the bootstrap plan relies on and asks each one
for its version. A tool counts as installed when shutil.which() finds it; the
version is informational and may be None.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# git/ssh/winget/pwsh are used by plan steps; code is offered by the wizard
SUPPORTED_TOOLS = ["git", "ssh", "winget", "pwsh", "code"]

# Flag printing the version, per tool (default: --version)
VERSION_ARGS = {
    "ssh": ["-V"],
}

VERSION_CHECK_TIMEOUT = 2.0

SSH_VERSION_PATTERN = re.compile(r"OpenSSH_(?:for_Windows_)?(\d+\.\d+\w*)")
DOTTED_VERSION_PATTERN = re.compile(r"(\d+\.\d+\.\d+(?:[.-]\S+)?)")


@dataclass(frozen=True)
class ToolInfo:
    """A tool looked up on PATH.

    Attributes:
        name: Command name (git, ssh, winget, pwsh, code)
        path: Absolute path to the executable (None if not on PATH)
        version: Version string (None if missing or unparseable)
    """

    name: str
    path: Optional[str] = None
    version: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.path is not None


@dataclass(frozen=True)
class DetectionResult:
    """Tools keyed by name, in the order they were checked."""

    tools: dict[str, ToolInfo]

    @property
    def total_found(self) -> int:
        return sum(1 for tool in self.tools.values() if tool.found)

    @property
    def total_checked(self) -> int:
        return len(self.tools)

    def is_found(self, name: str) -> bool:
        tool = self.tools.get(name)
        return tool is not None and tool.found


def detect_tools(tool_names: Optional[list[str]] = None) -> DetectionResult:
    """Detect which tools are available.

    Args:
        tool_names: Tools to check (defaults to SUPPORTED_TOOLS)

    Returns:
        DetectionResult with paths and versions

    Example:
        >>> result = detect_tools()
        >>> if result.is_found("git"):
        ...     print(f"git {result.tools['git'].version}")
    """
    names = list(tool_names) if tool_names is not None else list(SUPPORTED_TOOLS)
    return DetectionResult(tools={name: detect_tool(name) for name in names})


def detect_tool(name: str) -> ToolInfo:
    """Look up one tool; lookup errors count as not installed."""
    try:
        path = shutil.which(name)
    except OSError as e:
        logger.warning(f"Error detecting {name}: {e}")
        return ToolInfo(name)

    if path is None:
        logger.debug(f"{name} not on PATH")
        return ToolInfo(name)

    version = get_tool_version(name, path)
    logger.debug(f"Found {name} at {path} (version {version or 'unknown'})")
    return ToolInfo(name, path, version)


def get_tool_version(tool_name: str, tool_path: str) -> Optional[str]:
    """Get version string for a tool.

    Runs `{tool} --version` (`ssh -V`). ssh prints its banner on stderr, so
    stderr is parsed when stdout is empty. Timeouts, OS errors, non-zero exits
    and unparseable output all give None.
    """
    args = VERSION_ARGS.get(tool_name, ["--version"])
    try:
        result = subprocess.run(
            [tool_path, *args],
            capture_output=True,
            text=True,
            timeout=VERSION_CHECK_TIMEOUT,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"{tool_name} version check timed out after {VERSION_CHECK_TIMEOUT}s")
        return None
    except OSError as e:
        logger.warning(f"Error getting {tool_name} version: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{tool_name} {' '.join(args)} exited with {result.returncode}")
        return None

    output = (result.stdout or "").strip() or (result.stderr or "").strip()
    version = _parse_version_string(tool_name, output)
    if version is None:
        logger.debug(f"Could not parse version from {tool_name} output: {output!r}")
    return version


def _parse_version_string(tool_name: str, output: str) -> Optional[str]:
    """Pull a version out of a tool's version banner.

    Examples:
        >>> _parse_version_string("git", "git version 2.43.0.windows.1")
        '2.43.0.windows.1'
        >>> _parse_version_string("winget", "v1.7.10861")
        '1.7.10861'
        >>> _parse_version_string("ssh", "OpenSSH_for_Windows_8.6p1, LibreSSL 3.4.3")
        '8.6p1'
        >>> _parse_version_string("code", "1.85.1\\n0ee08df0\\nx64")
        '1.85.1'
    """
    if not output:
        return None

    if tool_name == "ssh":
        match = SSH_VERSION_PATTERN.search(output)
        return match.group(1) if match else None

    match = DOTTED_VERSION_PATTERN.search(output)
    if match:
        return match.group(1)

    first_line = output.splitlines()[0].strip()
    if re.match(r"^\d+\.\d+", first_line):
        return first_line
    return None
