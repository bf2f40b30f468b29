"""Platform version gating.

A VersionGate decides whether a spec is attempted at all. Gates are pure value
objects: the comparison never touches the system. Detection of the running
platform build lives in detect_platform_build() and happens once per run.
"""

import logging
import platform
import re
import sys
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)

Version = tuple[int, ...]
VersionLike = Union[int, str, tuple[int, ...]]

# Windows 11 22H2: first build with seconds in the taskbar clock
WINDOWS_11_22H2_BUILD = 22621


def parse_version(value: VersionLike) -> Version:
    """Parse a platform version into a tuple of integers.

    Args:
        value: Build number, dotted version string, or tuple

    Returns:
        Tuple of version components

    Raises:
        ValueError: If no numeric component can be found

    Examples:
        >>> parse_version(22621)
        (22621,)
        >>> parse_version("10.0.22621")
        (10, 0, 22621)
        >>> parse_version("22621.2861")
        (22621, 2861)
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid version: {value!r}")
    if isinstance(value, int):
        return (value,)
    if isinstance(value, tuple):
        return tuple(int(part) for part in value)

    parts = re.findall(r"\d+", str(value))
    if not parts:
        raise ValueError(f"Invalid version: {value!r}")
    return tuple(int(part) for part in parts)


def compare_versions(left: Version, right: Version) -> int:
    """Compare two versions, padding the shorter one with zeros.

    Returns:
        -1, 0 or 1 like a classic cmp()
    """
    width = max(len(left), len(right))
    padded_left = left + (0,) * (width - len(left))
    padded_right = right + (0,) * (width - len(right))
    if padded_left < padded_right:
        return -1
    if padded_left > padded_right:
        return 1
    return 0


def build_number(version: Version) -> int:
    """Extract the build component of a Windows version tuple.

    Full versions are major.minor.build[.revision]; short ones are
    build[.revision].

    Examples:
        >>> build_number((10, 0, 22631))
        22631
        >>> build_number((22621, 2861))
        22621
    """
    if len(version) >= 3:
        return version[2]
    return version[0]


@dataclass(frozen=True)
class VersionGate:
    """Minimum platform version required by a spec.

    Attributes:
        minimum_version: Lowest supported version
        actual_version: Detected platform version (None if unknown)
    """

    minimum_version: Version
    actual_version: Optional[Version]

    @classmethod
    def for_build(cls, minimum: VersionLike, actual: Optional[VersionLike]) -> "VersionGate":
        """Build a gate from loosely typed versions (build numbers or strings).

        When one side is a bare build number, the other is reduced to its build
        component so that 22621 and "10.0.22631" compare as builds.
        """
        minimum_version = parse_version(minimum)
        actual_version = parse_version(actual) if actual is not None else None
        if actual_version is not None and (len(minimum_version) == 1) != (len(actual_version) == 1):
            minimum_version = (build_number(minimum_version),)
            actual_version = (build_number(actual_version),)
        return cls(minimum_version=minimum_version, actual_version=actual_version)

    @property
    def applicable(self) -> bool:
        """Whether the actual version satisfies the minimum."""
        return applicable(self)

    def describe(self) -> str:
        """Human-readable explanation used as a NotApplicable reason."""
        minimum = ".".join(str(p) for p in self.minimum_version)
        if self.actual_version is None:
            return f"requires platform version {minimum}, actual version unknown"
        actual = ".".join(str(p) for p in self.actual_version)
        return f"requires platform version {minimum}, found {actual}"


def applicable(gate: VersionGate) -> bool:
    """Return True when gate.actual_version >= gate.minimum_version.

    An unknown actual version is never applicable.

    Examples:
        >>> applicable(VersionGate.for_build(22621, 22000))
        False
        >>> applicable(VersionGate.for_build(22621, 22621))
        True
    """
    if gate.actual_version is None:
        return False
    return compare_versions(gate.actual_version, gate.minimum_version) >= 0


def detect_platform_build() -> Optional[int]:
    """Detect the Windows build number of the running system.

    Returns:
        Build number (e.g., 22631) or None when not running on Windows
    """
    if sys.platform != "win32":
        return None

    try:
        return sys.getwindowsversion().build  # type: ignore[attr-defined]
    except AttributeError:
        pass

    # Fallback: platform.version() returns "10.0.22631"
    try:
        return build_number(parse_version(platform.version()))
    except ValueError as e:
        logger.warning(f"Could not detect Windows build: {e}")
        return None
