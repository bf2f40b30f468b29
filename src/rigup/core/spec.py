"""Setting specs and reconciliation results.

This module defines the declarative data model driven by the reconciler:
- ValueKind: How current and target values are compared
- SettingSpec: Named target value plus read/write capabilities
- Precondition: Named check that must hold before a spec is attempted
- ReconcileResult: Terminal outcome of one spec in one pass
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from .version_gate import VersionGate

TRUE_STRINGS = frozenset({"1", "true", "yes", "on", "enabled"})
FALSE_STRINGS = frozenset({"0", "false", "no", "off", "disabled", ""})


class ValueKind(Enum):
    """Comparison semantics for a setting value.

    Kinds:
        STRING: Exact string match ("yyyy-MM-dd" != "yyyy-M-d")
        INTEGER_FLAG: Numeric equality ("1" == 1)
        BOOLEAN: Normalized true/false ("true" == 1 == "yes")
    """

    STRING = "string"
    INTEGER_FLAG = "integer_flag"
    BOOLEAN = "boolean"


class Action(Enum):
    """Terminal state of a spec after a reconciliation pass."""

    SKIPPED = "skipped"
    APPLIED = "applied"
    FAILED = "failed"
    NOT_APPLICABLE = "not_applicable"


class ErrorKind(Enum):
    """Error taxonomy attached to non-successful results."""

    NOT_FOUND = "not_found"
    READ_FAILED = "read_failed"
    WRITE_FAILED = "write_failed"
    PRECONDITION_MISSING = "precondition_missing"
    USER_ABORTED = "user_aborted"


def to_bool(value: Any) -> bool:
    """Normalize a boolean-ish value.

    Raises:
        ValueError: If the value cannot be interpreted as a boolean

    Examples:
        >>> to_bool("1"), to_bool("yes"), to_bool(0), to_bool("False")
        (True, True, False, False)
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f"Not a boolean value: {value!r}")


def to_int(value: Any) -> int:
    """Normalize an integer flag (registry DWORDs come back as int, git as str)."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text, 16) if text.lower().startswith("0x") else int(text)


def values_equal(current: Any, target: Any, kind: ValueKind) -> bool:
    """Compare current and target using kind-specific equality.

    Values that cannot be normalized for the kind compare unequal, which makes
    the reconciler overwrite them with the target.

    Examples:
        >>> values_equal("1", 1, ValueKind.INTEGER_FLAG)
        True
        >>> values_equal("true", "1", ValueKind.BOOLEAN)
        True
        >>> values_equal("HH:mm", "HH:mm:ss", ValueKind.STRING)
        False
    """
    if kind is ValueKind.STRING:
        return str(current) == str(target)
    try:
        if kind is ValueKind.INTEGER_FLAG:
            return to_int(current) == to_int(target)
        return to_bool(current) == to_bool(target)
    except ValueError:
        return False


@dataclass(frozen=True)
class Precondition:
    """A named check that must pass before a spec is attempted.

    Attributes:
        description: What is required (e.g., "git on PATH")
        check: Callable returning True when the requirement is met
    """

    description: str
    check: Callable[[], bool]

    def satisfied(self) -> bool:
        return bool(self.check())


@dataclass(frozen=True)
class SettingSpec:
    """Declarative target state for one setting.

    Attributes:
        name: Unique identifier shown in results (e.g., "git:user.email")
        read: Returns the current value, None, or raises NotFoundError when absent
        write: Applies the target value; raises on failure
        target: Desired value
        kind: Comparison semantics
        gate: Optional platform version requirement
        precondition: Optional requirement checked before reading
        critical: Halt the batch if this spec cannot be applied
        description: Human-readable summary for review output

    Example:
        >>> values = {}
        >>> spec = SettingSpec(
        ...     name="demo",
        ...     read=lambda: values.get("demo"),
        ...     write=lambda v: values.__setitem__("demo", v),
        ...     target="on",
        ... )
    """

    name: str
    read: Callable[[], Any]
    write: Callable[[Any], None]
    target: Any
    kind: ValueKind = ValueKind.STRING
    gate: Optional[VersionGate] = None
    precondition: Optional[Precondition] = None
    critical: bool = False
    description: str = ""

    def __post_init__(self):
        """Validate spec structure after initialization."""
        if not self.name:
            raise ValueError("Spec name cannot be empty")
        if not isinstance(self.kind, ValueKind):
            raise ValueError(f"kind must be ValueKind enum, got {type(self.kind)}")
        if not callable(self.read) or not callable(self.write):
            raise ValueError(f"Spec {self.name} needs callable read and write capabilities")


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling a single spec.

    Attributes:
        name: Spec name
        action: Terminal state
        previous_value: Value read before writing (None when absent or not read)
        error: Error message for failed results
        error_kind: Error taxonomy entry (None on plain success/skip)
        reason: Why the spec ended in this state ("already matches", ...)
        dry_run: True when produced by check() instead of reconcile()
    """

    name: str
    action: Action
    previous_value: Optional[Any] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    reason: Optional[str] = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """True unless the spec failed."""
        return self.action is not Action.FAILED
