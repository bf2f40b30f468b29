"""Idempotent check-and-apply reconciliation.

reconcile() compares the current value of a setting with its target and writes
only when they differ. Failures are captured in the returned ReconcileResult
instead of being raised, so a batch of unrelated specs keeps making progress.
"""

import logging
from dataclasses import replace
from typing import Any, Optional

from rigup.exceptions import NotFoundError, PreconditionMissingError, UserAbortedError

from .spec import Action, ErrorKind, ReconcileResult, SettingSpec, values_equal

logger = logging.getLogger(__name__)

_ABSENT = object()


def reconcile(spec: SettingSpec) -> ReconcileResult:
    """Bring one setting to its target value.

    Args:
        spec: Setting to reconcile

    Returns:
        ReconcileResult; never raises for read/write failures

    Example:
        >>> store = {"flag": "0"}
        >>> spec = SettingSpec("flag", lambda: store.get("flag"), lambda v: store.update(flag=v), "1")
        >>> reconcile(spec).action
        <Action.APPLIED: 'applied'>
        >>> reconcile(spec).action
        <Action.SKIPPED: 'skipped'>
    """
    blocked = _evaluate_guards(spec)
    if blocked is not None:
        return blocked

    current = _read_current(spec)
    if isinstance(current, ReconcileResult):
        return current

    previous = None if current is _ABSENT else current

    if current is not _ABSENT and values_equal(current, spec.target, spec.kind):
        logger.debug(f"{spec.name}: already matches {spec.target!r}")
        return ReconcileResult(name=spec.name, action=Action.SKIPPED, previous_value=previous, reason="already matches")

    try:
        spec.write(spec.target)
    except PreconditionMissingError as e:
        return _precondition_missing(spec, str(e))
    except UserAbortedError as e:
        logger.warning(f"{spec.name}: declined by user")
        return ReconcileResult(
            name=spec.name,
            action=Action.SKIPPED,
            previous_value=previous,
            error=str(e) or None,
            error_kind=ErrorKind.USER_ABORTED,
            reason="declined by user",
        )
    except Exception as e:
        logger.warning(f"{spec.name}: write failed: {e}")
        return ReconcileResult(
            name=spec.name,
            action=Action.FAILED,
            previous_value=previous,
            error=str(e),
            error_kind=ErrorKind.WRITE_FAILED,
            reason="write failed",
        )

    if current is _ABSENT:
        logger.info(f"{spec.name}: set to {spec.target!r} (was absent)")
    else:
        logger.info(f"{spec.name}: changed {previous!r} -> {spec.target!r}")

    return ReconcileResult(
        name=spec.name,
        action=Action.APPLIED,
        previous_value=previous,
        reason="was absent" if current is _ABSENT else "value differed",
    )


def check(spec: SettingSpec) -> ReconcileResult:
    """Report whether a spec would be applied, without writing.

    Args:
        spec: Setting to inspect

    Returns:
        ReconcileResult with dry_run=True. Drift is reported as APPLIED with
        reason "would apply".
    """
    blocked = _evaluate_guards(spec)
    if blocked is not None:
        return _as_dry_run(blocked)

    current = _read_current(spec)
    if isinstance(current, ReconcileResult):
        return _as_dry_run(current)

    previous = None if current is _ABSENT else current
    if current is not _ABSENT and values_equal(current, spec.target, spec.kind):
        return ReconcileResult(
            name=spec.name, action=Action.SKIPPED, previous_value=previous, reason="already matches", dry_run=True
        )
    return ReconcileResult(
        name=spec.name, action=Action.APPLIED, previous_value=previous, reason="would apply", dry_run=True
    )


def _evaluate_guards(spec: SettingSpec) -> Optional[ReconcileResult]:
    """Evaluate the version gate and precondition of a spec.

    Returns:
        NOT_APPLICABLE result when the spec must not be attempted, else None
    """
    if spec.gate is not None and not spec.gate.applicable:
        reason = spec.gate.describe()
        logger.warning(f"{spec.name}: not applicable ({reason})")
        return ReconcileResult(name=spec.name, action=Action.NOT_APPLICABLE, reason=reason)

    if spec.precondition is not None:
        try:
            satisfied = spec.precondition.satisfied()
        except Exception as e:
            logger.warning(f"{spec.name}: precondition check raised: {e}")
            satisfied = False
        if not satisfied:
            return _precondition_missing(spec, spec.precondition.description)

    return None


def _read_current(spec: SettingSpec) -> Any:
    """Read the current value.

    Returns:
        The value, _ABSENT for missing settings, or a FAILED result
    """
    try:
        value = spec.read()
    except NotFoundError:
        return _ABSENT
    except PreconditionMissingError as e:
        return _precondition_missing(spec, str(e))
    except Exception as e:
        logger.warning(f"{spec.name}: read failed: {e}")
        return ReconcileResult(
            name=spec.name,
            action=Action.FAILED,
            error=str(e),
            error_kind=ErrorKind.READ_FAILED,
            reason="read failed",
        )
    return _ABSENT if value is None else value


def _as_dry_run(result: ReconcileResult) -> ReconcileResult:
    return replace(result, dry_run=True)


def _precondition_missing(spec: SettingSpec, description: str) -> ReconcileResult:
    reason = f"missing precondition: {description}"
    logger.warning(f"{spec.name}: {reason}")
    return ReconcileResult(
        name=spec.name,
        action=Action.NOT_APPLICABLE,
        error=reason,
        error_kind=ErrorKind.PRECONDITION_MISSING,
        reason=reason,
    )
