"""Sequential batch runner.

Runs an ordered list of specs through the reconciler, one at a time. Ordinary
failures are recorded and the batch moves on; a critical spec that cannot be
applied halts the batch and every remaining spec is reported as not attempted.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .reconciler import reconcile
from .spec import Action, ErrorKind, ReconcileResult, SettingSpec

logger = logging.getLogger(__name__)

HALT_REASON_PREFIX = "not attempted: batch halted after"

# Exit codes returned by exit_code()
EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_HALTED = 2

STATUS_SYMBOLS = {
    Action.SKIPPED: "=",
    Action.APPLIED: "✓",
    Action.FAILED: "✗",
    Action.NOT_APPLICABLE: "-",
}


@dataclass(frozen=True)
class BatchSummary:
    """Aggregate view of a batch run.

    Attributes:
        counts: Number of results per action
        failed: Names of failed specs, in order
        halted: Whether a critical spec halted the batch
        halted_by: Name of the spec that halted the batch (if any)
    """

    counts: dict[Action, int]
    failed: list[str] = field(default_factory=list)
    halted: bool = False
    halted_by: Optional[str] = None

    @property
    def total(self) -> int:
        return sum(self.counts.values())


def _halts_batch(spec: SettingSpec, result: ReconcileResult) -> bool:
    """Whether a result on this spec must stop the batch."""
    if not spec.critical:
        return False
    if result.action is Action.FAILED:
        return result.error_kind is ErrorKind.WRITE_FAILED or result.error_kind is ErrorKind.READ_FAILED
    return result.error_kind is ErrorKind.PRECONDITION_MISSING


def run_all(
    specs: Sequence[SettingSpec],
    reconcile_fn: Callable[[SettingSpec], ReconcileResult] = reconcile,
) -> list[ReconcileResult]:
    """Reconcile specs sequentially in the given order.

    Args:
        specs: Ordered specs; ordering dependencies are the caller's job
        reconcile_fn: reconcile() for a real run, check() for a drift report

    Returns:
        One result per spec, in input order

    Example:
        >>> results = run_all([install_git, set_git_email])
        >>> [r.action for r in results]
        [<Action.APPLIED: 'applied'>, <Action.SKIPPED: 'skipped'>]
    """
    results: list[ReconcileResult] = []

    for index, spec in enumerate(specs):
        result = reconcile_fn(spec)
        results.append(result)

        if _halts_batch(spec, result):
            logger.error(f"Critical spec {spec.name} ended {result.action.value}; halting batch")
            reason = f"{HALT_REASON_PREFIX} {spec.name}"
            for remaining in specs[index + 1 :]:
                results.append(
                    ReconcileResult(
                        name=remaining.name,
                        action=Action.NOT_APPLICABLE,
                        reason=reason,
                        dry_run=result.dry_run,
                    )
                )
            break

    return results


def summarize(results: Sequence[ReconcileResult]) -> BatchSummary:
    """Count results per action and detect a halt."""
    counts: Counter[Action] = Counter(result.action for result in results)
    halted_by = None
    for result in results:
        if result.reason and result.reason.startswith(HALT_REASON_PREFIX):
            halted_by = result.reason[len(HALT_REASON_PREFIX) :].strip()
            break

    return BatchSummary(
        counts={action: counts.get(action, 0) for action in Action},
        failed=[result.name for result in results if result.action is Action.FAILED],
        halted=halted_by is not None,
        halted_by=halted_by,
    )


def exit_code(results: Sequence[ReconcileResult]) -> int:
    """Process exit status for a batch: 0 ok, 1 failures, 2 halted."""
    summary = summarize(results)
    if summary.halted:
        return EXIT_HALTED
    if summary.failed:
        return EXIT_FAILURES
    return EXIT_OK


def format_results(results: Sequence[ReconcileResult]) -> str:
    """Format results one per line for terminal output.

    Examples:
        >>> from rigup.core.spec import ReconcileResult, Action
        >>> print(format_results([ReconcileResult("git:user.name", Action.APPLIED, reason="was absent")]))
        ✓ git:user.name [applied] was absent
    """
    lines = []
    for result in results:
        symbol = STATUS_SYMBOLS[result.action]
        line = f"{symbol} {result.name} [{result.action.value}]"
        if result.reason:
            line = f"{line} {result.reason}"
        if result.error and result.error != result.reason:
            line = f"{line}: {result.error}"
        lines.append(line)
    return "\n".join(lines)


def format_summary(summary: BatchSummary) -> str:
    """Format a one-line summary of a batch run."""
    parts = [f"{summary.counts[action]} {action.value}" for action in Action if summary.counts[action]]
    line = f"{summary.total} specs: " + (", ".join(parts) if parts else "nothing to do")
    if summary.halted:
        line = f"{line} (halted after {summary.halted_by})"
    return line
