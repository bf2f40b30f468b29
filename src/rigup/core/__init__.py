"""Reconciliation engine.

This module contains the essential components for check-and-apply runs:
- spec: SettingSpec, ValueKind and ReconcileResult data model
- version_gate: Platform version gating
- reconciler: Single-spec reconcile() and check()
- batch: Sequential batch runner with critical-spec halting
"""

from rigup.core.batch import BatchSummary, exit_code, format_results, run_all, summarize
from rigup.core.reconciler import check, reconcile
from rigup.core.spec import Action, ErrorKind, Precondition, ReconcileResult, SettingSpec, ValueKind
from rigup.core.version_gate import VersionGate, applicable, detect_platform_build, parse_version

__all__ = [
    # Spec
    "Action",
    "ErrorKind",
    "Precondition",
    "ReconcileResult",
    "SettingSpec",
    "ValueKind",
    # Version gate
    "VersionGate",
    "applicable",
    "detect_platform_build",
    "parse_version",
    # Reconciler
    "check",
    "reconcile",
    # Batch
    "BatchSummary",
    "exit_code",
    "format_results",
    "run_all",
    "summarize",
]
