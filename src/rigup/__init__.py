"""
rigup - idempotent workstation bootstrap.

Package structure:
- rigup.core: Reconciliation engine (spec, version gate, reconciler, batch)
- rigup.adapters: Read/write capabilities for registry, git, ssh, files, packages
- rigup.setup: Bootstrap config, plan builder and wizard

Public API:
- reconcile(): Bring one SettingSpec to its target
- run_all(): Reconcile an ordered batch of specs
- SettingSpec / ReconcileResult / Action: Data model
"""

__version__ = "0.1.0"

from rigup.core.batch import run_all  # noqa: E402
from rigup.core.reconciler import check, reconcile  # noqa: E402
from rigup.core.spec import Action, ReconcileResult, SettingSpec, ValueKind  # noqa: E402
from rigup.core.version_gate import VersionGate, applicable  # noqa: E402

__all__ = [
    "reconcile",
    "check",
    "run_all",
    "Action",
    "ReconcileResult",
    "SettingSpec",
    "ValueKind",
    "VersionGate",
    "applicable",
]
