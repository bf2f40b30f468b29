"""User-scope environment variables.

On Windows, persistent user variables live under ``HKCU:\\Environment``. They
are read and written through the same RegistryStore as other settings so a run
never depends on the process environment it was started with.
"""

import logging
import os

from rigup.core.spec import SettingSpec, ValueKind
from rigup.exceptions import NotFoundError

from .registry import RegistryStore, registry_spec

logger = logging.getLogger(__name__)

USER_ENVIRONMENT_KEY = r"HKCU:\Environment"
MACHINE_ENVIRONMENT_KEY = r"HKLM:\SYSTEM\CurrentControlSet\Control\Session Manager\Environment"


def env_var_spec(store: RegistryStore, name: str, value: str, *, critical: bool = False) -> SettingSpec:
    """Build a spec for one persistent user environment variable."""
    return registry_spec(
        store,
        USER_ENVIRONMENT_KEY,
        name,
        value,
        ValueKind.STRING,
        name=f"env:{name}",
        critical=critical,
        description=f"user environment {name}={value}",
    )


def refresh_process_path(store: RegistryStore) -> str:
    """Reload PATH for this process from the machine and user registry values.

    Installers update the persisted PATH but not the environment of the running
    process, so commands they provide are invisible to later specs until this
    runs.

    Returns:
        The new PATH value
    """
    parts: list[str] = []
    for key in (MACHINE_ENVIRONMENT_KEY, USER_ENVIRONMENT_KEY):
        try:
            value = store.get_value(key, "Path")
        except NotFoundError:
            continue
        for entry in str(value).split(os.pathsep):
            expanded = os.path.expandvars(entry.strip())
            if expanded and expanded not in parts:
                parts.append(expanded)

    if not parts:
        logger.debug("No PATH found in registry, keeping process PATH")
        return os.environ.get("PATH", "")

    new_path = os.pathsep.join(parts)
    os.environ["PATH"] = new_path
    logger.debug(f"Refreshed PATH ({len(parts)} entries)")
    return new_path
