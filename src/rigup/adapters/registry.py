"""Windows registry settings store.

Registry paths use the PowerShell drive notation (``HKCU:\\Control Panel\\International``).
String values are written as REG_SZ, integer flags and booleans as REG_DWORD.
"""

import logging
from typing import Any, Optional, Protocol, Union

from rigup.core.spec import SettingSpec, ValueKind, to_bool, to_int
from rigup.core.version_gate import VersionGate
from rigup.exceptions import NotFoundError, PreconditionMissingError, WriteFailedError

try:  # Windows-only standard library module
    import winreg  # type: ignore
except ImportError:  # pragma: no cover - not available on Linux runners
    winreg = None  # type: ignore

logger = logging.getLogger(__name__)

RegistryValue = Union[str, int]

HIVE_NAMES = ("HKLM", "HKCU", "HKCR", "HKU", "HKCC")


class RegistryStore(Protocol):
    def get_value(self, path: str, value_name: str) -> RegistryValue:  # pragma: no cover - protocol
        ...

    def set_value(
        self, path: str, value_name: str, value: RegistryValue, kind: ValueKind
    ) -> None:  # pragma: no cover - protocol
        ...


def split_path(path: str) -> tuple[str, str]:
    """Split ``HKCU:\\Some\\Key`` into hive name and subkey.

    Raises:
        ValueError: If the path has no known hive prefix
    """
    cleaned = path.replace("/", "\\")
    marker = ":\\"
    if marker not in cleaned:
        raise ValueError(f"Invalid registry path: {path}")
    hive_name, subkey = cleaned.split(marker, 1)
    hive_name = hive_name.upper()
    if hive_name not in HIVE_NAMES:
        raise ValueError(f"Unsupported hive: {hive_name}")
    return hive_name, subkey.lstrip("\\")


def coerce_registry_value(value: Any, kind: ValueKind) -> RegistryValue:
    """Convert a target value to what the registry stores for its kind."""
    if kind is ValueKind.STRING:
        return str(value)
    if kind is ValueKind.BOOLEAN:
        return 1 if to_bool(value) else 0
    return to_int(value)


class WindowsRegistry:
    """Registry store backed by winreg."""

    def __init__(self) -> None:
        if winreg is None:
            raise PreconditionMissingError("the Windows registry is not available on this platform")

    def get_value(self, path: str, value_name: str) -> RegistryValue:
        hive, subkey = self._open_args(path)
        try:
            with winreg.OpenKey(hive, subkey) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
                return value
        except FileNotFoundError as e:
            raise NotFoundError(value_name, path) from e

    def set_value(self, path: str, value_name: str, value: RegistryValue, kind: ValueKind) -> None:
        hive, subkey = self._open_args(path)
        stored = coerce_registry_value(value, kind)
        value_type = winreg.REG_SZ if kind is ValueKind.STRING else winreg.REG_DWORD
        try:
            with winreg.CreateKeyEx(hive, subkey, 0, winreg.KEY_SET_VALUE) as key:
                winreg.SetValueEx(key, value_name, 0, value_type, stored)
        except OSError as e:
            raise WriteFailedError(f"Cannot write {path}\\{value_name}", e) from e
        logger.debug(f"Registry {path}\\{value_name} = {stored!r}")

    def _open_args(self, path: str) -> tuple[Any, str]:
        hive_name, subkey = split_path(path)
        hive_map = {
            "HKLM": winreg.HKEY_LOCAL_MACHINE,
            "HKCU": winreg.HKEY_CURRENT_USER,
            "HKCR": winreg.HKEY_CLASSES_ROOT,
            "HKU": winreg.HKEY_USERS,
            "HKCC": winreg.HKEY_CURRENT_CONFIG,
        }
        return hive_map[hive_name], subkey


def registry_spec(
    store: RegistryStore,
    path: str,
    value_name: str,
    target: Any,
    kind: ValueKind = ValueKind.STRING,
    *,
    name: Optional[str] = None,
    gate: Optional[VersionGate] = None,
    critical: bool = False,
    description: str = "",
) -> SettingSpec:
    """Build a spec for one registry value.

    Args:
        store: Registry implementation (WindowsRegistry or a fake)
        path: Key path, e.g. ``HKCU:\\Control Panel\\International``
        value_name: Value under the key, e.g. ``sShortDate``
        target: Desired value
        kind: Comparison and storage semantics
        name: Spec name (defaults to ``registry:<value_name>``)
        gate: Optional platform version requirement
        critical: Halt the batch if this spec fails
        description: Review text

    Returns:
        SettingSpec reading and writing through the store
    """
    return SettingSpec(
        name=name or f"registry:{value_name}",
        read=lambda: store.get_value(path, value_name),
        write=lambda value: store.set_value(path, value_name, coerce_registry_value(value, kind), kind),
        target=target,
        kind=kind,
        gate=gate,
        critical=critical,
        description=description or f"{path}\\{value_name} = {target}",
    )


class UnavailableRegistry:
    """Stand-in store for platforms without a registry.

    Every access raises PreconditionMissingError, so registry specs end up
    NotApplicable instead of failing.
    """

    def __init__(self, reason: str = "the Windows registry is not available on this platform"):
        self.reason = reason

    def get_value(self, path: str, value_name: str) -> RegistryValue:
        raise PreconditionMissingError(self.reason)

    def set_value(self, path: str, value_name: str, value: RegistryValue, kind: ValueKind) -> None:
        raise PreconditionMissingError(self.reason)


def open_registry() -> RegistryStore:
    """Return the real registry on Windows, UnavailableRegistry elsewhere."""
    if winreg is None:
        return UnavailableRegistry()
    return WindowsRegistry()
