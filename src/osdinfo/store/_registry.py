"""Hierarchical key/value (registry) stores.

Only string values are ever written.  Paths are hive-rooted and accept
both the PowerShell drive form (``HKLM:\\SOFTWARE\\OSDInfo``) and the long
hive form (``HKEY_LOCAL_MACHINE\\SOFTWARE\\OSDInfo``).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from osdinfo.errors import StoreError


HIVE_ALIASES: dict[str, str] = {
    "HKLM": "HKEY_LOCAL_MACHINE",
    "HKCU": "HKEY_CURRENT_USER",
    "HKCR": "HKEY_CLASSES_ROOT",
    "HKU": "HKEY_USERS",
    "HKCC": "HKEY_CURRENT_CONFIG",
}


def split_registry_path(path: str) -> tuple[str, str]:
    """Split *path* into ``(long_hive_name, subkey)``."""
    cleaned = path.strip().replace("/", "\\").strip("\\")
    if cleaned.lower().startswith("registry::"):
        cleaned = cleaned[len("registry::"):]
    hive, _, subkey = cleaned.partition("\\")
    hive = hive.rstrip(":").upper()
    hive = HIVE_ALIASES.get(hive, hive)
    if hive not in HIVE_ALIASES.values():
        raise StoreError(f"unknown registry hive in path {path!r}")
    subkey = "\\".join(part for part in subkey.split("\\") if part)
    if not subkey:
        raise StoreError(f"registry path {path!r} has no key below the hive")
    return hive, subkey


@runtime_checkable
class RegistryStore(Protocol):
    def set_string(self, path: str, name: str, value: str) -> None: ...

    def get_values(self, path: str) -> dict[str, str]: ...


class MemoryRegistryStore:
    """Registry stand-in keyed by normalized path."""

    def __init__(self) -> None:
        self.keys: dict[tuple[str, str], dict[str, str]] = {}

    def _key(self, path: str) -> tuple[str, str]:
        hive, subkey = split_registry_path(path)
        return hive, subkey.lower()

    def set_string(self, path: str, name: str, value: str) -> None:
        values = self.keys.setdefault(self._key(path), {})
        for existing in list(values):
            if existing.lower() == name.lower() and existing != name:
                del values[existing]
        values[name] = value

    def get_values(self, path: str) -> dict[str, str]:
        return dict(self.keys.get(self._key(path), {}))


class WinRegistryStore:
    """The Windows registry, through ``winreg`` (64-bit view)."""

    def __init__(self) -> None:
        try:
            import winreg
        except ImportError:
            raise StoreError("the Windows registry is not available on this platform") from None
        self._winreg = winreg

    def _open(self, path: str, create: bool):
        winreg = self._winreg
        hive, subkey = split_registry_path(path)
        root = getattr(winreg, hive)
        try:
            if create:
                return winreg.CreateKeyEx(
                    root, subkey, 0, winreg.KEY_WRITE | winreg.KEY_WOW64_64KEY
                )
            return winreg.OpenKey(root, subkey, 0, winreg.KEY_READ | winreg.KEY_WOW64_64KEY)
        except OSError as e:
            raise StoreError(f"cannot open registry key {path}: {e}") from e

    def set_string(self, path: str, name: str, value: str) -> None:
        with self._open(path, create=True) as key:
            try:
                self._winreg.SetValueEx(key, name, 0, self._winreg.REG_SZ, value)
            except OSError as e:
                raise StoreError(f"cannot write {path}\\{name}: {e}") from e

    def get_values(self, path: str) -> dict[str, str]:
        values: dict[str, str] = {}
        with self._open(path, create=False) as key:
            index = 0
            while True:
                try:
                    name, data, _ = self._winreg.EnumValue(key, index)
                except OSError:
                    break
                values[name] = data if isinstance(data, str) else str(data)
                index += 1
        return values
