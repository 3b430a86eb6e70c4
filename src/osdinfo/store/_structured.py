"""Structured (CIM) stores: class instances with typed properties.

``MemoryStructuredStore`` doubles as its own schema compiler: it reads the
MOF text this package generates and defines the class and instance in
memory.  ``CimStructuredStore`` talks to WMI through PowerShell CIM
cmdlets.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from osdinfo.errors import StoreError
from osdinfo.model.schema import CimType

from ._compiler import CompileResult
from ._values import cim_datetime, display_value


logger = logging.getLogger(__name__)


@runtime_checkable
class StoreInstance(Protocol):
    property_names: list[str]

    def set(self, name: str, value: object) -> None: ...


@runtime_checkable
class StructuredStore(Protocol):
    def get_instance(self, namespace: str, class_name: str) -> StoreInstance | None: ...


# ---------------------------------------------------------------------------
# In-memory repository
# ---------------------------------------------------------------------------

_PYTHON_TYPES: dict[CimType, tuple[type, ...]] = {
    CimType.DATETIME: (datetime,),
    CimType.BOOLEAN: (bool,),
    CimType.REAL64: (float, int),
    CimType.STRING: (str,),
}


class MemoryInstance:
    """A single class instance held in memory."""

    def __init__(self, types: dict[str, CimType]) -> None:
        self.types = types
        self.values: dict[str, object] = {name: None for name in types}

    @property
    def property_names(self) -> list[str]:
        return list(self.types)

    def _resolve(self, name: str) -> str:
        for known in self.types:
            if known.lower() == name.lower():
                return known
        raise StoreError(f"no property {name!r}")

    def set(self, name: str, value: object) -> None:
        name = self._resolve(name)
        cim_type = self.types[name]
        if value is not None:
            ok = isinstance(value, _PYTHON_TYPES[cim_type])
            if cim_type == CimType.REAL64 and isinstance(value, bool):
                ok = False
            if not ok:
                raise StoreError(
                    f"cannot assign {type(value).__name__} to {cim_type.value} property {name!r}"
                )
        self.values[name] = value


_PRAGMA_NS_RE = re.compile(r'^#pragma namespace\("\\\\\\\\\.\\\\(.*)"\)$')
_DELETE_RE = re.compile(r'^#pragma deleteclass\("(\w+)"')
_CLASS_RE = re.compile(r"^class (\w+)")
_PROPERTY_RE = re.compile(r"^(?:\[key\] )?(DateTime|Boolean|Real64|String) ([A-Za-z]\w*);$")
_INSTANCE_RE = re.compile(r"^instance of (\w+)")


class MemoryStructuredStore:
    """Namespaces, classes and instances kept in dictionaries."""

    def __init__(self) -> None:
        self.classes: dict[tuple[str, str], MemoryInstance | None] = {}
        self.compiled: list[str] = []

    def define(self, namespace: str, class_name: str, types: dict[str, CimType]) -> None:
        self.classes[(namespace.lower(), class_name.lower())] = MemoryInstance(types)

    def get_instance(self, namespace: str, class_name: str) -> MemoryInstance | None:
        return self.classes.get((namespace.lower(), class_name.lower()))

    def compile(self, path: Path) -> CompileResult:
        """Load a generated MOF file into memory."""
        text = Path(path).read_text(encoding="utf-16")
        self.compiled.append(text)
        namespace = ""
        current: str | None = None
        types: dict[str, CimType] = {}
        for line in (raw.strip() for raw in text.splitlines()):
            if m := _PRAGMA_NS_RE.match(line):
                namespace = m.group(1).replace("\\\\", "\\")
            elif m := _DELETE_RE.match(line):
                self.classes.pop((namespace.lower(), m.group(1).lower()), None)
            elif m := _CLASS_RE.match(line):
                current, types = m.group(1), {}
            elif current is not None and (m := _PROPERTY_RE.match(line)):
                types[m.group(2)] = CimType(m.group(1))
            elif current is not None and line == "};":
                self.define(namespace, current, types)
                current = None
            elif m := _INSTANCE_RE.match(line):
                if m.group(1) != "__Namespace" and self.get_instance(namespace, m.group(1)) is None:
                    return CompileResult(1, stderr=f"class {m.group(1)} is not defined")
        return CompileResult(0, stdout=f"Parsing MOF file: {path}\nDone!")


# ---------------------------------------------------------------------------
# WMI through PowerShell
# ---------------------------------------------------------------------------

def ps_quote(text: str) -> str:
    """Single-quoted PowerShell string literal."""
    return "'" + text.replace("'", "''") + "'"


def ps_literal(value: object) -> str:
    """PowerShell expression evaluating to *value*."""
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, float):
        return f"[double]{ps_quote(display_value(value))}"
    if isinstance(value, datetime):
        return (
            "[Management.ManagementDateTimeConverter]::ToDateTime("
            f"{ps_quote(cim_datetime(value))})"
        )
    return ps_quote(str(value))


class CimInstance:
    """One WMI instance; every ``set`` is a separate ``Set-CimInstance`` call."""

    def __init__(self, store: CimStructuredStore, namespace: str, class_name: str,
                 property_names: list[str]) -> None:
        self._store = store
        self.namespace = namespace
        self.class_name = class_name
        self.property_names = property_names

    def set(self, name: str, value: object) -> None:
        script = (
            f"Get-CimInstance -Namespace {ps_quote(self.namespace)} "
            f"-ClassName {ps_quote(self.class_name)} | "
            f"Set-CimInstance -Property @{{{ps_quote(name)} = {ps_literal(value)}}}"
        )
        self._store.run_script(script)


class CimStructuredStore:
    def __init__(self, powershell: str = "powershell.exe") -> None:
        self.powershell = powershell

    def run_script(self, script: str) -> str:
        cmd = [self.powershell, "-NoProfile", "-NonInteractive", "-Command",
               "$ErrorActionPreference = 'Stop'; " + script]
        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", check=False
            )
        except OSError as e:
            raise StoreError(f"cannot run {self.powershell}: {e}") from e
        if proc.returncode != 0:
            raise StoreError((proc.stderr or proc.stdout or "").strip()
                             or f"{self.powershell} exited with {proc.returncode}")
        return proc.stdout

    def get_instance(self, namespace: str, class_name: str) -> CimInstance | None:
        script = (
            f"$i = Get-CimInstance -Namespace {ps_quote(namespace)} "
            f"-ClassName {ps_quote(class_name)} | Select-Object -First 1; "
            "if ($i) { ConvertTo-Json -InputObject @($i.CimInstanceProperties.Name) }"
        )
        try:
            output = self.run_script(script).strip()
        except StoreError as e:
            logger.error("Cannot read %s\\%s: %s", namespace, class_name, e)
            return None
        if not output:
            return None
        try:
            names = json.loads(output)
        except ValueError as e:
            raise StoreError(f"unexpected output reading {class_name}: {e}") from e
        return CimInstance(self, namespace, class_name, [str(n) for n in names])
