"""Persistent stores for collected entries.

Public API::

    from osdinfo.store import write_all, publish

    write_all(entries, r"HKLM:\\SOFTWARE\\OSDInfo", WinRegistryStore())
    publish(mof_text, entries, r"root\\cimv2", "OSDInfo",
            compiler=MofCompiler(), store=CimStructuredStore())
"""

from ._compiler import SUCCESS_EXIT_CODES, CompileResult, MofCompiler, SchemaCompiler
from ._registry import MemoryRegistryStore, RegistryStore, WinRegistryStore, split_registry_path
from ._structured import (
    CimInstance,
    CimStructuredStore,
    MemoryInstance,
    MemoryStructuredStore,
    StoreInstance,
    StructuredStore,
)
from ._values import cim_datetime, display_value
from ._writer import PublishReport, WriteReport, publish, write_all

__all__ = [
    "CimInstance",
    "CimStructuredStore",
    "CompileResult",
    "MemoryInstance",
    "MemoryRegistryStore",
    "MemoryStructuredStore",
    "MofCompiler",
    "PublishReport",
    "RegistryStore",
    "SUCCESS_EXIT_CODES",
    "SchemaCompiler",
    "StoreInstance",
    "StructuredStore",
    "WinRegistryStore",
    "WriteReport",
    "cim_datetime",
    "display_value",
    "publish",
    "split_registry_path",
    "write_all",
]
