"""Flushing collected entries to the registry and to WMI."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from osdinfo.errors import CompileFailedError, StoreError
from osdinfo.model.entries import EntryCollection

from ._compiler import CompileResult, SchemaCompiler
from ._registry import RegistryStore
from ._structured import StructuredStore
from ._values import display_value


logger = logging.getLogger(__name__)


@dataclass
class WriteReport:
    written: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


@dataclass
class PublishReport:
    compile_result: CompileResult
    mof_path: str | None = None
    assigned: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def write_all(entries: EntryCollection, base_path: str, store: RegistryStore) -> WriteReport:
    """Write every entry as a string value under *base_path*.

    Existing values with other names are left alone, so repeated runs only
    overwrite what they write.
    """
    report = WriteReport()
    for entry in entries:
        text = display_value(entry.value)
        try:
            store.set_string(base_path, entry.name, text)
        except StoreError as e:
            logger.error("Cannot write %s to %s: %s", entry.name, base_path, e)
            report.failed[entry.name] = str(e)
            continue
        report.written.append(entry.name)
    logger.info("Wrote %d value(s) to %s", len(report.written), base_path)
    return report


def _write_mof(schema_text: str, class_name: str, log_dir: Path | None) -> tuple[Path, bool]:
    """Write the schema text out for the compiler; returns ``(path, is_temp)``."""
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        path = log_dir / f"{class_name}.mof"
        path.write_text(schema_text, encoding="utf-16")
        return path, False
    fd, name = tempfile.mkstemp(prefix=f"{class_name}-", suffix=".mof")
    with os.fdopen(fd, "w", encoding="utf-16") as f:
        f.write(schema_text)
    return Path(name), True


def publish(
    schema_text: str,
    entries: EntryCollection,
    namespace: str,
    class_name: str,
    *,
    compiler: SchemaCompiler,
    store: StructuredStore,
    log_dir: Path | None = None,
) -> PublishReport:
    """Compile *schema_text*, then assign each entry's value on the instance.

    Raises ``CompileFailedError`` when the compiler reports failure.  A
    property that cannot be assigned is logged and recorded in the report;
    the remaining properties are still attempted.
    """
    path, is_temp = _write_mof(schema_text, class_name, log_dir)
    try:
        result = compiler.compile(path)
    finally:
        if is_temp:
            path.unlink(missing_ok=True)
    if result.stdout.strip():
        logger.debug("Compiler output:\n%s", result.stdout.strip())
    mof_path = None if is_temp else str(path)
    if not result.success:
        raise CompileFailedError(result, mof_path)
    if result.exit_code != 0:
        logger.warning("Schema compiled with exit code %d (reboot required)", result.exit_code)

    report = PublishReport(compile_result=result, mof_path=mof_path)
    instance = store.get_instance(namespace, class_name)
    if instance is None:
        raise StoreError(f"no instance of {namespace}\\{class_name} after compiling the schema")

    available = {name.lower() for name in instance.property_names}
    for entry in entries:
        if entry.name.lower() not in available:
            continue
        try:
            instance.set(entry.name, entry.value)
        except StoreError as e:
            logger.error("Cannot set %s.%s: %s", class_name, entry.name, e)
            report.failed[entry.name] = str(e)
            continue
        report.assigned.append(entry.name)
    logger.info(
        "Populated %d of %d propert%s on %s\\%s",
        len(report.assigned), len(entries), "y" if len(entries) == 1 else "ies",
        namespace, class_name,
    )
    return report
