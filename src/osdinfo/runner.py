"""End-to-end run: collect, then write to the registry and to WMI.

Each store phase is independent.  A failure in one phase stops the run
unless ``continue_on_error`` is set, in which case it is logged and the
next phase still runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from osdinfo.collect import VariableSource, collect
from osdinfo.errors import CompileFailedError
from osdinfo.export import synthesize
from osdinfo.model.config import RunConfig
from osdinfo.model.entries import EntryCollection
from osdinfo.store import (
    CimStructuredStore,
    MofCompiler,
    PublishReport,
    RegistryStore,
    SchemaCompiler,
    StructuredStore,
    WinRegistryStore,
    WriteReport,
    publish,
    write_all,
)


logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    entries: EntryCollection = field(default_factory=EntryCollection)
    registry: WriteReport | None = None
    publish: PublishReport | None = None
    mof_text: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def run(
    config: RunConfig,
    source: VariableSource | None,
    *,
    registry_store: RegistryStore | None = None,
    structured_store: StructuredStore | None = None,
    compiler: SchemaCompiler | None = None,
) -> RunReport:
    """Collect variables from *source* and flush them to the enabled stores.

    Stores left as ``None`` default to the real Windows implementations.
    Exceptions propagate unless ``config.continue_on_error`` is set.
    """
    report = RunReport()
    if source is None:
        logger.warning("No deployment environment available; nothing to record")
        return report

    report.entries = collect(source, config)
    if not report.entries:
        logger.warning("No variables collected; skipping registry and WMI")
        return report

    def _registry() -> None:
        store = registry_store if registry_store is not None else WinRegistryStore()
        report.registry = write_all(report.entries, config.registry_key_path, store)

    def _wmi() -> None:
        report.mof_text = synthesize(
            report.entries, config.namespace, config.class_name, config.class_description
        )
        report.publish = publish(
            report.mof_text,
            report.entries,
            config.namespace,
            config.class_name,
            compiler=compiler if compiler is not None else MofCompiler(),
            store=structured_store if structured_store is not None else CimStructuredStore(),
            log_dir=config.log_dir,
        )

    phases: list[tuple[str, bool, Callable[[], None]]] = [
        ("registry", config.registry, _registry),
        ("wmi", config.wmi, _wmi),
    ]
    for name, enabled, action in phases:
        if not enabled:
            logger.info("Skipping %s output (disabled)", name)
            continue
        try:
            action()
        except Exception as e:
            if not config.continue_on_error:
                raise
            if isinstance(e, CompileFailedError):
                logger.error("%s; continuing", e)
            else:
                logger.exception("Unexpected failure during %s output; continuing", name)
            report.errors.append(f"{name}: {e}")
    return report
