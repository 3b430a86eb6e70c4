"""Variable collection: raw environment values -> typed entries.

Default variables (fixed per product, plus computed ones) and custom
variables (discovered by name prefix) are typed independently and then
merged, custom last, so a custom value replaces a default one that ends up
with the same name.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from osdinfo.model.config import RunConfig
from osdinfo.model.entries import EntryCollection, TypedEntry, ValueKind

from ._defaults import (
    PRODUCT_LABEL,
    DeploymentProduct,
    default_names,
    derived_variables,
    detect_product,
)
from ._sources import VariableSource
from ._timezone import normalize
from ._values import infer_value


logger = logging.getLogger(__name__)

START_TIME = "OSDStartTime"
END_TIME = "OSDEndTime"

_NON_IDENT_RE = re.compile(r"[^A-Za-z0-9]")
_LEADING_LETTER_RE = re.compile(r"^[A-Za-z]")


def sanitize_name(name: str) -> str:
    """Strip underscores, whitespace, dots and anything else non-alphanumeric."""
    return _NON_IDENT_RE.sub("", name)


def _sorted_unique(names: Iterable[str]) -> list[str]:
    return sorted(set(names), key=lambda n: (n.lower(), n))


def type_entry(name: str, raw: str | None, config: RunConfig) -> TypedEntry | None:
    """Run one value through inference and normalization.

    Returns ``None`` (after logging a warning) when the value cannot be
    converted or the name cannot be a property name; the rest of the
    collection carries on.
    """
    if not _LEADING_LETTER_RE.match(name):
        logger.warning("Skipping %s: a property name must start with a letter", name)
        return None
    result = infer_value(
        raw, name, culture=config.culture, invariant=config.invariant_dates
    )
    if not result.ok:
        logger.warning("Skipping %s: %s", name, result.error)
        return None
    value = result.value
    if result.kind == ValueKind.DATETIME:
        normalized = normalize(
            value,
            config.destination_time_zone_id,
            config.final_time_zone_id,
            config.source_time_zone_id,
        )
        if not normalized.ok:
            logger.warning("Skipping %s: %s", name, normalized.error)
            return None
        value = normalized.value
    entry = TypedEntry(name=name, kind=result.kind, value=value, raw=raw or "")
    logger.debug("%s = %r (%s)", name, entry.value, entry.kind.value)
    return entry


def _collect_defaults(
    source: VariableSource, product: DeploymentProduct, config: RunConfig
) -> EntryCollection:
    entries = EntryCollection()
    for name in _sorted_unique(default_names(product)):
        raw = source.get(name)
        if raw is None:
            logger.debug("Default variable %s is not set", name)
            continue
        entry = type_entry(sanitize_name(name), raw, config)
        if entry is not None:
            entries.add(entry)

    return entries


def _collect_derived(
    source: VariableSource, product: DeploymentProduct, config: RunConfig
) -> EntryCollection:
    entries = EntryCollection()
    for name, raw in derived_variables(source, product):
        entry = type_entry(name, raw, config)
        if entry is not None:
            entries.add(entry)
    return entries


def _collect_custom(source: VariableSource, prefix: str, config: RunConfig) -> EntryCollection:
    folded_prefix = prefix.lower()
    stripped: dict[str, str] = {}
    for name in source.names():
        if name.lower().startswith(folded_prefix) and len(name) > len(prefix):
            stripped[name] = name[len(prefix):]

    entries = EntryCollection()
    for original in sorted(stripped, key=lambda n: (stripped[n].lower(), stripped[n])):
        clean = sanitize_name(stripped[original])
        if not clean:
            logger.warning("Skipping %s: nothing left after sanitizing the name", original)
            continue
        entry = type_entry(clean, source.get(original), config)
        if entry is not None:
            if clean in entries:
                logger.info("%s replaces an earlier value for %s", original, clean)
            entries.add(entry)
    logger.info("Found %d custom variable(s) with prefix %s", len(entries), prefix)
    return entries


def elapsed_entries(start: TypedEntry, end: TypedEntry) -> list[TypedEntry]:
    """Total seconds, minutes and hours between two date/time entries."""
    delta = end.value - start.value
    seconds = delta.total_seconds()
    raw = str(delta)
    return [
        TypedEntry(name="OSDTotalSeconds", kind=ValueKind.NUMBER, value=round(seconds, 2), raw=raw),
        TypedEntry(name="OSDTotalMinutes", kind=ValueKind.NUMBER, value=round(seconds / 60, 2), raw=raw),
        TypedEntry(name="OSDTotalHours", kind=ValueKind.NUMBER, value=round(seconds / 3600, 2), raw=raw),
    ]


def collect(source: VariableSource, config: RunConfig) -> EntryCollection:
    """Gather every default and custom variable as typed entries.

    Never writes to a store.  When no default or custom variable resolves
    the collection is empty, without even the product label; the caller
    decides what that means.
    """
    product = detect_product(source)
    defaults = _collect_defaults(source, product, config)
    derived = _collect_derived(source, product, config)
    custom = _collect_custom(source, config.variable_prefix, config)

    start, end = custom.get(START_TIME), custom.get(END_TIME)
    if (
        start is not None
        and end is not None
        and start.kind == ValueKind.DATETIME
        and end.kind == ValueKind.DATETIME
    ):
        for entry in elapsed_entries(start, end):
            custom.add(entry)
    elif start is not None or end is not None:
        logger.info("Elapsed time not computed: need both %s and %s as dates", START_TIME, END_TIME)

    if not (defaults or derived or custom):
        logger.info("No deployment variables found")
        return EntryCollection()

    logger.info("Deployment product: %s", product.value)
    entries = defaults
    label = type_entry(PRODUCT_LABEL, product.value, config)
    if label is not None:
        entries.add(label)
    entries.merge(derived)
    entries.merge(custom)
    logger.info("Collected %d variable(s)", len(entries))
    return entries
