"""Shared test helpers for the osdinfo test suite."""

from datetime import datetime, timezone

from osdinfo.collect import MappingSource
from osdinfo.model.config import RunConfig
from osdinfo.model.entries import EntryCollection, TypedEntry, ValueKind


def make_config(**overrides) -> RunConfig:
    """A RunConfig with UTC everywhere so results do not depend on the host zone."""
    values = {"source_time_zone_id": "UTC"}
    values.update(overrides)
    return RunConfig(**values)


def source(**variables) -> MappingSource:
    return MappingSource(variables)


def entry(name, value, kind=None) -> TypedEntry:
    """Build a TypedEntry, deriving the kind from the Python type."""
    if kind is None:
        if value is None:
            kind = ValueKind.NULL
        elif isinstance(value, bool):
            kind = ValueKind.BOOLEAN
        elif isinstance(value, float):
            kind = ValueKind.NUMBER
        elif isinstance(value, datetime):
            kind = ValueKind.DATETIME
        else:
            kind = ValueKind.STRING
    return TypedEntry(name=name, kind=kind, value=value, raw="" if value is None else str(value))


def collection(*entries) -> EntryCollection:
    return EntryCollection(entries)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
