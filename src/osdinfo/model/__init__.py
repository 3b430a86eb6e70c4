"""Data model for collected deployment information."""

from .config import PREFIX_SEPARATORS, RunConfig
from .entries import EntryCollection, TypedEntry, ValueKind
from .schema import CimType, SchemaDefinition, SchemaProperty, cim_type_for

__all__ = [
    "CimType",
    "EntryCollection",
    "PREFIX_SEPARATORS",
    "RunConfig",
    "SchemaDefinition",
    "SchemaProperty",
    "TypedEntry",
    "ValueKind",
    "cim_type_for",
]
