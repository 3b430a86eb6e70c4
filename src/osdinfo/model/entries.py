"""Typed entries produced by variable collection.

A ``TypedEntry`` is one sanitized name bound to a typed value.  Entries
are gathered into an ``EntryCollection``, an ordered mapping keyed by name
in which a later entry replaces an earlier one with the same name.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")


class ValueKind(str, Enum):
    """Semantic type inferred for a raw value."""

    DATETIME = "DATETIME"
    BOOLEAN = "BOOLEAN"
    NUMBER = "NUMBER"
    STRING = "STRING"
    NULL = "NULL"


_PYTHON_TYPES: dict[ValueKind, tuple[type, ...]] = {
    ValueKind.DATETIME: (datetime,),
    ValueKind.BOOLEAN: (bool,),
    ValueKind.NUMBER: (float,),
    ValueKind.STRING: (str,),
}


class TypedEntry(BaseModel):
    """A sanitized name bound to a typed value.

    ``raw`` keeps the string the value was inferred from; computed entries
    (elapsed time, decoded fields) carry the text they were derived from.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: ValueKind
    value: datetime | bool | float | str | None = None
    raw: str = ""

    @model_validator(mode="after")
    def _check_entry(self):
        if not _NAME_RE.match(self.name):
            raise ValueError(
                f"entry name {self.name!r} must start with a letter and contain "
                "letters and digits only"
            )
        if self.kind == ValueKind.NULL:
            if self.value is not None:
                raise ValueError("NULL entry must not carry a value")
            return self
        if not isinstance(self.value, _PYTHON_TYPES[self.kind]):
            raise ValueError(
                f"{self.kind.value} entry {self.name!r} has a "
                f"{type(self.value).__name__} value"
            )
        return self


class EntryCollection:
    """Ordered name -> TypedEntry mapping with last-write-wins semantics.

    Names are matched case-insensitively, like the registry value names and
    CIM property names they end up as.  A replaced entry keeps the position
    of the first entry with that name.
    """

    def __init__(self, entries: Iterable[TypedEntry] = ()) -> None:
        self._entries: dict[str, TypedEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: TypedEntry) -> None:
        self._entries[entry.name.lower()] = entry

    def merge(self, other: EntryCollection) -> None:
        for entry in other:
            self.add(entry)

    def get(self, name: str) -> TypedEntry | None:
        return self._entries.get(name.lower())

    def names(self) -> list[str]:
        return [e.name for e in self._entries.values()]

    def as_dict(self) -> dict[str, object]:
        """Plain ``name -> value`` view, in collection order."""
        return {e.name: e.value for e in self._entries.values()}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def __iter__(self) -> Iterator[TypedEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"EntryCollection({list(self._entries.values())!r})"
