"""Structured-store schema definitions.

A ``SchemaDefinition`` is derived 1:1 from an ``EntryCollection``: one
property per entry, in collection order, plus a constant key property that
identifies the single instance the class carries.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, model_validator

from .entries import ValueKind


class CimType(str, Enum):
    """CIM property types used in generated class definitions."""

    DATETIME = "DateTime"
    BOOLEAN = "Boolean"
    REAL64 = "Real64"
    STRING = "String"


_KIND_TO_CIM: dict[ValueKind, CimType] = {
    ValueKind.DATETIME: CimType.DATETIME,
    ValueKind.BOOLEAN: CimType.BOOLEAN,
    ValueKind.NUMBER: CimType.REAL64,
    ValueKind.STRING: CimType.STRING,
}


def cim_type_for(kind: ValueKind) -> CimType:
    """Map an inferred value kind to its CIM type (String for anything else)."""
    return _KIND_TO_CIM.get(kind, CimType.STRING)


class SchemaProperty(BaseModel):
    name: str
    cim_type: CimType


class SchemaDefinition(BaseModel):
    """A class with typed properties and a single keyed instance."""

    namespace: str
    class_name: str
    description: str = ""
    key_property: str = "InstanceKey"
    key_value: str = ""
    properties: list[SchemaProperty] = []

    @model_validator(mode="after")
    def _check_properties(self):
        seen: set[str] = set()
        for prop in self.properties:
            folded = prop.name.lower()
            if folded == self.key_property.lower():
                raise ValueError(
                    f"property {prop.name!r} collides with key property "
                    f"{self.key_property!r}"
                )
            if folded in seen:
                raise ValueError(f"duplicate property {prop.name!r}")
            seen.add(folded)
        if not self.key_value:
            self.key_value = self.class_name
        return self

    def property_names(self) -> list[str]:
        return [p.name for p in self.properties]
