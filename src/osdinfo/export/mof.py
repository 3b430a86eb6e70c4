"""Managed Object Format (MOF) writer for collected entries.

Builds a ``SchemaDefinition`` from an ``EntryCollection`` and emits MOF
text that (re)creates the namespace path, drops and redefines the class,
and declares its single keyed instance.  Property values are left NULL;
they are assigned through the store's instance API after compilation.
"""

from __future__ import annotations

import logging
from io import StringIO

from osdinfo.model.entries import EntryCollection
from osdinfo.model.schema import SchemaDefinition, SchemaProperty, cim_type_for


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_schema(
    entries: EntryCollection,
    namespace: str,
    class_name: str,
    description: str = "",
    key_property: str = "InstanceKey",
) -> SchemaDefinition:
    """Derive a class definition from *entries*, one property per entry."""
    properties: list[SchemaProperty] = []
    for entry in entries:
        if entry.name.lower() == key_property.lower():
            logger.warning(
                "Variable %s collides with key property %s and is not part of the class",
                entry.name, key_property,
            )
            continue
        properties.append(SchemaProperty(name=entry.name, cim_type=cim_type_for(entry.kind)))
    return SchemaDefinition(
        namespace=namespace,
        class_name=class_name,
        description=description,
        key_property=key_property,
        properties=properties,
    )


def to_mof(schema: SchemaDefinition) -> str:
    """Emit MOF text for *schema*."""
    w = MOFWriter()
    w.write_schema(schema)
    return w.getvalue()


def synthesize(
    entries: EntryCollection,
    namespace: str,
    class_name: str,
    description: str = "",
) -> str:
    """Shorthand for ``to_mof(build_schema(...))``."""
    return to_mof(build_schema(entries, namespace, class_name, description))


def mof_string(text: str) -> str:
    """Quote *text* as a MOF string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def namespace_path(namespace: str) -> str:
    """Local-machine object path for a namespace (``\\\\.\\root\\x``)."""
    return "\\\\.\\" + namespace


# ---------------------------------------------------------------------------
# MOFWriter
# ---------------------------------------------------------------------------

class MOFWriter:
    """Emits MOF statements into an internal buffer."""

    def __init__(self) -> None:
        self._buf = StringIO()
        self._indent = 0
        self._indent_str = "    "

    def getvalue(self) -> str:
        return self._buf.getvalue().rstrip("\n") + "\n"

    def _line(self, text: str = "") -> None:
        if text:
            self._buf.write(self._indent_str * self._indent + text + "\n")
        else:
            self._buf.write("\n")

    def _block(self, header: str, lines: list[str]) -> None:
        self._line(header)
        self._line("{")
        self._indent += 1
        for text in lines:
            self._line(text)
        self._indent -= 1
        self._line("};")

    # ======================================================================
    # Schema
    # ======================================================================

    def write_schema(self, schema: SchemaDefinition) -> None:
        self.write_namespace_path(schema.namespace)
        self._line(f"#pragma namespace({mof_string(namespace_path(schema.namespace))})")
        self._line(f"#pragma deleteclass({mof_string(schema.class_name)}, NOFAIL)")
        self._line()
        self.write_class(schema)
        self._line()
        self.write_instance(schema)

    def write_namespace_path(self, namespace: str) -> None:
        """Make sure every namespace below ``root`` exists."""
        segments = namespace.split("\\")
        for depth in range(1, len(segments)):
            parent = "\\".join(segments[:depth])
            self._line(f"#pragma namespace({mof_string(namespace_path(parent))})")
            self._block("instance of __Namespace", [f"Name = {mof_string(segments[depth])};"])
            self._line()

    def write_class(self, schema: SchemaDefinition) -> None:
        if schema.description:
            self._line(f"[Description({mof_string(schema.description)})]")
        lines = [f"[key] String {schema.key_property};"]
        lines += [f"{p.cim_type.value} {p.name};" for p in schema.properties]
        self._block(f"class {schema.class_name}", lines)

    def write_instance(self, schema: SchemaDefinition) -> None:
        lines = [f"{schema.key_property} = {mof_string(schema.key_value)};"]
        lines += [f"{name} = NULL;" for name in schema.property_names()]
        self._block(f"instance of {schema.class_name}", lines)
