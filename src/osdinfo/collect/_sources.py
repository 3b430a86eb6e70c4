"""Variable sources: read-only views of the deployment environment.

Any object with ``names()`` and ``get(name)`` qualifies as a
``VariableSource``; the runtime-checkable protocol replaces ``hasattr``
probing.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from osdinfo.errors import ConfigError


@runtime_checkable
class VariableSource(Protocol):
    """Name enumeration plus single-name lookup."""

    def names(self) -> Iterable[str]: ...

    def get(self, name: str) -> str | None: ...


class MappingSource:
    """A source backed by an in-memory mapping (enumeration order kept)."""

    def __init__(self, variables: Mapping[str, object] | None = None) -> None:
        self._variables: dict[str, str] = {}
        for name, value in (variables or {}).items():
            self._variables[name] = "" if value is None else str(value)

    def names(self) -> list[str]:
        return list(self._variables)

    def get(self, name: str) -> str | None:
        if name in self._variables:
            return self._variables[name]
        # Task sequence variable names are case-insensitive
        folded = name.lower()
        for key, value in self._variables.items():
            if key.lower() == folded:
                return value
        return None


class JsonFileSource(MappingSource):
    """Variables exported by a task sequence step as one JSON object."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            data = json.loads(self.path.read_text(encoding="utf-8-sig"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot read variables file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"variables file {self.path} must hold a JSON object")
        super().__init__(data)


class EnvironSource(MappingSource):
    """Variables published to the process environment."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        super().__init__(dict(os.environ if environ is None else environ))
