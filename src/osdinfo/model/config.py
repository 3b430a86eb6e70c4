"""Run configuration.

``RunConfig`` is the explicit context handed to every component.  Zone ids
and the variable prefix are validated here so the collection and
normalization steps can assume they are well formed.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import pytz
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from osdinfo.errors import ConfigError


PREFIX_SEPARATORS = ("_", "-", ".")

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RunConfig(BaseModel):
    registry: bool = True
    registry_key_path: str = r"HKLM:\SOFTWARE\OSDInfo"
    wmi: bool = True
    namespace: str = r"root\cimv2"
    class_name: str = "OSDInfo"
    class_description: str = (
        "Operating system deployment information recorded during installation"
    )
    variable_prefix: str = "XOSDInfo_"
    source_time_zone_id: str | None = None
    destination_time_zone_id: str = "UTC"
    final_time_zone_id: str = "UTC"
    culture: str = "en-US"
    invariant_dates: bool = False
    log_dir: Path | None = None
    continue_on_error: bool = False

    @field_validator("variable_prefix")
    @classmethod
    def _prefix_separator(cls, value: str) -> str:
        if not value or not value.endswith(PREFIX_SEPARATORS):
            raise ValueError(
                f"variable prefix {value!r} must end with one of "
                f"{', '.join(PREFIX_SEPARATORS)}"
            )
        return value

    @field_validator("source_time_zone_id", "destination_time_zone_id", "final_time_zone_id")
    @classmethod
    def _known_zone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"unknown time zone id {value!r}") from None
        return value

    @field_validator("class_name")
    @classmethod
    def _class_identifier(cls, value: str) -> str:
        if not _IDENT_RE.match(value):
            raise ValueError(f"class name {value!r} is not a valid identifier")
        return value

    @model_validator(mode="after")
    def _check_namespace(self):
        segments = [s for s in self.namespace.replace("/", "\\").split("\\") if s]
        if not segments or segments[0].lower() != "root":
            raise ValueError(f"namespace {self.namespace!r} must start with 'root'")
        self.namespace = "\\".join(segments)
        return self

    @classmethod
    def load(cls, path: str | Path, **overrides: Any) -> RunConfig:
        """Read a JSON config file; keyword overrides win over file values."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"config file {path} must hold a JSON object")
        data.update(overrides)
        return cls.build(**data)

    @classmethod
    def build(cls, **values: Any) -> RunConfig:
        """Construct a config, reporting validation problems as ``ConfigError``."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(str(e)) from e
