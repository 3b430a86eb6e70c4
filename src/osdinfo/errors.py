"""Exception hierarchy for osdinfo."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from osdinfo.store._compiler import CompileResult


class OSDInfoError(Exception):
    """Base class for osdinfo failures."""


class ConfigError(OSDInfoError):
    """Invalid or unreadable configuration."""


class StoreError(OSDInfoError):
    """A store rejected a read or write."""


class CompileFailedError(OSDInfoError):
    """The schema compiler returned a failure exit code."""

    def __init__(self, result: CompileResult, mof_path: str | None = None):
        self.result = result
        self.mof_path = mof_path
        detail = (result.stderr or result.stdout).strip()
        msg = f"schema compile failed with exit code {result.exit_code}"
        if mof_path:
            msg += f" ({mof_path})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
