"""Schema compilation through an external compiler process."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from osdinfo.errors import StoreError


logger = logging.getLogger(__name__)

# 3010: success, reboot required
SUCCESS_EXIT_CODES = frozenset({0, 3010})


@dataclass(frozen=True)
class CompileResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code in SUCCESS_EXIT_CODES


@runtime_checkable
class SchemaCompiler(Protocol):
    def compile(self, path: Path) -> CompileResult: ...


class MofCompiler:
    """Runs ``mofcomp.exe`` and waits for it to finish (no timeout)."""

    def __init__(self, executable: str = "mofcomp.exe", autorecover: bool = True) -> None:
        self.executable = executable
        self.autorecover = autorecover

    def command(self, path: Path) -> list[str]:
        cmd = [self.executable]
        if self.autorecover:
            cmd.append("-autorecover")
        cmd.append(str(path))
        return cmd

    def compile(self, path: Path) -> CompileResult:
        cmd = self.command(path)
        logger.info("Compiling %s", path)
        logger.debug("Running %s", subprocess.list2cmdline(cmd))
        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, errors="replace", check=False
            )
        except OSError as e:
            raise StoreError(f"cannot run {self.executable}: {e}") from e
        return CompileResult(proc.returncode, proc.stdout or "", proc.stderr or "")
