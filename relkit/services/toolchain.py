"""Compiler toolchain adapter.

The build executor only needs four things from the toolchain: a binary at a
known path, a stripped copy when possible, the generated shell completions
and any installer packages. `CargoToolchain` provides them with cargo (or
`cross` for cross-compiled targets).
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from relkit.core.capabilities import can_strip, exe_name
from relkit.core.errors import CompileError, InstallerFailed, StripUnsupported
from relkit.core.model import InstallerSpec, TargetSpec
from relkit.core.result import Err, Ok, Result
from relkit.core.template import render
from relkit.output.console import ConsoleProtocol, Style
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process
from relkit.services.timeouts import (
    COMPILE_TIMEOUT_SECONDS,
    INSTALLER_TIMEOUT_SECONDS,
    STRIP_TIMEOUT_SECONDS,
)

Runner = Callable[..., Result[str, ProcessError]]


class Toolchain(Protocol):
    def compile(self, target: TargetSpec) -> Result[Path, CompileError]:
        """Build the release binary for `target` and return its path."""
        ...

    def strip(self, target: TargetSpec, binary: Path) -> Result[None, StripUnsupported]:
        """Strip debug symbols from `binary` in place."""
        ...

    def completion_dir(self, target: TargetSpec) -> Path | None:
        """Directory holding completions generated by the build, if any."""
        ...

    def run_installer(
        self, target: TargetSpec, installer: InstallerSpec, *, version: str
    ) -> Result[Path, InstallerFailed]:
        ...


class CargoToolchain:
    def __init__(
        self,
        *,
        project_dir: Path,
        project: str,
        binary: str,
        console: ConsoleProtocol,
        verbose: bool = False,
        runner: Runner = run_process,
    ) -> None:
        self._project_dir = project_dir
        self._project = project
        self._binary = binary
        self._console = console
        self._verbose = verbose
        self._run = runner

    def _release_dir(self, target: TargetSpec) -> Path:
        return self._project_dir / "target" / target.triple / "release"

    def _exec(self, cmd: list[str], *, timeout: float) -> Result[str, ProcessError]:
        if self._verbose:
            self._console.print(" ".join(cmd), Style.DIM)
        return self._run(cmd, cwd=self._project_dir, timeout=timeout)

    def compile(self, target: TargetSpec) -> Result[Path, CompileError]:
        cargo = "cross" if target.cross else "cargo"
        cmd = [cargo, "build", "--release", "--verbose", f"--target={target.triple}"]
        result = self._exec(cmd, timeout=COMPILE_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                CompileError(
                    triple=target.triple,
                    returncode=result.error.returncode,
                    diagnostics=result.error.diagnostics,
                )
            )

        binary = self._release_dir(target) / exe_name(target, self._binary)
        if not binary.is_file():
            return Err(
                CompileError(
                    triple=target.triple,
                    returncode=0,
                    diagnostics=f"build succeeded but {binary} is missing",
                )
            )
        return Ok(binary)

    def strip(self, target: TargetSpec, binary: Path) -> Result[None, StripUnsupported]:
        if not can_strip(target):
            return Err(StripUnsupported(triple=target.triple, reason="no strip tool for target"))

        result = self._exec(["strip", str(binary)], timeout=STRIP_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(StripUnsupported(triple=target.triple, reason=str(result.error)))
        return Ok(None)

    def completion_dir(self, target: TargetSpec) -> Path | None:
        # build.rs writes completions to target/<triple>/release/build/<project>-<hash>/out
        candidates = [
            p / "out"
            for p in (self._release_dir(target) / "build").glob(f"{self._project}-*")
            if (p / "out").is_dir()
        ]
        if not candidates:
            return None
        # Stale hashes from earlier builds may linger; the newest is ours.
        return max(candidates, key=lambda p: p.stat().st_mtime)

    def run_installer(
        self, target: TargetSpec, installer: InstallerSpec, *, version: str
    ) -> Result[Path, InstallerFailed]:
        values = {"project": self._project, "version": version, "triple": target.triple}

        cmd: list[str] = []
        for arg in installer.command:
            rendered = render(arg, values)
            if isinstance(rendered, Err):
                return Err(
                    InstallerFailed(target.triple, installer.kind, rendered.error.message)
                )
            cmd.append(rendered.value)

        output = render(installer.output, values)
        if isinstance(output, Err):
            return Err(InstallerFailed(target.triple, installer.kind, output.error.message))

        result = self._exec(cmd, timeout=INSTALLER_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                InstallerFailed(
                    target.triple, installer.kind, result.error.diagnostics or str(result.error)
                )
            )

        path = self._project_dir / output.value
        if not path.is_file():
            return Err(InstallerFailed(target.triple, installer.kind, f"{path} was not produced"))
        return Ok(path)
