"""Exit codes and error payloads.

Errors are plain frozen dataclasses returned inside `Err`. Each exposes a
`message` (and sometimes a `hint`) so the CLI and the run summary can render
any of them without knowing the concrete type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

__all__ = [
    "ErrorCode",
    # checksum / template / manifest
    "IOFailure",
    "UnsupportedAlgorithm",
    "UnresolvedPlaceholder",
    "MissingArtifact",
    "ManifestError",
    # build
    "CompileError",
    "StripUnsupported",
    "BundleError",
    "InstallerFailed",
    "BuildFailure",
    # pool / store / source
    "PoolConflict",
    "ReleaseCreateFailed",
    "UploadFailed",
    "RecordUnavailable",
    "StoreError",
    "SourceFetchFailed",
    # input
    "InvalidVersion",
]


class ErrorCode(IntEnum):
    """Process exit codes of the `relkit` CLI.

    - 0: every target attempted and every scheduled manifest generated
    - 1: fatal coordination error or bad input (nothing useful was produced)
    - 2: partial failure (the run completed, something was skipped or failed)
    """

    OK = 0
    FATAL = 1
    PARTIAL = 2

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


# -----------------------------------------------------------------------------
# Checksum / template / manifest
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IOFailure:
    """A file could not be read or written."""

    path: Path
    reason: str

    @property
    def message(self) -> str:
        return f"I/O error on {self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class UnsupportedAlgorithm:
    name: str

    @property
    def message(self) -> str:
        return f"unsupported digest algorithm: {self.name!r}"

    @property
    def hint(self) -> str:
        return "use sha256 or sha512"


@dataclass(frozen=True, slots=True)
class UnresolvedPlaceholder:
    """A template references a name with no entry in the placeholder map."""

    name: str
    template: Path | None = None

    @property
    def message(self) -> str:
        where = f" in {self.template}" if self.template is not None else ""
        return f"unresolved placeholder {{{self.name}}}{where}"

    @property
    def hint(self) -> str:
        return "literal braces are written {{ and }}"


@dataclass(frozen=True, slots=True)
class MissingArtifact:
    """A manifest source is absent from the pool.

    Only reachable when packaging bypasses the fan-in barrier.
    """

    key: str
    output: Path

    @property
    def message(self) -> str:
        return f"artifact {self.key} missing from pool while rendering {self.output}"


ManifestError = IOFailure | UnsupportedAlgorithm | UnresolvedPlaceholder | MissingArtifact


# -----------------------------------------------------------------------------
# Build
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CompileError:
    triple: str
    returncode: int
    diagnostics: str = ""

    @property
    def message(self) -> str:
        return f"{self.triple}: compile failed (exit {self.returncode})"

    @property
    def hint(self) -> str | None:
        lines = [ln for ln in self.diagnostics.strip().splitlines() if ln.strip()]
        return lines[-1].strip() if lines else None


@dataclass(frozen=True, slots=True)
class StripUnsupported:
    """Stripping skipped or failed; the unstripped binary is shipped."""

    triple: str
    reason: str

    @property
    def message(self) -> str:
        return f"{self.triple}: binary not stripped ({self.reason})"


@dataclass(frozen=True, slots=True)
class BundleError:
    triple: str
    archive: Path
    reason: str

    @property
    def message(self) -> str:
        return f"{self.triple}: failed to create {self.archive.name}: {self.reason}"


@dataclass(frozen=True, slots=True)
class InstallerFailed:
    triple: str
    kind: str
    reason: str

    @property
    def message(self) -> str:
        return f"{self.triple}: {self.kind} installer failed: {self.reason}"


BuildFailure = CompileError | BundleError


# -----------------------------------------------------------------------------
# Pool / store / source
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PoolConflict:
    """Two writers tried to create the same pool key."""

    key: str

    @property
    def message(self) -> str:
        return f"artifact pool already holds {self.key}"


@dataclass(frozen=True, slots=True)
class ReleaseCreateFailed:
    version: str
    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"failed to create release {self.version}: {self.reason}"


@dataclass(frozen=True, slots=True)
class UploadFailed:
    asset_name: str
    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"failed to attach {self.asset_name}: {self.reason}"


@dataclass(frozen=True, slots=True)
class RecordUnavailable:
    record_id: str
    reason: str

    @property
    def message(self) -> str:
        return f"cannot read release {self.record_id}: {self.reason}"


StoreError = ReleaseCreateFailed | UploadFailed | RecordUnavailable


@dataclass(frozen=True, slots=True)
class SourceFetchFailed:
    url: str
    reason: str

    @property
    def message(self) -> str:
        return f"failed to fetch source archive {self.url}: {self.reason}"


# -----------------------------------------------------------------------------
# Input
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    value: str

    @property
    def message(self) -> str:
        return f"invalid version {self.value!r}"

    @property
    def hint(self) -> str:
        return "expected dot-separated non-negative integers, e.g. 0.6.8"
