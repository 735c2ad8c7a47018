"""Domain model for a release run.

Everything here is immutable. A run threads one `ReleaseRecord` through the
build and packaging stages instead of sharing ambient state between them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

__all__ = [
    "OsClass",
    "Ecosystem",
    "DigestAlgorithm",
    "ReleaseRecord",
    "ReleaseMetadata",
    "InstallerSpec",
    "TargetSpec",
    "PoolKey",
    "SOURCE_KEY",
    "InstallerArtifact",
    "BuildArtifact",
    "ManifestJob",
    "PlaceholderMap",
]

PlaceholderMap = Mapping[str, str]


class OsClass(Enum):
    LINUX = "linux"
    WINDOWS = "windows"
    MACOS = "macos"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> OsClass | None:
        for member in cls:
            if member.value == name.strip().lower():
                return member
        return None


class Ecosystem(Enum):
    """Packaging ecosystems a manifest can be rendered for.

    Values are the names used in `release.toml`.
    """

    DEBIAN_PACKAGE = "debianPackage"
    ARCH = "arch"
    ARCH_BINARY = "archBinary"
    WINDOWS_PACKAGE_MANAGER = "windowsPackageManager"
    WINDOWS_CHOCOLATEY = "windowsChocolatey"
    HOMEBREW_FORMULA = "homebrewFormula"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> Ecosystem | None:
        for member in cls:
            if member.value.lower() == name.strip().lower():
                return member
        return None


class DigestAlgorithm(Enum):
    SHA256 = "sha256"
    SHA512 = "sha512"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> DigestAlgorithm | None:
        """Case-insensitive lookup (`SHA256` and `sha256` are the same)."""
        for member in cls:
            if member.value == name.strip().lower():
                return member
        return None


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """A draft release created once per run."""

    version: str
    record_id: str
    upload_destination: str
    draft: bool = True


@dataclass(frozen=True, slots=True)
class ReleaseMetadata:
    record: ReleaseRecord
    assets: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class InstallerSpec:
    """Extra packaging command run after a target is bundled.

    `output` and `asset_name` accept `{project}`, `{version}` and `{triple}`.
    """

    kind: str
    command: tuple[str, ...]
    output: str
    asset_name: str


@dataclass(frozen=True, slots=True)
class TargetSpec:
    """One cell of the target matrix.

    `strip=False` marks architectures whose strip tool is unavailable on the
    build host; the binary ships unstripped.
    """

    os_class: OsClass
    triple: str
    cross: bool = False
    strip: bool = True
    installers: tuple[InstallerSpec, ...] = ()

    def pool_key(self, kind: str = "archive") -> PoolKey:
        return PoolKey(triple=self.triple, os_class=self.os_class, kind=kind)

    def __str__(self) -> str:
        return self.triple


@dataclass(frozen=True, slots=True)
class PoolKey:
    """Key of an entry in the shared artifact pool."""

    triple: str
    os_class: OsClass | None
    kind: str = "archive"

    def __str__(self) -> str:
        if self.kind == "archive" or self.kind == self.triple:
            return self.triple
        return f"{self.triple}:{self.kind}"


SOURCE_KEY = PoolKey(triple="source", os_class=None, kind="source")


@dataclass(frozen=True, slots=True)
class InstallerArtifact:
    kind: str
    path: Path
    asset_name: str


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    target: TargetSpec
    binary_path: Path
    auxiliary_files: tuple[Path, ...]
    asset_name: str
    asset_archive_path: Path
    installers: tuple[InstallerArtifact, ...] = ()

    @property
    def key(self) -> PoolKey:
        return self.target.pool_key()

    def pool_entries(self) -> list[tuple[PoolKey, Path]]:
        """Files this artifact contributes to the shared pool."""
        entries = [(self.key, self.asset_archive_path)]
        for inst in self.installers:
            entries.append((self.target.pool_key(inst.kind), inst.path))
        return entries


@dataclass(frozen=True, slots=True)
class ManifestJob:
    """Render one template for one ecosystem.

    `bundle` groups several rendered files into one release asset
    (e.g. both PKGBUILDs into `arch.tar.gz`).
    """

    ecosystem: Ecosystem
    template_path: Path
    output_path: Path
    algorithm: DigestAlgorithm
    sources: tuple[PoolKey, ...]
    bundle: str | None = None
