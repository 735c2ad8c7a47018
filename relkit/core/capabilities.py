"""Per-OS capability table.

Build steps consult this table instead of branching on platform names.
Per-target exceptions (e.g. no strip tool for a cross target) live on
`TargetSpec.strip`. The ecosystem column says which package managers can
be fed from artifacts of that OS; config loading checks manifests against it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relkit.core.errors import UnresolvedPlaceholder
from relkit.core.model import Ecosystem, OsClass, TargetSpec
from relkit.core.result import Err, Ok, Result
from relkit.core.template import render

ArchiveFormat = Literal["zip", "tar.gz"]


@dataclass(frozen=True, slots=True)
class OsCapabilities:
    can_strip: bool
    archive_format: ArchiveFormat
    exe_suffix: str
    ecosystems: frozenset[Ecosystem]

    @property
    def archive_suffix(self) -> str:
        return f".{self.archive_format}"


CAPABILITIES: dict[OsClass, OsCapabilities] = {
    OsClass.LINUX: OsCapabilities(
        can_strip=True,
        archive_format="tar.gz",
        exe_suffix="",
        ecosystems=frozenset(
            {
                Ecosystem.DEBIAN_PACKAGE,
                Ecosystem.ARCH,
                Ecosystem.ARCH_BINARY,
                Ecosystem.HOMEBREW_FORMULA,
            }
        ),
    ),
    OsClass.MACOS: OsCapabilities(
        can_strip=True,
        archive_format="tar.gz",
        exe_suffix="",
        ecosystems=frozenset({Ecosystem.HOMEBREW_FORMULA}),
    ),
    OsClass.WINDOWS: OsCapabilities(
        can_strip=True,
        archive_format="zip",
        exe_suffix=".exe",
        ecosystems=frozenset(
            {Ecosystem.WINDOWS_PACKAGE_MANAGER, Ecosystem.WINDOWS_CHOCOLATEY}
        ),
    ),
}


def capabilities_for(os_class: OsClass) -> OsCapabilities:
    return CAPABILITIES[os_class]


def can_strip(target: TargetSpec) -> bool:
    return target.strip and capabilities_for(target.os_class).can_strip


def exe_name(target: TargetSpec, binary: str) -> str:
    """Example: exe_name(windows_target, "btm") -> "btm.exe"."""
    return f"{binary}{capabilities_for(target.os_class).exe_suffix}"


def offers(os_class: OsClass, ecosystem: Ecosystem) -> bool:
    return ecosystem in capabilities_for(os_class).ecosystems


def asset_name(
    target: TargetSpec, *, pattern: str, project: str, version: str
) -> Result[str, UnresolvedPlaceholder]:
    """Deterministic archive name, e.g. `bottom_x86_64-pc-windows-msvc.zip`."""
    stem = render(pattern, {"project": project, "version": version, "triple": target.triple})
    if isinstance(stem, Err):
        return stem
    return Ok(stem.value + capabilities_for(target.os_class).archive_suffix)
