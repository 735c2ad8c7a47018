"""Release archive creation.

Windows targets ship as `.zip`, everything else as `.tar.gz`. Archive
members are given explicit names so the layout inside the archive never
depends on where the build staged its files.
"""

from __future__ import annotations

import tarfile
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from relkit.core.capabilities import ArchiveFormat
from relkit.core.errors import IOFailure
from relkit.core.result import Err, Ok, Result

ArchiveMember = tuple[Path, str]


def format_for(path: Path) -> ArchiveFormat:
    return "zip" if path.name.endswith(".zip") else "tar.gz"


def collect_dir(base_dir: Path, *, arc_prefix: str) -> list[ArchiveMember]:
    """All files under `base_dir`, named `<arc_prefix>/<relative path>`."""
    if not base_dir.is_dir():
        return []
    out: list[ArchiveMember] = []
    for p in sorted(base_dir.rglob("*")):
        if p.is_dir():
            continue
        rel = p.relative_to(base_dir).as_posix()
        out.append((p, f"{arc_prefix}/{rel}"))
    return out


def create_archive(
    archive_path: Path, members: list[ArchiveMember], fmt: ArchiveFormat | None = None
) -> Result[Path, IOFailure]:
    fmt = fmt or format_for(archive_path)
    try:
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "zip":
            # Tool outputs sometimes carry an epoch mtime, which ZIP cannot store.
            with ZipFile(archive_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
                for src, arc in members:
                    zf.write(src, arcname=arc)
        else:
            with tarfile.open(archive_path, "w:gz") as tf:
                for src, arc in members:
                    tf.add(src, arcname=arc, recursive=False)
    except (OSError, tarfile.TarError) as e:
        archive_path.unlink(missing_ok=True)
        return Err(IOFailure(path=archive_path, reason=str(e)))
    return Ok(archive_path)
