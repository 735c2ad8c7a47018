"""Upstream source tarball for source-based recipes (the AUR PKGBUILD).

The recipe's checksum has to match the tarball the hosting service serves
for the tag, so the archive is downloaded rather than rebuilt locally.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import urlparse

from relkit.core.errors import SourceFetchFailed
from relkit.core.result import Err, Ok, Result
from relkit.core.template import render
from relkit.platform.http import HttpClient


def source_url(pattern: str, version: str) -> Result[str, SourceFetchFailed]:
    url = render(pattern, {"version": version})
    if isinstance(url, Err):
        return Err(SourceFetchFailed(url=pattern, reason=url.error.message))
    return Ok(url.value)


def fetch_source(
    *, pattern: str, version: str, dest_dir: Path, http: HttpClient
) -> Result[Path, SourceFetchFailed]:
    url = source_url(pattern, version)
    if isinstance(url, Err):
        return url

    filename = Path(urlparse(url.value).path).name or f"{version}.tar.gz"
    result = http.download(url.value, dest_dir / filename)
    if isinstance(result, Err):
        return Err(SourceFetchFailed(url=url.value, reason=str(result.error)))
    return Ok(result.value)
