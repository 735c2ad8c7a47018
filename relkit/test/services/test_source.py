"""Tests for relkit.services.source module."""

from __future__ import annotations

from pathlib import Path

from relkit.core.result import Err, Ok
from relkit.platform.http import HttpError, MockHttpClient
from relkit.services.source import fetch_source, source_url

PATTERN = "https://github.com/ClementTsang/bottom/archive/{version}.tar.gz"


def test_source_url() -> None:
    assert source_url(PATTERN, "0.6.8") == Ok(
        "https://github.com/ClementTsang/bottom/archive/0.6.8.tar.gz"
    )


def test_source_url_unknown_placeholder() -> None:
    result = source_url("https://x/{tag}.tar.gz", "1")
    assert isinstance(result, Err)
    assert "{tag}" in result.error.reason


def test_fetch_source(tmp_path: Path) -> None:
    http = MockHttpClient()
    http.set_download("https://github.com/ClementTsang/bottom/archive/0.6.8.tar.gz", b"tarball")

    result = fetch_source(pattern=PATTERN, version="0.6.8", dest_dir=tmp_path, http=http)

    assert result == Ok(tmp_path / "0.6.8.tar.gz")
    assert (tmp_path / "0.6.8.tar.gz").read_bytes() == b"tarball"


def test_fetch_source_http_error(tmp_path: Path) -> None:
    http = MockHttpClient()
    url = "https://github.com/ClementTsang/bottom/archive/0.6.8.tar.gz"
    http.set_download(url, HttpError(url=url, status=503, message="Service Unavailable"))

    result = fetch_source(pattern=PATTERN, version="0.6.8", dest_dir=tmp_path, http=http)

    assert isinstance(result, Err)
    assert result.error.url == url
    assert "HTTP 503" in result.error.reason
