"""Tests for relkit.services.bundle module."""

from __future__ import annotations

import tarfile
from pathlib import Path
from zipfile import ZipFile

from relkit.core.result import Err, Ok
from relkit.services.bundle import collect_dir, create_archive, format_for


def test_format_for() -> None:
    assert format_for(Path("a.zip")) == "zip"
    assert format_for(Path("a.tar.gz")) == "tar.gz"


def _staged(tmp_path: Path) -> Path:
    stage = tmp_path / "stage"
    (stage / "completion").mkdir(parents=True)
    (stage / "btm").write_bytes(b"binary")
    (stage / "completion" / "_btm").write_text("zsh", encoding="utf-8")
    (stage / "completion" / "btm.bash").write_text("bash", encoding="utf-8")
    return stage


class TestCollectDir:
    def test_prefixed_sorted(self, tmp_path: Path) -> None:
        stage = _staged(tmp_path)
        members = collect_dir(stage / "completion", arc_prefix="completion")
        assert [arc for _, arc in members] == ["completion/_btm", "completion/btm.bash"]

    def test_missing_dir(self, tmp_path: Path) -> None:
        assert collect_dir(tmp_path / "nope", arc_prefix="x") == []


class TestCreateArchive:
    def test_zip(self, tmp_path: Path) -> None:
        stage = _staged(tmp_path)
        members = [(stage / "btm", "btm.exe")] + collect_dir(
            stage / "completion", arc_prefix="completion"
        )
        archive = tmp_path / "dist" / "bottom_x86_64-pc-windows-msvc.zip"

        result = create_archive(archive, members)

        assert result == Ok(archive)
        with ZipFile(archive) as zf:
            assert sorted(zf.namelist()) == ["btm.exe", "completion/_btm", "completion/btm.bash"]
            assert zf.read("btm.exe") == b"binary"

    def test_tar_gz(self, tmp_path: Path) -> None:
        stage = _staged(tmp_path)
        members = [(stage / "btm", "btm")] + collect_dir(
            stage / "completion", arc_prefix="completion"
        )
        archive = tmp_path / "bottom_x86_64-unknown-linux-gnu.tar.gz"

        result = create_archive(archive, members)

        assert isinstance(result, Ok)
        with tarfile.open(archive, "r:gz") as tf:
            assert sorted(tf.getnames()) == ["btm", "completion/_btm", "completion/btm.bash"]

    def test_missing_member_leaves_no_archive(self, tmp_path: Path) -> None:
        archive = tmp_path / "a.zip"
        result = create_archive(archive, [(tmp_path / "missing", "missing")])
        assert isinstance(result, Err)
        assert not archive.exists()
