"""Tests for relkit.services.manifest module."""

from __future__ import annotations

from pathlib import Path

from relkit.core.config import ManifestSpec
from relkit.core.errors import MissingArtifact, UnresolvedPlaceholder
from relkit.core.model import (
    DigestAlgorithm,
    Ecosystem,
    ManifestJob,
    OsClass,
    PoolKey,
)
from relkit.core.result import Err, Ok
from relkit.output.console import MockConsole
from relkit.services.checksum import digest
from relkit.services.manifest import ManifestGenerator, placeholder_map, plan_job

LINUX = PoolKey("x86_64-unknown-linux-gnu", OsClass.LINUX)
DARWIN = PoolKey("x86_64-apple-darwin", OsClass.MACOS)


def _sha256(path: Path) -> str:
    result = digest(path, DigestAlgorithm.SHA256)
    assert isinstance(result, Ok)
    return result.value


class TestPlaceholderMap:
    def test_single_source(self) -> None:
        assert placeholder_map("1.2.3", DigestAlgorithm.SHA256, ["aa"]) == {
            "version": "1.2.3",
            "sha256": "aa",
        }

    def test_multiple_sources_are_numbered(self) -> None:
        assert placeholder_map("1.2.3", DigestAlgorithm.SHA512, ["aa", "bb"]) == {
            "version": "1.2.3",
            "sha512_1": "aa",
            "sha512_2": "bb",
        }


class TestPlanJob:
    def test_output_gets_version(self, tmp_path: Path) -> None:
        spec = ManifestSpec(
            ecosystem=Ecosystem.WINDOWS_PACKAGE_MANAGER,
            template=tmp_path / "winget.template",
            output="{version}.yaml",
            algorithm=DigestAlgorithm.SHA256,
            sources=(LINUX,),
        )
        result = plan_job(spec, version="0.6.8", manifests_dir=tmp_path / "m")
        assert isinstance(result, Ok)
        assert result.value.output_path == tmp_path / "m" / "0.6.8.yaml"
        assert result.value.sources == (LINUX,)

    def test_unknown_name_in_output(self, tmp_path: Path) -> None:
        spec = ManifestSpec(
            ecosystem=Ecosystem.ARCH,
            template=tmp_path / "t",
            output="{triple}.txt",
            algorithm=DigestAlgorithm.SHA512,
            sources=(LINUX,),
        )
        result = plan_job(spec, version="1", manifests_dir=tmp_path)
        assert result == Err(UnresolvedPlaceholder(name="triple"))


class TestManifestGenerator:
    def test_single_source(self, tmp_path: Path) -> None:
        artifact = tmp_path / "bottom_x86_64-unknown-linux-gnu.tar.gz"
        artifact.write_bytes(b"linux archive")
        template = tmp_path / "Packages.template"
        template.write_text("Version: {version}, SHA256: {sha256}", encoding="utf-8")
        job = ManifestJob(
            ecosystem=Ecosystem.DEBIAN_PACKAGE,
            template_path=template,
            output_path=tmp_path / "out" / "Packages",
            algorithm=DigestAlgorithm.SHA256,
            sources=(LINUX,),
        )
        console = MockConsole()

        result = ManifestGenerator(console).generate(job, {LINUX: artifact}, "1.2.3")

        assert result == Ok(job.output_path)
        assert job.output_path.read_text(encoding="utf-8") == (
            f"Version: 1.2.3, SHA256: {_sha256(artifact)}"
        )

    def test_two_sources_in_order(self, tmp_path: Path) -> None:
        darwin = tmp_path / "darwin.tar.gz"
        darwin.write_bytes(b"mac")
        linux = tmp_path / "linux.tar.gz"
        linux.write_bytes(b"linux")
        template = tmp_path / "bottom.rb.template"
        template.write_text("{sha256_1} / {sha256_2}", encoding="utf-8")
        job = ManifestJob(
            ecosystem=Ecosystem.HOMEBREW_FORMULA,
            template_path=template,
            output_path=tmp_path / "bottom.rb",
            algorithm=DigestAlgorithm.SHA256,
            sources=(DARWIN, LINUX),
        )

        result = ManifestGenerator(MockConsole()).generate(
            job, {LINUX: linux, DARWIN: darwin}, "1.2.3"
        )

        assert isinstance(result, Ok)
        assert job.output_path.read_text(encoding="utf-8") == (
            f"{_sha256(darwin)} / {_sha256(linux)}"
        )

    def test_missing_artifact_is_reported_loudly(self, tmp_path: Path) -> None:
        template = tmp_path / "t"
        template.write_text("{sha256}", encoding="utf-8")
        job = ManifestJob(
            ecosystem=Ecosystem.HOMEBREW_FORMULA,
            template_path=template,
            output_path=tmp_path / "out",
            algorithm=DigestAlgorithm.SHA256,
            sources=(DARWIN,),
        )
        console = MockConsole()

        result = ManifestGenerator(console).generate(job, {}, "1")

        assert result == Err(MissingArtifact(key="x86_64-apple-darwin", output=tmp_path / "out"))
        assert console.find("BUG:")
        assert not job.output_path.exists()

    def test_template_with_unknown_placeholder(self, tmp_path: Path) -> None:
        artifact = tmp_path / "a"
        artifact.write_bytes(b"x")
        template = tmp_path / "t"
        template.write_text("{sha512}", encoding="utf-8")
        job = ManifestJob(
            ecosystem=Ecosystem.ARCH_BINARY,
            template_path=template,
            output_path=tmp_path / "PKGBUILD_BIN",
            algorithm=DigestAlgorithm.SHA256,
            sources=(LINUX,),
        )

        result = ManifestGenerator(MockConsole()).generate(job, {LINUX: artifact}, "1")

        assert isinstance(result, Err)
        assert isinstance(result.error, UnresolvedPlaceholder)
        assert not job.output_path.exists()

    def test_inputs_untouched(self, tmp_path: Path) -> None:
        artifact = tmp_path / "a"
        artifact.write_bytes(b"payload")
        template = tmp_path / "t"
        template.write_text("{version} {sha256}", encoding="utf-8")
        job = ManifestJob(
            ecosystem=Ecosystem.DEBIAN_PACKAGE,
            template_path=template,
            output_path=tmp_path / "o",
            algorithm=DigestAlgorithm.SHA256,
            sources=(LINUX,),
        )

        ManifestGenerator(MockConsole()).generate(job, {LINUX: artifact}, "1")

        assert artifact.read_bytes() == b"payload"
        assert template.read_text(encoding="utf-8") == "{version} {sha256}"
