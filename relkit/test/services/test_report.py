"""Tests for relkit.services.report module."""

from __future__ import annotations

from relkit.core.errors import ErrorCode, UploadFailed
from relkit.core.model import Ecosystem, OsClass, ReleaseRecord, TargetSpec
from relkit.output.console import MockConsole
from relkit.services.report import ManifestResult, RunReport, TargetResult, print_report

LINUX = TargetSpec(OsClass.LINUX, "x86_64-unknown-linux-gnu")
RECORD = ReleaseRecord(version="0.6.8", record_id="0.6.8", upload_destination="/tmp/r")


def _generated(output: str = "Packages") -> ManifestResult:
    return ManifestResult(Ecosystem.DEBIAN_PACKAGE, output, "generated")


class TestExitCode:
    def test_ok(self) -> None:
        report = RunReport(
            version="0.6.8",
            record=RECORD,
            targets=(TargetResult(LINUX, "built"),),
            manifests=(_generated(),),
        )
        assert report.exit_code == ErrorCode.OK

    def test_fatal_wins(self) -> None:
        report = RunReport(version="0.6.8", fatal="boom", problems=("x",))
        assert report.exit_code == ErrorCode.FATAL

    def test_failed_target(self) -> None:
        report = RunReport(version="1", targets=(TargetResult(LINUX, "failed", detail="x"),))
        assert report.exit_code == ErrorCode.PARTIAL

    def test_skipped_manifest(self) -> None:
        skipped = ManifestResult(Ecosystem.HOMEBREW_FORMULA, "bottom.rb", "skipped", "missing")
        assert RunReport(version="1", manifests=(skipped,)).exit_code == ErrorCode.PARTIAL

    def test_upload_failure(self) -> None:
        report = RunReport(version="1", upload_failures=(UploadFailed("a.zip", "HTTP 502"),))
        assert report.exit_code == ErrorCode.PARTIAL

    def test_warnings_do_not_fail(self) -> None:
        target = TargetResult(LINUX, "built", warnings=("not stripped",))
        assert RunReport(version="1", targets=(target,)).exit_code == ErrorCode.OK


class TestPrintReport:
    def test_summary_tables(self) -> None:
        console = MockConsole()
        report = RunReport(
            version="0.6.8",
            record=RECORD,
            targets=(
                TargetResult(LINUX, "built", warnings=("x86_64-unknown-linux-gnu: binary not stripped",)),
                TargetResult(
                    TargetSpec(OsClass.LINUX, "aarch64-unknown-linux-gnu"),
                    "failed",
                    detail="compile failed",
                ),
            ),
            manifests=(_generated(),),
            attached_assets=("Packages",),
        )

        print_report(report, console)

        assert console.find("Release 0.6.8")
        assert console.find("target | status | asset / reason")
        assert console.find("aarch64-unknown-linux-gnu | failed | compile failed")
        assert console.find("debianPackage | Packages | generated")
        assert console.find("binary not stripped")
        assert console.find("1 asset(s) attached")
        assert console.find("partial release: 1 target(s) failed")

    def test_fatal(self) -> None:
        console = MockConsole()
        print_report(RunReport(version="0.6.8", fatal="cannot create release"), console)
        assert console.has_error()
        assert not console.find("Targets")

    def test_success_line(self) -> None:
        console = MockConsole()
        print_report(RunReport(version="1", record=RECORD, manifests=(_generated(),)), console)
        assert console.find("all targets built")
