"""End-of-run report.

Lists every target and manifest with its outcome so a human can decide
whether the draft release is fit to publish.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from relkit.core.errors import ErrorCode, UploadFailed
from relkit.core.model import BuildArtifact, Ecosystem, ReleaseRecord, TargetSpec
from relkit.output.console import ConsoleProtocol

TargetStatus = Literal["built", "failed"]
ManifestStatus = Literal["generated", "skipped", "failed"]


class RunState(Enum):
    DRAFT = "draft"
    BUILDING = "building"
    ARTIFACTS_READY = "artifacts-ready"
    PACKAGING = "packaging"
    PUBLISHED = "published"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TargetResult:
    target: TargetSpec
    status: TargetStatus
    artifact: BuildArtifact | None = None
    detail: str = ""
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ManifestResult:
    ecosystem: Ecosystem
    output: str
    status: ManifestStatus
    detail: str = ""


@dataclass(frozen=True, slots=True)
class RunReport:
    version: str
    record: ReleaseRecord | None = None
    states: tuple[RunState, ...] = ()
    targets: tuple[TargetResult, ...] = ()
    manifests: tuple[ManifestResult, ...] = ()
    upload_failures: tuple[UploadFailed, ...] = ()
    problems: tuple[str, ...] = ()
    fatal: str | None = None
    attached_assets: tuple[str, ...] = ()

    @property
    def succeeded(self) -> tuple[TargetResult, ...]:
        return tuple(t for t in self.targets if t.status == "built")

    @property
    def failed(self) -> tuple[TargetResult, ...]:
        return tuple(t for t in self.targets if t.status == "failed")

    def manifests_with(self, status: ManifestStatus) -> tuple[ManifestResult, ...]:
        return tuple(m for m in self.manifests if m.status == status)

    @property
    def exit_code(self) -> ErrorCode:
        if self.fatal is not None:
            return ErrorCode.FATAL
        if (
            self.failed
            or any(m.status != "generated" for m in self.manifests)
            or self.upload_failures
            or self.problems
        ):
            return ErrorCode.PARTIAL
        return ErrorCode.OK


def print_report(report: RunReport, console: ConsoleProtocol) -> None:
    console.header(f"Release {report.version}")
    if report.fatal is not None:
        console.error(report.fatal)
        return

    console.table(
        "Targets",
        ("target", "status", "asset / reason"),
        [
            (
                str(t.target),
                t.status,
                t.artifact.asset_name if t.artifact is not None else t.detail,
            )
            for t in report.targets
        ],
    )
    console.table(
        "Manifests",
        ("ecosystem", "output", "status", "reason"),
        [(str(m.ecosystem), m.output, m.status, m.detail) for m in report.manifests],
    )

    for t in report.targets:
        for w in t.warnings:
            console.warning(w)
    for u in report.upload_failures:
        console.error(u.message)
    for p in report.problems:
        console.error(p)

    if report.record is not None:
        state = "draft" if report.record.draft else "published"
        console.info(
            f"release {report.record.record_id} ({state}): "
            f"{len(report.attached_assets)} asset(s) attached"
        )

    code = report.exit_code
    if code.is_success:
        console.success("all targets built and all manifests generated")
    else:
        console.warning(
            f"partial release: {len(report.failed)} target(s) failed, "
            f"{len(report.manifests_with('skipped'))} manifest(s) skipped, "
            f"{len(report.manifests_with('failed'))} manifest(s) failed"
        )
