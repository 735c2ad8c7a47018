"""Build executor: one target, from compiler invocation to uploaded archive.

Steps for a target:
1. compile (native cargo or `cross`)
2. strip a staged copy of the binary (degrades to a warning)
3. stage shell completions generated by the build
4. bundle binary + completions into `<asset name>.zip|.tar.gz`
5. build extra installers (MSI, deb) declared for the target
6. attach archive and installers to the release

A compile or bundle failure ends this target only. The executor never writes
the shared pool; the coordinator registers the returned artifact.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from relkit.core.capabilities import asset_name, exe_name
from relkit.core.errors import (
    BuildFailure,
    BundleError,
    CompileError,
    InstallerFailed,
    StripUnsupported,
    UploadFailed,
)
from relkit.core.model import BuildArtifact, InstallerArtifact, ReleaseRecord, TargetSpec
from relkit.core.result import Err, Ok, Result
from relkit.core.template import render
from relkit.output.console import ConsoleProtocol
from relkit.services.bundle import ArchiveMember, collect_dir, create_archive
from relkit.services.store import ReleaseStore
from relkit.services.toolchain import Toolchain

BuildWarning = StripUnsupported | InstallerFailed


@dataclass(frozen=True, slots=True)
class BuildOutcome:
    artifact: BuildArtifact
    warnings: tuple[BuildWarning, ...] = ()
    upload_failures: tuple[UploadFailed, ...] = ()


class BuildExecutor:
    def __init__(
        self,
        *,
        toolchain: Toolchain,
        store: ReleaseStore,
        console: ConsoleProtocol,
        work_dir: Path,
        project: str,
        binary: str,
        asset_pattern: str,
    ) -> None:
        self._toolchain = toolchain
        self._store = store
        self._console = console
        self._work_dir = work_dir
        self._project = project
        self._binary = binary
        self._asset_pattern = asset_pattern

    def _stage_dir(self, target: TargetSpec) -> Path:
        return self._work_dir / "build" / target.triple

    def build(self, target: TargetSpec, record: ReleaseRecord) -> Result[BuildOutcome, BuildFailure]:
        triple = target.triple
        warnings: list[BuildWarning] = []
        self._console.info(f"{triple}: building{' (cross)' if target.cross else ''}")

        compiled = self._toolchain.compile(target)
        if isinstance(compiled, Err):
            return compiled

        stage = self._stage_dir(target)
        archive_name = asset_name(
            target, pattern=self._asset_pattern, project=self._project, version=record.version
        )
        if isinstance(archive_name, Err):
            return Err(BundleError(triple, stage, archive_name.error.message))
        archive_path = self._work_dir / "dist" / archive_name.value

        binary_name = exe_name(target, self._binary)
        try:
            if stage.exists():
                shutil.rmtree(stage)
            stage.mkdir(parents=True)
            binary = Path(shutil.copy2(compiled.value, stage / binary_name))
        except OSError as e:
            return Err(BundleError(triple, archive_path, f"staging failed: {e}"))

        stripped = self._toolchain.strip(target, binary)
        if isinstance(stripped, Err):
            self._console.warning(stripped.error.message)
            warnings.append(stripped.error)

        completions = self._stage_completions(target, stage)
        if isinstance(completions, Err):
            return completions

        members: list[ArchiveMember] = [(binary, binary_name)]
        members += collect_dir(stage / "completion", arc_prefix="completion")
        bundled = create_archive(archive_path, members)
        if isinstance(bundled, Err):
            return Err(BundleError(triple, archive_path, bundled.error.reason))

        installers: list[InstallerArtifact] = []
        for spec in target.installers:
            built = self._toolchain.run_installer(target, spec, version=record.version)
            if isinstance(built, Err):
                self._console.warning(built.error.message)
                warnings.append(built.error)
                continue
            name = render(
                spec.asset_name,
                {"project": self._project, "version": record.version, "triple": triple},
            )
            if isinstance(name, Err):
                warnings.append(InstallerFailed(triple, spec.kind, name.error.message))
                continue
            installers.append(
                InstallerArtifact(kind=spec.kind, path=built.value, asset_name=name.value)
            )

        artifact = BuildArtifact(
            target=target,
            binary_path=binary,
            auxiliary_files=completions.value,
            asset_name=archive_name.value,
            asset_archive_path=archive_path,
            installers=tuple(installers),
        )

        upload_failures: list[UploadFailed] = []
        uploads = [(archive_path, archive_name.value)]
        uploads += [(inst.path, inst.asset_name) for inst in installers]
        for path, name in uploads:
            attached = self._store.attach(record, path, name)
            if isinstance(attached, Err):
                self._console.error(attached.error.message)
                upload_failures.append(attached.error)

        self._console.success(f"{triple}: {archive_name.value}")
        return Ok(
            BuildOutcome(
                artifact=artifact,
                warnings=tuple(warnings),
                upload_failures=tuple(upload_failures),
            )
        )

    def _stage_completions(
        self, target: TargetSpec, stage: Path
    ) -> Result[tuple[Path, ...], BundleError]:
        src = self._toolchain.completion_dir(target)
        if src is None:
            return Ok(())
        dest = stage / "completion"
        try:
            shutil.copytree(src, dest)
        except OSError as e:
            return Err(BundleError(target.triple, dest, f"copying completions failed: {e}"))
        return Ok(tuple(sorted(p for p in dest.rglob("*") if p.is_file())))


def describe_failure(error: BuildFailure) -> str:
    if isinstance(error, CompileError) and error.hint:
        return f"{error.message}: {error.hint}"
    return error.message
