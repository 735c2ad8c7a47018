"""Release coordinator: one draft release, N target builds, M manifests.

    DRAFT -> BUILDING -> ARTIFACTS_READY -> PACKAGING -> PUBLISHED

Builds run on a thread pool and fail independently. Once every build has
finished, the artifact pool is frozen and the manifests whose inputs exist are
rendered and attached. The release stays a draft; publishing it is a manual
step.
"""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from relkit.core.config import Config, ManifestSpec
from relkit.core.errors import BuildFailure, UploadFailed
from relkit.core.model import SOURCE_KEY, ManifestJob, PoolKey, ReleaseRecord, TargetSpec
from relkit.core.result import Err, Result
from relkit.core.template import render
from relkit.core.version import parse_version
from relkit.output.console import ConsoleProtocol
from relkit.platform.http import HttpClient
from relkit.services.bundle import ArchiveMember, create_archive
from relkit.services.executor import BuildExecutor, BuildOutcome, describe_failure
from relkit.services.manifest import ManifestGenerator, plan_job
from relkit.services.pool import ArtifactPool
from relkit.services.report import (
    ManifestResult,
    ManifestStatus,
    RunReport,
    RunState,
    TargetResult,
)
from relkit.services.source import fetch_source
from relkit.services.store import ReleaseStore
from relkit.services.toolchain import Toolchain


@dataclass
class _RunLog:
    states: list[RunState] = field(default_factory=list)
    targets: list[TargetResult] = field(default_factory=list)
    manifests: list[ManifestResult] = field(default_factory=list)
    upload_failures: list[UploadFailed] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)

    def report(
        self,
        version: str,
        *,
        record: ReleaseRecord | None = None,
        fatal: str | None = None,
        attached: tuple[str, ...] = (),
    ) -> RunReport:
        return RunReport(
            version=version,
            record=record,
            states=tuple(self.states),
            targets=tuple(self.targets),
            manifests=tuple(self.manifests),
            upload_failures=tuple(self.upload_failures),
            problems=tuple(self.problems),
            fatal=fatal,
            attached_assets=attached,
        )


class ReleaseCoordinator:
    def __init__(
        self,
        *,
        config: Config,
        store: ReleaseStore,
        toolchain: Toolchain,
        console: ConsoleProtocol,
        http: HttpClient,
        max_workers: int | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._toolchain = toolchain
        self._console = console
        self._http = http
        self._max_workers = config.build.max_workers if max_workers is None else max_workers
        self._work_dir = config.build.work_dir

    def _enter(self, log: _RunLog, state: RunState) -> None:
        log.states.append(state)
        self._console.header(str(state).upper())

    def run(self, version: str, targets: tuple[TargetSpec, ...] | None = None) -> RunReport:
        log = _RunLog()
        parsed = parse_version(version)
        if isinstance(parsed, Err):
            return log.report(version, fatal=f"{parsed.error.message} ({parsed.error.hint})")
        version = str(parsed.value)
        selected = self._config.targets if targets is None else targets

        self._enter(log, RunState.DRAFT)
        title = render(self._config.release.title, {"version": version})
        if isinstance(title, Err):
            return log.report(version, fatal=f"release title: {title.error.message}")
        created = self._store.create(version, title=title.value, draft=True)
        if isinstance(created, Err):
            message = created.error.message
            if created.error.hint:
                message += f" ({created.error.hint})"
            return log.report(version, fatal=message)
        record = created.value
        self._console.info(f"draft release {record.record_id} -> {record.upload_destination}")

        pool = ArtifactPool(self._work_dir / "pool")
        self._register_source(pool, version, log)

        self._enter(log, RunState.BUILDING)
        self._build_all(selected, record, pool, log)

        self._enter(log, RunState.ARTIFACTS_READY)
        snapshot = pool.snapshot()
        self._console.info(f"{len(snapshot)} artifact(s) pooled")

        self._enter(log, RunState.PACKAGING)
        self._package(snapshot, record, version, log)

        self._enter(log, RunState.PUBLISHED)
        attached: tuple[str, ...] = ()
        meta = self._store.read(record)
        if isinstance(meta, Err):
            log.problems.append(meta.error.message)
        else:
            record = meta.value.record
            attached = meta.value.assets
        return log.report(version, record=record, attached=attached)

    # -------------------------------------------------------------------------
    # Source archive
    # -------------------------------------------------------------------------

    def _needs_source(self) -> bool:
        return any(SOURCE_KEY in m.sources for m in self._config.manifests)

    def _register_source(self, pool: ArtifactPool, version: str, log: _RunLog) -> None:
        pattern = self._config.project.source_url
        if pattern is None or not self._needs_source():
            return
        fetched = fetch_source(
            pattern=pattern,
            version=version,
            dest_dir=self._work_dir / "source",
            http=self._http,
        )
        if isinstance(fetched, Err):
            # Dependent manifests are skipped during packaging.
            self._console.error(fetched.error.message)
            log.problems.append(fetched.error.message)
            return
        put = pool.put(SOURCE_KEY, fetched.value)
        if isinstance(put, Err):
            log.problems.append(put.error.message)

    # -------------------------------------------------------------------------
    # Build fan-out / fan-in
    # -------------------------------------------------------------------------

    def _executor(self) -> BuildExecutor:
        project = self._config.project
        return BuildExecutor(
            toolchain=self._toolchain,
            store=self._store,
            console=self._console,
            work_dir=self._work_dir,
            project=project.name,
            binary=project.binary,
            asset_pattern=project.asset_name,
        )

    def _build_all(
        self,
        targets: tuple[TargetSpec, ...],
        record: ReleaseRecord,
        pool: ArtifactPool,
        log: _RunLog,
    ) -> None:
        executor = self._executor()
        workers = max(1, min(self._max_workers, len(targets) or 1))
        pending: dict[Future[Result[BuildOutcome, BuildFailure]], TargetSpec] = {}
        by_triple: dict[str, TargetResult] = {}

        pool_exec = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="relkit-build")
        try:
            for target in targets:
                pending[pool_exec.submit(executor.build, target, record)] = target

            for future in as_completed(pending):
                target = pending[future]
                by_triple[target.triple] = self._collect(target, future, pool, log)
        except KeyboardInterrupt:
            self._console.warning("interrupted: cancelling pending builds")
            pool_exec.shutdown(wait=True, cancel_futures=True)
            raise
        finally:
            pool_exec.shutdown(wait=True)

        # Report in matrix order, not completion order.
        log.targets.extend(by_triple[t.triple] for t in targets if t.triple in by_triple)

    def _collect(
        self,
        target: TargetSpec,
        future: Future[Result[BuildOutcome, BuildFailure]],
        pool: ArtifactPool,
        log: _RunLog,
    ) -> TargetResult:
        try:
            result = future.result()
        except Exception as e:  # noqa: BLE001
            # Isolated: the other targets keep building.
            message = f"{target.triple}: unexpected error: {e}"
            self._console.error(message)
            return TargetResult(target=target, status="failed", detail=message)

        if isinstance(result, Err):
            detail = describe_failure(result.error)
            self._console.error(detail)
            return TargetResult(target=target, status="failed", detail=detail)

        outcome = result.value
        log.upload_failures.extend(outcome.upload_failures)
        for key, path in outcome.artifact.pool_entries():
            put = pool.put(key, path)
            if isinstance(put, Err):
                log.problems.append(put.error.message)
                self._console.error(put.error.message)

        return TargetResult(
            target=target,
            status="built",
            artifact=outcome.artifact,
            warnings=tuple(w.message for w in outcome.warnings),
        )

    # -------------------------------------------------------------------------
    # Packaging
    # -------------------------------------------------------------------------

    def _package(
        self,
        snapshot: Mapping[PoolKey, Path],
        record: ReleaseRecord,
        version: str,
        log: _RunLog,
    ) -> None:
        generator = ManifestGenerator(self._console)
        manifests_dir = self._config.build.manifests_dir

        bundles: dict[str, list[Path]] = {}
        broken_bundles: set[str] = set()
        singles: list[Path] = []

        for spec in self._config.manifests:
            job = plan_job(spec, version=version, manifests_dir=manifests_dir)
            if isinstance(job, Err):
                self._record_manifest(log, spec, spec.output, "failed", job.error.message)
                if spec.bundle:
                    broken_bundles.add(spec.bundle)
                continue

            rel = self._relative_output(job.value, manifests_dir)
            missing = [str(k) for k in spec.sources if k not in snapshot]
            if missing:
                self._record_manifest(
                    log, spec, rel, "skipped", f"missing artifact(s): {', '.join(missing)}"
                )
                if spec.bundle:
                    broken_bundles.add(spec.bundle)
                continue

            self._console.info(f"{spec.ecosystem}: rendering {rel}")
            written = generator.generate(job.value, snapshot, version)
            if isinstance(written, Err):
                self._record_manifest(log, spec, rel, "failed", written.error.message)
                if spec.bundle:
                    broken_bundles.add(spec.bundle)
                continue

            self._record_manifest(log, spec, rel, "generated")
            if spec.bundle:
                bundles.setdefault(spec.bundle, []).append(written.value)
            else:
                singles.append(written.value)

        for path in singles:
            self._attach(record, path, path.name, log)

        for name, files in bundles.items():
            if name in broken_bundles:
                # Bundles are attached whole or not at all.
                message = f"bundle {name} not attached: a member manifest was not generated"
                self._console.warning(message)
                log.problems.append(message)
                continue
            archive = self._work_dir / "dist" / name
            members = _bundle_members(files)
            created = create_archive(archive, members)
            if isinstance(created, Err):
                log.problems.append(created.error.message)
                self._console.error(created.error.message)
                continue
            self._attach(record, created.value, name, log)

    def _relative_output(self, job: ManifestJob, manifests_dir: Path) -> str:
        try:
            return job.output_path.relative_to(manifests_dir).as_posix()
        except ValueError:
            return job.output_path.as_posix()

    def _record_manifest(
        self,
        log: _RunLog,
        spec: ManifestSpec,
        output: str,
        status: ManifestStatus,
        detail: str = "",
    ) -> None:
        if status == "skipped":
            self._console.warning(f"{spec.ecosystem}: skipped {output}: {detail}")
        elif status == "failed":
            self._console.error(f"{spec.ecosystem}: {detail}")
        log.manifests.append(
            ManifestResult(
                ecosystem=spec.ecosystem,
                output=output,
                status=status,
                detail=detail,
            )
        )

    def _attach(self, record: ReleaseRecord, path: Path, name: str, log: _RunLog) -> None:
        attached = self._store.attach(record, path, name)
        if isinstance(attached, Err):
            self._console.error(attached.error.message)
            log.upload_failures.append(attached.error)
        else:
            self._console.success(f"attached {name}")


def _bundle_members(files: list[Path]) -> list[ArchiveMember]:
    """Archive names relative to the deepest directory shared by `files`."""
    parents = [f.parent for f in files]
    base = parents[0]
    while not all(p == base or base in p.parents for p in parents):
        base = base.parent
    return [(f, f.relative_to(base).as_posix()) for f in files]
