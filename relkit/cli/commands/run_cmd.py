"""Full release pipeline: draft release, matrix builds, manifests."""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import CLIContext, build_context, require_config
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.core.version import resolve_version
from relkit.platform.http import RealHttpClient
from relkit.services.coordinator import ReleaseCoordinator
from relkit.services.report import print_report
from relkit.services.store import GhReleaseStore, LocalReleaseStore, ReleaseStore
from relkit.services.toolchain import CargoToolchain


class StoreKind(StrEnum):
    github = "github"
    local = "local"


def _make_store(
    ctx: CLIContext, kind: StoreKind, local_dir: Path | None
) -> ReleaseStore:
    cfg = require_config(ctx)
    if kind == StoreKind.local:
        root = local_dir or (cfg.build.work_dir / "releases")
        ctx.console.info(f"local release store: {root}")
        return LocalReleaseStore(root)
    return GhReleaseStore(repo=cfg.release.repo, cwd=cfg.build.project_dir)


def run(
    version: str | None = typer.Argument(
        None, help="Release version (defaults to the tag in GITHUB_REF)", show_default=False
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to release.toml", show_default=False
    ),
    store: StoreKind = typer.Option(StoreKind.github, "--store", help="Release record store"),
    local_store: Path | None = typer.Option(
        None,
        "--local-store",
        help="Directory for --store local (default: <work_dir>/releases)",
        show_default=False,
    ),
    target: list[str] | None = typer.Option(
        None, "--target", "-t", help="Build only this triple (repeatable)", show_default=False
    ),
    jobs: int | None = typer.Option(
        None, "--jobs", "-j", min=1, help="Parallel builds", show_default=False
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print subprocess commands"),
) -> None:
    """Build every target and publish a draft release with its manifests."""
    ctx = build_context(config, with_config=True)
    cfg = require_config(ctx)

    resolved = exit_on_error(resolve_version(version, os.environ), ctx)
    selected = cfg.select_targets(target or [])
    if isinstance(selected, Err):
        ctx.console.error(selected.error.message)
        raise typer.Exit(code=int(ErrorCode.FATAL))

    coordinator = ReleaseCoordinator(
        config=cfg,
        store=_make_store(ctx, store, local_store),
        toolchain=CargoToolchain(
            project_dir=cfg.build.project_dir,
            project=cfg.project.name,
            binary=cfg.project.binary,
            console=ctx.console,
            verbose=verbose,
        ),
        console=ctx.console,
        http=RealHttpClient(),
        max_workers=jobs,
    )

    report = coordinator.run(str(resolved), selected.value)
    print_report(report, ctx.console)
    code = report.exit_code
    if not code.is_success:
        raise typer.Exit(code=int(code))
