from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.context import build_context, require_config
from relkit.core.capabilities import can_strip, capabilities_for


def targets(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to release.toml", show_default=False
    ),
) -> None:
    """Show the target matrix and per-target capabilities."""
    ctx = build_context(config, with_config=True)
    cfg = require_config(ctx)

    rows: list[tuple[str, ...]] = []
    for t in cfg.targets:
        caps = capabilities_for(t.os_class)
        rows.append(
            (
                t.triple,
                str(t.os_class),
                "cross" if t.cross else "cargo",
                "yes" if can_strip(t) else "no",
                caps.archive_format,
                ", ".join(i.kind for i in t.installers) or "-",
                ", ".join(sorted(str(e) for e in caps.ecosystems)),
            )
        )
    ctx.console.table(
        "Targets",
        ("triple", "os", "builder", "strip", "archive", "installers", "feeds"),
        rows,
    )

    ctx.console.table(
        "Manifests",
        ("ecosystem", "output", "algorithm", "sources", "bundle"),
        [
            (
                str(m.ecosystem),
                m.output,
                str(m.algorithm),
                ", ".join(str(s) for s in m.sources),
                m.bundle or "-",
            )
            for m in cfg.manifests
        ],
    )
