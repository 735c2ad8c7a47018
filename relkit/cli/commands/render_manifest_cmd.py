"""Single-shot manifest rendering, outside of a full release run."""

from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import build_context
from relkit.core.version import parse_version
from relkit.output.console import Style
from relkit.services.checksum import digest, resolve_algorithm
from relkit.services.manifest import placeholder_map
from relkit.services.template import render_file


def render_manifest(
    version: str = typer.Argument(..., help="Release version (e.g. 0.6.8)"),
    template: Path = typer.Argument(..., help="Template file"),
    output: Path = typer.Argument(..., help="Rendered manifest path"),
    algorithm: str = typer.Argument(..., help="sha256 or sha512"),
    artifacts: list[Path] = typer.Argument(..., help="Artifacts to hash, in placeholder order"),
) -> None:
    """Render TEMPLATE into OUTPUT with the digests of ARTIFACTS."""
    ctx = build_context()
    parsed = exit_on_error(parse_version(version), ctx)
    algo = exit_on_error(resolve_algorithm(algorithm), ctx)

    digests: list[str] = []
    for path in artifacts:
        value = exit_on_error(digest(path, algo), ctx)
        ctx.console.print(f"{algo} {value}  {path.name}", Style.DIM)
        digests.append(value)

    values = placeholder_map(str(parsed), algo, digests)
    written = exit_on_error(render_file(template, output, values), ctx)
    ctx.console.success(str(written))
