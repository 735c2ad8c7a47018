from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import exit_on_error
from relkit.cli.context import build_context
from relkit.services.checksum import digest as compute_digest
from relkit.services.checksum import resolve_algorithm


def digest(
    path: Path = typer.Argument(..., help="File to hash"),
    algorithm: str = typer.Option("sha256", "--algorithm", "-a", help="sha256 or sha512"),
) -> None:
    """Print the lowercase hex digest of a file."""
    ctx = build_context()
    algo = exit_on_error(resolve_algorithm(algorithm), ctx)
    value = exit_on_error(compute_digest(path, algo), ctx)
    typer.echo(f"{value}  {path.name}")
