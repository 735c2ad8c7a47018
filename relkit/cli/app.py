from __future__ import annotations

import typer

from relkit import __version__
from relkit.cli.commands.digest_cmd import digest
from relkit.cli.commands.placeholders_cmd import placeholders
from relkit.cli.commands.render_manifest_cmd import render_manifest
from relkit.cli.commands.run_cmd import run
from relkit.cli.commands.targets_cmd import targets


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(run)
app.command("render-manifest")(render_manifest)
app.command()(digest)
app.command()(targets)
app.command()(placeholders)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Build, package and draft-publish a multi-target release."""


def main() -> None:
    app()
