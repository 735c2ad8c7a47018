from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.context import build_context
from relkit.core.errors import ErrorCode, IOFailure
from relkit.services.template import placeholders as find_placeholders


def placeholders(
    template: Path = typer.Argument(..., help="Template file"),
) -> None:
    """List the placeholder names a template expects."""
    ctx = build_context()
    try:
        text = template.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        ctx.console.error(IOFailure(path=template, reason=str(e)).message)
        raise typer.Exit(code=int(ErrorCode.FATAL))

    names = find_placeholders(text)
    if not names:
        ctx.console.warning(f"{template} has no placeholders")
        return
    for name in names:
        typer.echo(name)
