from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relkit.core.config import Config, load_config_or_default
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol, RichConsole, Style

DEFAULT_CONFIG_NAME = "release.toml"


@dataclass(frozen=True, slots=True)
class CLIContext:
    console: ConsoleProtocol
    config: Config | None = None
    config_path: Path | None = None


def build_context(config_path: Path | None = None, *, with_config: bool = False) -> CLIContext:
    console = RichConsole()
    if not with_config:
        return CLIContext(console=console)

    path = (config_path or Path.cwd() / DEFAULT_CONFIG_NAME).expanduser()
    result = load_config_or_default(path)
    if isinstance(result, Err):
        where = f" ({result.error.path})" if result.error.path is not None else ""
        console.error(f"{result.error.message}{where}")
        raise typer.Exit(code=int(ErrorCode.FATAL))

    if not path.exists():
        console.print(f"{path} not found, using the built-in target matrix", Style.DIM)
    return CLIContext(console=console, config=result.value, config_path=path)


def require_config(ctx: CLIContext) -> Config:
    if ctx.config is None:
        raise AssertionError("command needs build_context(with_config=True)")
    return ctx.config
