"""Manifest template files.

Placeholder syntax and rendering live in `relkit.core.template`; this module
adds the file side: templates are read and written byte-for-byte apart from
the substituted names.
"""

from __future__ import annotations

import os
from pathlib import Path

from relkit.core.errors import IOFailure, UnresolvedPlaceholder
from relkit.core.model import PlaceholderMap
from relkit.core.result import Err, Ok, Result
from relkit.core.template import placeholders, render

__all__ = ["placeholders", "render", "render_file"]


def _write_atomic(path: Path, content: str) -> None:
    tmp = path.with_name(f"{path.name}.tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def render_file(
    template_path: Path, output_path: Path, values: PlaceholderMap
) -> Result[Path, IOFailure | UnresolvedPlaceholder]:
    """Render `template_path` into `output_path`.

    Line endings are preserved as found in the template. On any failure the
    output file is not created (nor an existing one modified).
    """
    try:
        with template_path.open("r", encoding="utf-8", newline="") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        return Err(IOFailure(path=template_path, reason=str(e)))

    rendered = render(text, values)
    if isinstance(rendered, Err):
        return Err(UnresolvedPlaceholder(name=rendered.error.name, template=template_path))

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        _write_atomic(output_path, rendered.value)
    except OSError as e:
        return Err(IOFailure(path=output_path, reason=e.strerror or str(e)))
    return Ok(output_path)
