"""Placeholder substitution for names and manifest templates.

Syntax:
    {name}      replaced by the value mapped to `name` (identifier characters only)
    {{ and }}   literal `{` and `}`; needed where the target syntax would
                otherwise read as a placeholder, e.g. `${{pkgdir}}` in a PKGBUILD

Anything else, including lone braces such as `{ }` or `@{` and every byte of
whitespace, is copied through untouched. The rendered text is consumed by
YAML, Ruby, XML and shell parsers, so nothing may be reformatted.

Rendering is all-or-nothing: the first unknown name fails the render and no
partial text is returned. Substituted values are never scanned again.
"""

from __future__ import annotations

import re

from relkit.core.errors import UnresolvedPlaceholder
from relkit.core.model import PlaceholderMap
from relkit.core.result import Err, Ok, Result

_TOKEN_RE = re.compile(r"\{\{|\}\}|\{([A-Za-z_][A-Za-z0-9_]*)\}")


def placeholders(template_text: str) -> tuple[str, ...]:
    """Distinct placeholder names in order of first appearance."""
    seen: dict[str, None] = {}
    for m in _TOKEN_RE.finditer(template_text):
        name = m.group(1)
        if name is not None:
            seen.setdefault(name, None)
    return tuple(seen)


def render(
    template_text: str, values: PlaceholderMap
) -> Result[str, UnresolvedPlaceholder]:
    out: list[str] = []
    pos = 0
    for m in _TOKEN_RE.finditer(template_text):
        out.append(template_text[pos : m.start()])
        name = m.group(1)
        token = m.group(0)
        if name is None:
            out.append(token[0])
        elif name in values:
            out.append(values[name])
        else:
            return Err(UnresolvedPlaceholder(name=name))
        pos = m.end()
    out.append(template_text[pos:])
    return Ok("".join(out))
