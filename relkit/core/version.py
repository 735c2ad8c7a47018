from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from relkit.core.errors import InvalidVersion
from relkit.core.result import Err, Ok, Result

_VERSION_RE = re.compile(r"^(0|[1-9][0-9]*)(\.(0|[1-9][0-9]*))*$")
_TAG_REF_PREFIX = "refs/tags/"


@dataclass(frozen=True, slots=True, order=True)
class Version:
    parts: tuple[int, ...]

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)


def parse_version(value: str) -> Result[Version, InvalidVersion]:
    """Parse a release version such as `0.6.8`.

    Leading zeros are rejected so the tag, the asset names and the manifests
    all spell the version the same way.
    """
    text = value.strip()
    if _VERSION_RE.match(text) is None:
        return Err(InvalidVersion(value=value))
    return Ok(Version(tuple(int(p) for p in text.split("."))))


def version_from_ref(ref: str) -> str | None:
    if not ref.startswith(_TAG_REF_PREFIX):
        return None
    tag = ref.removeprefix(_TAG_REF_PREFIX).strip()
    return tag or None


def resolve_version(
    explicit: str | None, env: Mapping[str, str]
) -> Result[Version, InvalidVersion]:
    """Pick the release version for a run.

    An explicit value (manual dispatch against a tag) wins over the tag that
    triggered the CI run (`GITHUB_REF=refs/tags/<version>`).
    """
    if explicit:
        return parse_version(explicit)

    tag = version_from_ref(env.get("GITHUB_REF", ""))
    if tag is None:
        return Err(InvalidVersion(value=""))
    return parse_version(tag)
