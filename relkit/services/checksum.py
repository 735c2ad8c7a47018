"""Content digests for release artifacts.

Package managers verify these hashes against the downloaded files, so the
output is the plain lowercase hex digest that `sha256sum`/`sha512sum` print.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from relkit.core.errors import IOFailure, UnsupportedAlgorithm
from relkit.core.model import DigestAlgorithm
from relkit.core.result import Err, Ok, Result

_CHUNK_SIZE = 1024 * 1024


def resolve_algorithm(algorithm: DigestAlgorithm | str) -> Result[DigestAlgorithm, UnsupportedAlgorithm]:
    if isinstance(algorithm, DigestAlgorithm):
        return Ok(algorithm)
    parsed = DigestAlgorithm.parse(algorithm)
    if parsed is None:
        return Err(UnsupportedAlgorithm(name=algorithm))
    return Ok(parsed)


def digest(
    path: Path, algorithm: DigestAlgorithm | str
) -> Result[str, IOFailure | UnsupportedAlgorithm]:
    """Hash the whole file at `path` with `algorithm`.

    Returns:
        Ok(hex digest), Err(UnsupportedAlgorithm) for an unknown algorithm name,
        or Err(IOFailure) if the file cannot be read.
    """
    algo = resolve_algorithm(algorithm)
    if isinstance(algo, Err):
        return algo

    h = hashlib.new(algo.value.value)
    try:
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                h.update(chunk)
    except OSError as e:
        return Err(IOFailure(path=path, reason=e.strerror or str(e)))
    return Ok(h.hexdigest())
