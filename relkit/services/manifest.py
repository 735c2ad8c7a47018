"""Manifest generation: checksums + template rendering per ecosystem.

Placeholder contract for every template:

- `{version}`: release version
- single source: `{sha256}` or `{sha512}`
- several sources: `{sha256_1}`, `{sha256_2}`, ... in source order
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from relkit.core.config import ManifestSpec
from relkit.core.errors import ManifestError, MissingArtifact, UnresolvedPlaceholder
from relkit.core.model import DigestAlgorithm, ManifestJob, PlaceholderMap, PoolKey
from relkit.core.result import Err, Ok, Result
from relkit.core.template import render
from relkit.output.console import ConsoleProtocol, Style
from relkit.services.checksum import digest
from relkit.services.template import render_file


def placeholder_map(
    version: str, algorithm: DigestAlgorithm, digests: Sequence[str]
) -> PlaceholderMap:
    values: dict[str, str] = {"version": version}
    if len(digests) == 1:
        values[algorithm.value] = digests[0]
    else:
        for i, d in enumerate(digests, start=1):
            values[f"{algorithm.value}_{i}"] = d
    return values


def plan_job(
    spec: ManifestSpec, *, version: str, manifests_dir: Path
) -> Result[ManifestJob, UnresolvedPlaceholder]:
    """Turn a configured manifest into a job for `version`."""
    output = render(spec.output, {"version": version})
    if isinstance(output, Err):
        return output
    return Ok(
        ManifestJob(
            ecosystem=spec.ecosystem,
            template_path=spec.template,
            output_path=manifests_dir / output.value,
            algorithm=spec.algorithm,
            sources=spec.sources,
            bundle=spec.bundle,
        )
    )


class ManifestGenerator:
    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def generate(
        self, job: ManifestJob, pool: Mapping[PoolKey, Path], version: str
    ) -> Result[Path, ManifestError]:
        """Render `job` from the artifacts in `pool` and write its output file."""
        paths: list[Path] = []
        for key in job.sources:
            path = pool.get(key)
            if path is None:
                error = MissingArtifact(key=str(key), output=job.output_path)
                # Packaging only schedules jobs whose sources are pooled.
                self._console.error(f"BUG: {error.message}")
                return Err(error)
            paths.append(path)

        digests: list[str] = []
        for path in paths:
            d = digest(path, job.algorithm)
            if isinstance(d, Err):
                return d
            digests.append(d.value)
            self._console.print(f"  {job.algorithm} {d.value}  {path.name}", Style.DIM)

        values = placeholder_map(version, job.algorithm, digests)
        return render_file(job.template_path, job.output_path, values)
