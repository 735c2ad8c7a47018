"""Release services.

Services implement the release pipeline on top of the domain layer (core/)
and infrastructure (platform/).
"""

from relkit.services.checksum import digest
from relkit.services.coordinator import ReleaseCoordinator
from relkit.services.executor import BuildExecutor, BuildOutcome
from relkit.services.manifest import ManifestGenerator, placeholder_map, plan_job
from relkit.services.pool import ArtifactPool
from relkit.services.report import RunReport, RunState, print_report
from relkit.services.store import GhReleaseStore, LocalReleaseStore, ReleaseStore
from relkit.services.template import placeholders, render, render_file
from relkit.services.toolchain import CargoToolchain, Toolchain

__all__ = [
    # Checksums / templates / manifests
    "digest",
    "placeholders",
    "render",
    "render_file",
    "placeholder_map",
    "plan_job",
    "ManifestGenerator",
    # Builds
    "Toolchain",
    "CargoToolchain",
    "BuildExecutor",
    "BuildOutcome",
    "ArtifactPool",
    # Release
    "ReleaseStore",
    "GhReleaseStore",
    "LocalReleaseStore",
    "ReleaseCoordinator",
    "RunReport",
    "RunState",
    "print_report",
]
