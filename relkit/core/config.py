"""Typed loading of `release.toml`.

The file describes the project, the target matrix and the manifests to
render. Paths are resolved against the directory holding the file. Without a
file, `default_config()` reproduces the matrix the project ships with.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .capabilities import asset_name, offers
from .errors import UnresolvedPlaceholder
from .model import (
    SOURCE_KEY,
    DigestAlgorithm,
    Ecosystem,
    InstallerSpec,
    OsClass,
    PoolKey,
    TargetSpec,
)
from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_str_list,
    get_table,
    get_table_list,
)
from .template import render

__all__ = [
    "Config",
    "ConfigError",
    "ProjectConfig",
    "BuildConfig",
    "ReleaseConfig",
    "ManifestSpec",
    "default_config",
    "load_config",
    "load_config_or_default",
    "parse_source_ref",
]

DEFAULT_ASSET_NAME = "{project}_{triple}"
DEFAULT_RELEASE_TITLE = "{version} Release"
DEFAULT_MAX_WORKERS = 4
DEFAULT_WORK_DIR = "target/relkit"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the config cannot be loaded or is inconsistent."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    # Defaults name the project the built-in matrix releases.
    name: str = "bottom"
    binary: str = "btm"
    asset_name: str = DEFAULT_ASSET_NAME
    # Upstream tarball for source-based recipes; accepts `{version}`.
    source_url: str | None = None


@dataclass(frozen=True, slots=True)
class BuildConfig:
    project_dir: Path = Path(".")
    work_dir: Path = Path(DEFAULT_WORK_DIR)
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def manifests_dir(self) -> Path:
        return self.work_dir / "manifests"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    repo: str | None = None
    title: str = DEFAULT_RELEASE_TITLE


@dataclass(frozen=True, slots=True)
class ManifestSpec:
    """A manifest as configured; becomes a `ManifestJob` once the version is known.

    `output` is relative to the manifests directory and accepts `{version}`.
    """

    ecosystem: Ecosystem
    template: Path
    output: str
    algorithm: DigestAlgorithm
    sources: tuple[PoolKey, ...]
    bundle: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    project: ProjectConfig = field(default_factory=ProjectConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    targets: tuple[TargetSpec, ...] = ()
    manifests: tuple[ManifestSpec, ...] = ()

    def target(self, triple: str) -> TargetSpec | None:
        for t in self.targets:
            if t.triple == triple:
                return t
        return None

    def select_targets(self, triples: list[str]) -> Result[tuple[TargetSpec, ...], ConfigError]:
        """Restrict the matrix to `triples` (all targets when empty)."""
        if not triples:
            return Ok(self.targets)
        selected: list[TargetSpec] = []
        for triple in triples:
            t = self.target(triple)
            if t is None:
                return Err(ConfigError(f"unknown target: {triple}"))
            if t not in selected:
                selected.append(t)
        return Ok(tuple(selected))


def parse_source_ref(ref: str, targets: tuple[TargetSpec, ...]) -> PoolKey | None:
    """Resolve `source`, `<triple>` or `<triple>:<kind>` to a pool key."""
    ref = ref.strip()
    if ref == "source":
        return SOURCE_KEY
    triple, _, kind = ref.partition(":")
    for t in targets:
        if t.triple == triple:
            return t.pool_key(kind or "archive")
    return None


def _parse_installer(data: StrDict, *, where: str) -> Result[InstallerSpec, ConfigError]:
    kind = get_str(data, "kind")
    command = get_str_list(data, "command")
    output = get_str(data, "output")
    asset_name = get_str(data, "asset_name")
    if kind is None or not command or output is None:
        return Err(ConfigError(f"{where}: installer needs kind, command and output"))
    if kind in ("archive", "source"):
        return Err(ConfigError(f"{where}: installer kind {kind!r} is reserved"))
    return Ok(
        InstallerSpec(
            kind=kind,
            command=tuple(command),
            output=output,
            asset_name=asset_name or Path(output).name,
        )
    )


def _parse_target(data: StrDict, index: int) -> Result[TargetSpec, ConfigError]:
    where = f"targets[{index}]"
    triple = get_str(data, "triple")
    os_name = get_str(data, "os")
    if triple is None or os_name is None:
        return Err(ConfigError(f"{where}: triple and os are required"))
    os_class = OsClass.parse(os_name)
    if os_class is None:
        return Err(ConfigError(f"{where}: unknown os {os_name!r} (linux|windows|macos)"))

    installers: list[InstallerSpec] = []
    for inst_data in get_table_list(data, "installers"):
        inst = _parse_installer(inst_data, where=f"{where} ({triple})")
        if isinstance(inst, Err):
            return inst
        installers.append(inst.value)

    return Ok(
        TargetSpec(
            os_class=os_class,
            triple=triple,
            cross=get_bool(data, "cross", False),
            strip=get_bool(data, "strip", True),
            installers=tuple(installers),
        )
    )


def _parse_manifest(
    data: StrDict, index: int, *, root: Path, targets: tuple[TargetSpec, ...]
) -> Result[ManifestSpec, ConfigError]:
    where = f"manifests[{index}]"
    eco_name = get_str(data, "ecosystem")
    template = get_str(data, "template")
    output = get_str(data, "output")
    algo_name = get_str(data, "algorithm") or "sha256"
    refs = get_str_list(data, "sources")
    if eco_name is None or template is None or output is None or not refs:
        return Err(ConfigError(f"{where}: ecosystem, template, output and sources are required"))

    ecosystem = Ecosystem.parse(eco_name)
    if ecosystem is None:
        return Err(ConfigError(f"{where}: unknown ecosystem {eco_name!r}"))
    algorithm = DigestAlgorithm.parse(algo_name)
    if algorithm is None:
        return Err(ConfigError(f"{where}: unsupported algorithm {algo_name!r}"))

    sources: list[PoolKey] = []
    for ref in refs:
        key = parse_source_ref(ref, targets)
        if key is None:
            return Err(ConfigError(f"{where}: source {ref!r} matches no target"))
        if key.os_class is not None and not offers(key.os_class, ecosystem):
            return Err(
                ConfigError(f"{where}: {ecosystem} cannot be fed from {key.os_class} target {ref!r}")
            )
        sources.append(key)

    return Ok(
        ManifestSpec(
            ecosystem=ecosystem,
            template=root / template,
            output=output,
            algorithm=algorithm,
            sources=tuple(sources),
            bundle=get_str(data, "bundle"),
        )
    )


def _check_asset_names(
    targets: tuple[TargetSpec, ...], project: ProjectConfig
) -> Result[None, ConfigError]:
    """Every archive and installer must upload under its own name."""
    # The version is the same for every target, so any value works here.
    version = "0.0.0"
    owners: dict[str, str] = {}
    for t in targets:
        values = {"project": project.name, "version": version, "triple": t.triple}
        archive = asset_name(
            t, pattern=project.asset_name, project=project.name, version=version
        )
        names: list[tuple[str, Result[str, UnresolvedPlaceholder]]] = [(t.triple, archive)]
        names += [(f"{t.triple}:{i.kind}", render(i.asset_name, values)) for i in t.installers]
        for owner, name in names:
            if isinstance(name, Err):
                return Err(ConfigError(f"{owner}: asset name: {name.error.message}"))
            if name.value in owners:
                return Err(
                    ConfigError(
                        f"asset name {name.value!r} is produced by both "
                        f"{owners[name.value]} and {owner}"
                    )
                )
            owners[name.value] = owner
    return Ok(None)


def config_from_dict(data: Mapping[str, object], *, root: Path) -> Result[Config, ConfigError]:
    project_data: StrDict = get_table(data, "project") or {}
    build_data: StrDict = get_table(data, "build") or {}
    release_data: StrDict = get_table(data, "release") or {}

    defaults = Config()
    project = ProjectConfig(
        name=get_str(project_data, "name") or defaults.project.name,
        binary=get_str(project_data, "binary") or defaults.project.binary,
        asset_name=get_str(project_data, "asset_name") or defaults.project.asset_name,
        source_url=get_str(project_data, "source_url"),
    )

    targets: list[TargetSpec] = []
    seen: set[str] = set()
    for i, t_data in enumerate(get_table_list(data, "targets")):
        t = _parse_target(t_data, i)
        if isinstance(t, Err):
            return t
        # Pool keys are per triple; a duplicate would make two cells write one key.
        if t.value.triple in seen:
            return Err(ConfigError(f"duplicate target: {t.value.triple}"))
        seen.add(t.value.triple)
        targets.append(t.value)
    if not targets:
        return Err(ConfigError("no [[targets]] defined"))

    names = _check_asset_names(tuple(targets), project)
    if isinstance(names, Err):
        return names

    manifests: list[ManifestSpec] = []
    for i, m_data in enumerate(get_table_list(data, "manifests")):
        m = _parse_manifest(m_data, i, root=root, targets=tuple(targets))
        if isinstance(m, Err):
            return m
        manifests.append(m.value)

    max_workers = get_int(build_data, "max_workers")
    if max_workers is None:
        max_workers = defaults.build.max_workers
    if max_workers < 1:
        return Err(ConfigError("build.max_workers must be >= 1"))

    project_dir = get_str(build_data, "project_dir")
    work_dir = get_str(build_data, "work_dir")
    return Ok(
        Config(
            project=project,
            build=BuildConfig(
                project_dir=root / (project_dir or defaults.build.project_dir),
                work_dir=root / (work_dir or defaults.build.work_dir),
                max_workers=max_workers,
            ),
            release=ReleaseConfig(
                repo=get_str(release_data, "repo"),
                title=get_str(release_data, "title") or defaults.release.title,
            ),
            targets=tuple(targets),
            manifests=tuple(manifests),
        )
    )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate `release.toml`.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    config = config_from_dict(result.value, root=path.resolve().parent)
    if isinstance(config, Err):
        return Err(ConfigError(config.error.message, path=path))
    return config


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load `path` if it exists, else fall back to `default_config()`."""
    if not path.exists():
        return Ok(default_config(path.resolve().parent))
    return load_config(path)


# -----------------------------------------------------------------------------
# Built-in matrix
# -----------------------------------------------------------------------------


def _linux(triple: str, *, cross: bool, strip: bool = True) -> dict[str, object]:
    return {"triple": triple, "os": "linux", "cross": cross, "strip": strip}


_DEFAULT_DATA: dict[str, object] = {
    "project": {
        "source_url": "https://github.com/ClementTsang/bottom/archive/{version}.tar.gz",
    },
    "release": {"repo": "ClementTsang/bottom"},
    "targets": [
        {
            **_linux("x86_64-unknown-linux-gnu", cross=False),
            "installers": [
                {
                    "kind": "deb",
                    "command": ["cargo", "deb", "--no-build", "--target", "{triple}"],
                    "output": "target/{triple}/debian/{project}_{version}_amd64.deb",
                    "asset_name": "{project}_{version}_amd64.deb",
                }
            ],
        },
        _linux("i686-unknown-linux-gnu", cross=True),
        _linux("x86_64-unknown-linux-musl", cross=False),
        _linux("i686-unknown-linux-musl", cross=True),
        {"triple": "x86_64-apple-darwin", "os": "macos", "cross": False},
        {
            "triple": "x86_64-pc-windows-msvc",
            "os": "windows",
            "cross": False,
            "installers": [
                {
                    "kind": "msi",
                    "command": [
                        "cargo",
                        "wix",
                        "--nocapture",
                        "--output",
                        "{project}_x86_64_installer.msi",
                    ],
                    "output": "{project}_x86_64_installer.msi",
                }
            ],
        },
        {"triple": "i686-pc-windows-msvc", "os": "windows", "cross": True},
        {"triple": "x86_64-pc-windows-gnu", "os": "windows", "cross": False},
        # No strip tool on the build host for these three.
        _linux("aarch64-unknown-linux-gnu", cross=True, strip=False),
        _linux("armv7-unknown-linux-gnueabihf", cross=True, strip=False),
        _linux("powerpc64le-unknown-linux-gnu", cross=True, strip=False),
    ],
    "manifests": [
        {
            "ecosystem": "debianPackage",
            "template": "deployment/linux/debian/Packages.template",
            "output": "Packages",
            "algorithm": "sha256",
            "sources": ["x86_64-unknown-linux-gnu:deb"],
        },
        {
            "ecosystem": "arch",
            "template": "deployment/linux/arch/PKGBUILD.template",
            "output": "arch/PKGBUILD",
            "algorithm": "sha512",
            "sources": ["source"],
            "bundle": "arch.tar.gz",
        },
        {
            "ecosystem": "archBinary",
            "template": "deployment/linux/arch/PKGBUILD_BIN.template",
            "output": "arch/PKGBUILD_BIN",
            "algorithm": "sha512",
            "sources": ["x86_64-unknown-linux-gnu"],
            "bundle": "arch.tar.gz",
        },
        {
            "ecosystem": "windowsPackageManager",
            "template": "deployment/windows/winget/winget.yaml.template",
            "output": "{version}.yaml",
            "algorithm": "sha256",
            "sources": ["x86_64-pc-windows-msvc:msi"],
        },
        {
            "ecosystem": "windowsChocolatey",
            "template": "deployment/windows/choco/bottom.nuspec.template",
            "output": "choco/bottom.nuspec",
            "algorithm": "sha256",
            "sources": ["i686-pc-windows-msvc", "x86_64-pc-windows-msvc"],
            "bundle": "choco.zip",
        },
        {
            "ecosystem": "windowsChocolatey",
            "template": "deployment/windows/choco/chocolateyinstall.ps1.template",
            "output": "choco/tools/chocolateyinstall.ps1",
            "algorithm": "sha256",
            "sources": ["i686-pc-windows-msvc", "x86_64-pc-windows-msvc"],
            "bundle": "choco.zip",
        },
        {
            "ecosystem": "homebrewFormula",
            "template": "deployment/macos/homebrew/bottom.rb.template",
            "output": "bottom.rb",
            "algorithm": "sha256",
            "sources": ["x86_64-apple-darwin", "x86_64-unknown-linux-gnu"],
        },
    ],
}


def default_config(root: Path) -> Config:
    """The project's own release matrix, rooted at `root`."""
    result = config_from_dict(_DEFAULT_DATA, root=root)
    if isinstance(result, Err):
        raise AssertionError(f"built-in config is invalid: {result.error.message}")
    return result.value
