"""Release record store.

`GhReleaseStore` talks to GitHub Releases through the `gh` CLI.
`LocalReleaseStore` keeps releases as directories, for dry runs and tests.

Assets are create-once in both: attaching a name twice is an error, never an
overwrite. A failed attach only affects that asset.
"""

from __future__ import annotations

import json
import shutil
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from time import sleep
from typing import Protocol

from relkit.core.errors import RecordUnavailable, ReleaseCreateFailed, UploadFailed
from relkit.core.model import ReleaseMetadata, ReleaseRecord
from relkit.core.result import Err, Ok, Result
from relkit.core.structured import as_obj_list, as_str_dict, get_str
from relkit.platform.process import ProcessError
from relkit.platform.process import run as run_process
from relkit.services.timeouts import (
    GH_RETRY_ATTEMPTS,
    GH_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GH_UPLOAD_TIMEOUT_SECONDS,
)

Runner = Callable[..., Result[str, ProcessError]]

_METADATA_FILE = "release.json"


class ReleaseStore(Protocol):
    def create(
        self, version: str, *, title: str, draft: bool = True
    ) -> Result[ReleaseRecord, ReleaseCreateFailed]: ...

    def attach(
        self, record: ReleaseRecord, path: Path, name: str
    ) -> Result[None, UploadFailed]: ...

    def read(self, record: ReleaseRecord) -> Result[ReleaseMetadata, RecordUnavailable]: ...


# -----------------------------------------------------------------------------
# Local directory store
# -----------------------------------------------------------------------------


class LocalReleaseStore:
    """One directory per release: `<root>/<version>/` plus `release.json`."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._lock = threading.Lock()

    def _metadata_path(self, record_id: str) -> Path:
        return self._root / record_id / _METADATA_FILE

    def _load(self, record_id: str) -> dict[str, object]:
        data = as_str_dict(json.loads(self._metadata_path(record_id).read_text(encoding="utf-8")))
        if data is None:
            raise ValueError("release metadata must be a JSON object")
        return data

    def create(
        self, version: str, *, title: str, draft: bool = True
    ) -> Result[ReleaseRecord, ReleaseCreateFailed]:
        release_dir = self._root / version
        if self._metadata_path(version).exists():
            return Err(ReleaseCreateFailed(version, "release already exists", hint=str(release_dir)))
        try:
            release_dir.mkdir(parents=True, exist_ok=True)
            meta = {"version": version, "title": title, "draft": draft, "assets": []}
            self._metadata_path(version).write_text(
                json.dumps(meta, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as e:
            return Err(ReleaseCreateFailed(version, str(e)))

        return Ok(
            ReleaseRecord(
                version=version,
                record_id=version,
                upload_destination=str(release_dir),
                draft=draft,
            )
        )

    def attach(self, record: ReleaseRecord, path: Path, name: str) -> Result[None, UploadFailed]:
        dest = Path(record.upload_destination) / name
        with self._lock:
            if dest.exists():
                return Err(UploadFailed(name, "asset already attached"))
            try:
                shutil.copy2(path, dest)
                meta = self._load(record.record_id)
                assets = [a for a in (as_obj_list(meta.get("assets")) or []) if isinstance(a, str)]
                assets.append(name)
                meta["assets"] = assets
                self._metadata_path(record.record_id).write_text(
                    json.dumps(meta, indent=2) + "\n", encoding="utf-8"
                )
            except (OSError, ValueError) as e:
                return Err(UploadFailed(name, str(e)))
        return Ok(None)

    def read(self, record: ReleaseRecord) -> Result[ReleaseMetadata, RecordUnavailable]:
        try:
            meta = self._load(record.record_id)
        except (OSError, ValueError) as e:
            return Err(RecordUnavailable(record.record_id, str(e)))
        assets = tuple(a for a in (as_obj_list(meta.get("assets")) or []) if isinstance(a, str))
        draft = meta.get("draft")
        return Ok(
            ReleaseMetadata(
                record=ReleaseRecord(
                    version=record.version,
                    record_id=record.record_id,
                    upload_destination=record.upload_destination,
                    draft=draft if isinstance(draft, bool) else record.draft,
                ),
                assets=assets,
            )
        )


# -----------------------------------------------------------------------------
# GitHub CLI store
# -----------------------------------------------------------------------------


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


class GhReleaseStore:
    def __init__(
        self,
        *,
        repo: str | None,
        cwd: Path,
        runner: Runner = run_process,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        self._repo = repo
        self._cwd = cwd
        self._run = runner
        self._sleep = sleeper

    def _repo_args(self) -> list[str]:
        return ["--repo", self._repo] if self._repo else []

    def _gh_read(self, cmd: list[str]) -> Result[str, ProcessError]:
        """Run an idempotent gh command, retrying transient failures."""
        attempts = max(1, GH_RETRY_ATTEMPTS)
        result: Result[str, ProcessError] = Err(ProcessError(tuple(cmd), -1, "", "not run"))
        for attempt in range(attempts):
            result = self._run(cmd, cwd=self._cwd, timeout=GH_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return result
            if attempt < attempts - 1 and _is_transient_gh_error(result.error):
                self._sleep(GH_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return result
        return result

    def _view(self, version: str) -> Result[dict[str, object], str]:
        cmd = [
            "gh",
            "release",
            "view",
            version,
            *self._repo_args(),
            "--json",
            "tagName,uploadUrl,isDraft,assets",
        ]
        result = self._gh_read(cmd)
        if isinstance(result, Err):
            return Err(result.error.stderr.strip() or str(result.error))
        try:
            obj: object = json.loads(result.value)
        except json.JSONDecodeError as e:
            return Err(f"invalid JSON from gh release view: {e}")
        data = as_str_dict(obj)
        if data is None:
            return Err("unexpected gh release view payload")
        return Ok(data)

    def create(
        self, version: str, *, title: str, draft: bool = True
    ) -> Result[ReleaseRecord, ReleaseCreateFailed]:
        cmd = ["gh", "release", "create", version, *self._repo_args(), "--title", title, "--notes", ""]
        if draft:
            cmd.append("--draft")
        # Not retried: a create that reached GitHub before timing out would
        # make the retry fail with "already exists".
        created = self._run(cmd, cwd=self._cwd, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(created, Err):
            return Err(
                ReleaseCreateFailed(
                    version,
                    str(created.error),
                    hint=created.error.stderr.strip() or "Run: gh auth status",
                )
            )

        view = self._view(version)
        if isinstance(view, Err):
            return Err(ReleaseCreateFailed(version, f"created but unreadable: {view.error}"))

        upload_url = get_str(view.value, "uploadUrl")
        if upload_url is None:
            return Err(ReleaseCreateFailed(version, "release has no upload URL"))

        is_draft = view.value.get("isDraft")
        return Ok(
            ReleaseRecord(
                version=version,
                record_id=get_str(view.value, "tagName") or version,
                upload_destination=upload_url,
                draft=is_draft if isinstance(is_draft, bool) else draft,
            )
        )

    def attach(self, record: ReleaseRecord, path: Path, name: str) -> Result[None, UploadFailed]:
        # gh names assets after the uploaded file.
        with tempfile.TemporaryDirectory(prefix="relkit-upload-") as tmp:
            upload_path = path
            if path.name != name:
                upload_path = Path(tmp) / name
                try:
                    shutil.copy2(path, upload_path)
                except OSError as e:
                    return Err(UploadFailed(name, str(e)))

            cmd = [
                "gh",
                "release",
                "upload",
                record.record_id,
                str(upload_path),
                *self._repo_args(),
            ]
            result = self._run(cmd, cwd=self._cwd, timeout=GH_UPLOAD_TIMEOUT_SECONDS)
            if isinstance(result, Err):
                return Err(
                    UploadFailed(
                        name, str(result.error), hint=result.error.stderr.strip() or None
                    )
                )
        return Ok(None)

    def read(self, record: ReleaseRecord) -> Result[ReleaseMetadata, RecordUnavailable]:
        view = self._view(record.record_id)
        if isinstance(view, Err):
            return Err(RecordUnavailable(record.record_id, view.error))

        names: list[str] = []
        for asset_obj in as_obj_list(view.value.get("assets")) or []:
            asset = as_str_dict(asset_obj)
            if asset is None:
                continue
            asset_name = get_str(asset, "name")
            if asset_name is not None:
                names.append(asset_name)

        is_draft = view.value.get("isDraft")
        return Ok(
            ReleaseMetadata(
                record=ReleaseRecord(
                    version=record.version,
                    record_id=record.record_id,
                    upload_destination=get_str(view.value, "uploadUrl")
                    or record.upload_destination,
                    draft=is_draft if isinstance(is_draft, bool) else record.draft,
                ),
                assets=tuple(names),
            )
        )
