"""Tests for relkit.services.store module."""

from __future__ import annotations

import json
from pathlib import Path

from relkit.core.errors import ReleaseCreateFailed
from relkit.core.result import Err, Ok, Result
from relkit.platform.process import ProcessError
from relkit.services.store import GhReleaseStore, LocalReleaseStore

VIEW_JSON = json.dumps(
    {
        "tagName": "0.6.8",
        "uploadUrl": "https://uploads.github.com/repos/o/r/releases/1/assets{?name,label}",
        "isDraft": True,
        "assets": [{"name": "bottom_x86_64-unknown-linux-gnu.tar.gz"}, {"name": "arch.tar.gz"}],
    }
)


class TestLocalReleaseStore:
    def test_create_attach_read(self, tmp_path: Path) -> None:
        store = LocalReleaseStore(tmp_path / "releases")
        created = store.create("0.6.8", title="0.6.8 Release")
        assert isinstance(created, Ok)
        record = created.value
        assert record.draft is True
        assert record.record_id == "0.6.8"

        asset = tmp_path / "a.tar.gz"
        asset.write_bytes(b"x")
        assert store.attach(record, asset, "bottom_x86_64-unknown-linux-gnu.tar.gz") == Ok(None)

        meta = store.read(record)
        assert isinstance(meta, Ok)
        assert meta.value.assets == ("bottom_x86_64-unknown-linux-gnu.tar.gz",)
        assert meta.value.record.draft is True
        assert (tmp_path / "releases" / "0.6.8" / "bottom_x86_64-unknown-linux-gnu.tar.gz").is_file()

    def test_create_twice_fails(self, tmp_path: Path) -> None:
        store = LocalReleaseStore(tmp_path)
        store.create("1.0.0", title="t")
        result = store.create("1.0.0", title="t")
        assert isinstance(result, Err)
        assert "already exists" in result.error.reason

    def test_attach_is_create_once(self, tmp_path: Path) -> None:
        store = LocalReleaseStore(tmp_path / "r")
        created = store.create("1.0.0", title="t")
        assert isinstance(created, Ok)
        asset = tmp_path / "a"
        asset.write_bytes(b"first")
        store.attach(created.value, asset, "a.zip")

        asset.write_bytes(b"second")
        result = store.attach(created.value, asset, "a.zip")

        assert isinstance(result, Err)
        assert (tmp_path / "r" / "1.0.0" / "a.zip").read_bytes() == b"first"

    def test_attach_missing_file(self, tmp_path: Path) -> None:
        store = LocalReleaseStore(tmp_path / "r")
        created = store.create("1.0.0", title="t")
        assert isinstance(created, Ok)
        result = store.attach(created.value, tmp_path / "missing", "m.zip")
        assert isinstance(result, Err)
        assert result.error.asset_name == "m.zip"


class ScriptedRunner:
    """Returns queued results in order and records commands."""

    def __init__(self, *results: Result[str, ProcessError]) -> None:
        self._results = list(results)
        self.calls: list[list[str]] = []
        self.uploaded_names: list[str] = []

    def __call__(
        self, cmd: list[str], cwd: Path, env: dict[str, str] | None = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        self.calls.append(cmd)
        if cmd[:3] == ["gh", "release", "upload"]:
            self.uploaded_names.append(Path(cmd[4]).name)
        return self._results.pop(0)


def _fail(stderr: str, code: int = 1) -> Err[ProcessError]:
    return Err(ProcessError(("gh",), code, "", stderr))


def _gh(runner: ScriptedRunner, tmp_path: Path) -> tuple[GhReleaseStore, list[float]]:
    sleeps: list[float] = []
    store = GhReleaseStore(repo="o/r", cwd=tmp_path, runner=runner, sleeper=sleeps.append)
    return store, sleeps


class TestGhReleaseStore:
    def test_create_draft(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), Ok(VIEW_JSON))
        store, _ = _gh(runner, tmp_path)

        result = store.create("0.6.8", title="0.6.8 Release")

        assert isinstance(result, Ok)
        assert result.value.draft is True
        assert result.value.upload_destination.startswith("https://uploads.github.com/")
        assert runner.calls[0] == [
            "gh", "release", "create", "0.6.8", "--repo", "o/r",
            "--title", "0.6.8 Release", "--notes", "", "--draft",
        ]
        assert runner.calls[1][:4] == ["gh", "release", "view", "0.6.8"]

    def test_create_failure_is_not_retried(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(_fail("HTTP 502: Bad Gateway"))
        store, sleeps = _gh(runner, tmp_path)

        result = store.create("0.6.8", title="t")

        assert isinstance(result, Err)
        assert isinstance(result.error, ReleaseCreateFailed)
        assert result.error.hint == "HTTP 502: Bad Gateway"
        assert len(runner.calls) == 1
        assert sleeps == []

    def test_view_retries_transient_errors(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), _fail("connection reset by peer"), Ok(VIEW_JSON))
        store, sleeps = _gh(runner, tmp_path)

        result = store.create("0.6.8", title="t")

        assert isinstance(result, Ok)
        assert sleeps == [2.0]

    def test_view_gives_up_on_permanent_errors(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), _fail("release not found"))
        store, sleeps = _gh(runner, tmp_path)

        result = store.create("0.6.8", title="t")

        assert isinstance(result, Err)
        assert "unreadable" in result.error.reason
        assert sleeps == []

    def test_attach_uploads_under_asset_name(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), Ok(VIEW_JSON), Ok(""))
        store, _ = _gh(runner, tmp_path)
        created = store.create("0.6.8", title="t")
        assert isinstance(created, Ok)
        built = tmp_path / "some-build-output.tar.gz"
        built.write_bytes(b"x")

        result = store.attach(created.value, built, "arch.tar.gz")

        assert result == Ok(None)
        assert runner.uploaded_names == ["arch.tar.gz"]

    def test_attach_failure(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), Ok(VIEW_JSON), _fail("HTTP 422: already_exists"))
        store, _ = _gh(runner, tmp_path)
        created = store.create("0.6.8", title="t")
        assert isinstance(created, Ok)
        asset = tmp_path / "a.zip"
        asset.write_bytes(b"x")

        result = store.attach(created.value, asset, "a.zip")

        assert isinstance(result, Err)
        assert result.error.hint == "HTTP 422: already_exists"

    def test_read_lists_assets(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), Ok(VIEW_JSON), Ok(VIEW_JSON))
        store, _ = _gh(runner, tmp_path)
        created = store.create("0.6.8", title="t")
        assert isinstance(created, Ok)

        meta = store.read(created.value)

        assert isinstance(meta, Ok)
        assert meta.value.assets == ("bottom_x86_64-unknown-linux-gnu.tar.gz", "arch.tar.gz")

    def test_read_invalid_json(self, tmp_path: Path) -> None:
        runner = ScriptedRunner(Ok(""), Ok(VIEW_JSON), Ok("not json"))
        store, _ = _gh(runner, tmp_path)
        created = store.create("0.6.8", title="t")
        assert isinstance(created, Ok)

        meta = store.read(created.value)

        assert isinstance(meta, Err)
        assert "invalid JSON" in meta.error.reason
