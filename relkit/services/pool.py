"""Shared artifact pool.

The only place where build outputs meet manifest rendering. Entries are
create-once: each key is written by exactly one producer and never replaced.
`snapshot()` is the fan-in barrier: it freezes the pool and hands packaging
a read-only view.
"""

from __future__ import annotations

import shutil
import threading
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from relkit.core.errors import IOFailure, PoolConflict
from relkit.core.model import PoolKey
from relkit.core.result import Err, Ok, Result


def _key_dir(key: PoolKey) -> str:
    if key.os_class is None:
        return key.kind
    return f"{key.os_class}-{key.triple}-{key.kind}"


class ArtifactPool:
    def __init__(self, root: Path) -> None:
        self._root = root
        self._entries: dict[PoolKey, Path] = {}
        self._lock = threading.Lock()
        self._frozen = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def frozen(self) -> bool:
        return self._frozen

    def put(self, key: PoolKey, source: Path) -> Result[Path, PoolConflict | IOFailure]:
        """Copy `source` into the pool under `key`."""
        with self._lock:
            if self._frozen:
                raise AssertionError(f"artifact pool is frozen; refusing write of {key}")
            if key in self._entries:
                return Err(PoolConflict(key=str(key)))

            dest = self._root / _key_dir(key) / source.name
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, dest)
            except OSError as e:
                return Err(IOFailure(path=source, reason=e.strerror or str(e)))

            self._entries[key] = dest
            return Ok(dest)

    def get(self, key: PoolKey) -> Path | None:
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def snapshot(self) -> Mapping[PoolKey, Path]:
        """Freeze the pool and return a read-only view of its entries."""
        with self._lock:
            self._frozen = True
            return MappingProxyType(dict(self._entries))
