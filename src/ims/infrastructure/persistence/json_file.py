"""Shared file handling for the JSON-backed repositories.

Every read-modify-write on a file runs under one re-entrant lock per
resolved path, so repositories that share a file within this process see
each other's writes in order.  Writes go to a temporary file first and
are moved into place, so a crash never leaves half a document behind.
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ims.domain.exceptions import PersistenceError

_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.RLock()
        return lock


class JsonFile:

    def __init__(self, file_path: Path, default: Any) -> None:
        self._file_path = file_path
        self._default = default
        self._lock = lock_for(file_path)
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def load(self) -> Any:
        with self._lock:
            try:
                return json.loads(self._file_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise PersistenceError(f"Could not read {self._file_path}: {exc}") from exc

    def persist(self, data: Any) -> None:
        with self._lock:
            tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
            try:
                tmp_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
                os.replace(tmp_path, self._file_path)
            except OSError as exc:
                raise PersistenceError(f"Could not write {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        with self._lock:
            if self._file_path.exists():
                return
            try:
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise PersistenceError(f"Could not create {self._file_path.parent}: {exc}") from exc
            self.persist(self._default)
