"""JSON Lines implementation of ActivityLog.

One JSON object per line, appended as events happen, so logging never
rewrites the history that is already on disk.
"""

from __future__ import annotations

import json
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

from ims.domain.exceptions import PersistenceError
from ims.domain.repository.activity_log import ActivityEntry, ActivityLog
from ims.infrastructure.persistence.json_file import lock_for


class JsonActivityLog(ActivityLog):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)

    def log(self, kind: str, message: str) -> None:
        line = json.dumps(
            {
                "kind": kind,
                "message": message,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        with self._lock:
            try:
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                with self._file_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            except OSError as exc:
                raise PersistenceError(f"Could not write {self._file_path}: {exc}") from exc

    def recent(self, limit: int = 20) -> list[ActivityEntry]:
        if limit <= 0:
            return []
        with self._lock:
            if not self._file_path.exists():
                return []
            try:
                with self._file_path.open(encoding="utf-8") as fh:
                    lines = deque((ln for ln in fh if ln.strip()), maxlen=limit)
                records = [json.loads(ln) for ln in lines]
            except (OSError, ValueError) as exc:
                raise PersistenceError(f"Could not read {self._file_path}: {exc}") from exc
        return [
            ActivityEntry(
                kind=raw["kind"],
                message=raw["message"],
                created_at=datetime.fromisoformat(raw["created_at"]),
            )
            for raw in reversed(records)
        ]
