"""SQL implementation of ActivityLog."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from ims.domain.exceptions import PersistenceError
from ims.domain.repository.activity_log import ActivityEntry, ActivityLog


class SqlActivityLog(ActivityLog):

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def log(self, kind: str, message: str) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        "INSERT INTO activity_log (kind, message, created_at) "
                        "VALUES (:kind, :message, :created_at)"
                    ),
                    {
                        "kind": kind,
                        "message": message,
                        "created_at": datetime.now(timezone.utc).isoformat(),
                    },
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not write activity log: {exc}") from exc

    def recent(self, limit: int = 20) -> list[ActivityEntry]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        "SELECT kind, message, created_at FROM activity_log "
                        "ORDER BY id DESC LIMIT :limit"
                    ),
                    {"limit": limit},
                ).fetchall()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not read activity log: {exc}") from exc
        return [
            ActivityEntry(
                kind=row.kind,
                message=row.message,
                created_at=datetime.fromisoformat(row.created_at),
            )
            for row in rows
        ]
