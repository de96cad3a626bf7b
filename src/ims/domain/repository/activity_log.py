"""Abstract audit trail for stock and invoice events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ActivityEntry:
    kind: str
    message: str
    created_at: datetime


class ActivityLog(ABC):

    @abstractmethod
    def log(self, kind: str, message: str) -> None:
        """Record one event. Callers treat failures as non-fatal."""

    @abstractmethod
    def recent(self, limit: int = 20) -> list[ActivityEntry]:
        """Return the latest entries, newest first."""
