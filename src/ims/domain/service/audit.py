"""Best-effort writes to the activity log."""

from __future__ import annotations

import logging

from ims.domain.repository.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def record_activity(activity_log: ActivityLog | None, kind: str, message: str) -> None:
    """Write one audit entry; a failing log is reported and otherwise ignored."""
    if activity_log is None:
        return
    try:
        activity_log.log(kind, message)
    except Exception as exc:
        logger.warning("Could not record %s activity (%s): %s", kind, message, exc)
