"""
Leave auditing for in-progress attempts.

A leave event is a client-reported interruption (tab blur, visibility loss,
navigation away). Events are recorded for reporting only and never change the
attempt's state or timer.

This module only builds the audit row. The attempt's counters
(``leave_count``, ``total_leave_seconds``, ``last_leave_at``) are incremented
in SQL by ``AttemptStore.apply_leave`` so concurrent reports from two tabs
are both counted.
"""
from datetime import datetime
from typing import Optional

from quiz_service.core.datetime_utils import ensure_timezone_aware
from quiz_service.models.models import QuizLeaveEvent

MAX_REASON_LENGTH = 50


def counted_seconds(leave_seconds: Optional[int]) -> int:
    """Seconds added to ``total_leave_seconds``; only positive durations count."""
    if leave_seconds is None or leave_seconds <= 0:
        return 0
    return leave_seconds


def build_leave_event(
    attempt_id: str,
    now: datetime,
    timestamp: Optional[datetime] = None,
    reason: Optional[str] = None,
    leave_seconds: Optional[int] = None,
) -> QuizLeaveEvent:
    """
    Build the audit row for one leave report.

    Args:
        attempt_id: In-progress attempt the report belongs to
        now: Server time of the report
        timestamp: Client-side time of the interruption (``occurred_at``
            falls back to ``now``)
        reason: Free-form client reason, truncated to the column width
        leave_seconds: Reported duration away, stored as sent

    Returns:
        Unsaved QuizLeaveEvent for the caller to persist
    """
    occurred_at = ensure_timezone_aware(timestamp) if timestamp else now

    if reason:
        reason = reason.strip()[:MAX_REASON_LENGTH] or None

    return QuizLeaveEvent(
        attempt_id=attempt_id,
        occurred_at=occurred_at,
        reason=reason,
        leave_seconds=leave_seconds,
        recorded_at=now,
    )
