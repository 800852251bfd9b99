"""
Attempt timer calculations.

Expiry is never enforced by a background job: every read recomputes the
timer from the stored start time and the time limit copied onto the attempt.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from quiz_service.core.datetime_utils import ensure_timezone_aware


@dataclass(frozen=True)
class TimerState:
    """Derived timer view of an attempt."""

    time_limit_seconds: Optional[int]
    started_at: datetime
    expires_at: Optional[datetime]
    remaining_seconds: Optional[int]
    is_expired: bool


def compute_timer(
    started_at: datetime, time_limit_seconds: Optional[int], now: datetime
) -> TimerState:
    """
    Compute the timer state of an attempt at ``now``.

    A NULL time limit means the attempt is unlimited: no expiry time, no
    remaining seconds, never expired.

    Args:
        started_at: When the attempt was created
        time_limit_seconds: Limit copied from the education at start, or None
        now: Current time

    Returns:
        TimerState with remaining seconds clamped at zero
    """
    started_at = ensure_timezone_aware(started_at)
    now = ensure_timezone_aware(now)

    if time_limit_seconds is None:
        return TimerState(
            time_limit_seconds=None,
            started_at=started_at,
            expires_at=None,
            remaining_seconds=None,
            is_expired=False,
        )

    expires_at = started_at + timedelta(seconds=time_limit_seconds)
    remaining = int((expires_at - now).total_seconds())
    return TimerState(
        time_limit_seconds=time_limit_seconds,
        started_at=started_at,
        expires_at=expires_at,
        remaining_seconds=max(0, remaining),
        is_expired=now >= expires_at,
    )


def is_past_deadline(
    started_at: datetime,
    time_limit_seconds: Optional[int],
    now: datetime,
    grace_seconds: int = 0,
) -> bool:
    """True when ``now`` is beyond the deadline plus a grace period."""
    if time_limit_seconds is None:
        return False
    deadline = ensure_timezone_aware(started_at) + timedelta(
        seconds=time_limit_seconds + grace_seconds
    )
    return ensure_timezone_aware(now) > deadline
