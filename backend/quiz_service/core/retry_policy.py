"""
Retry policy and best-score aggregation.

Only submitted, non-deleted attempts count. In-progress attempts never use up
a retry; the caller resumes them instead.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from quiz_service.core.datetime_utils import ensure_timezone_aware


@dataclass(frozen=True)
class AttemptOutcome:
    """The fields of a submitted attempt that the retry policy looks at."""

    attempt_id: str
    score: int
    passed: bool
    created_at: datetime
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class RetryStatus:
    can_retry: bool
    current_attempt_count: int
    max_attempts: Optional[int]
    remaining_attempts: Optional[int]
    best_score: Optional[int]
    best_attempt_id: Optional[str]
    passed: Optional[bool]
    last_attempt_at: Optional[datetime]


def can_retry(current_attempt_count: int, max_attempts: Optional[int]) -> bool:
    """A NULL max_attempts means unlimited retries."""
    return max_attempts is None or current_attempt_count < max_attempts


def select_best(outcomes: Iterable[AttemptOutcome]) -> Optional[AttemptOutcome]:
    """
    Pick the best attempt: highest score, ties broken by the most recent start.

    Returns:
        The best attempt, or None when there are no submitted attempts
    """
    best: Optional[AttemptOutcome] = None
    for outcome in outcomes:
        if best is None or _rank(outcome) > _rank(best):
            best = outcome
    return best


def _rank(outcome: AttemptOutcome):
    return (outcome.score, ensure_timezone_aware(outcome.created_at))


def best_attempt_ids(outcomes: Sequence[AttemptOutcome]) -> List[str]:
    """Ids flagged ``is_best_score``: exactly one per non-empty group."""
    best = select_best(outcomes)
    return [best.attempt_id] if best is not None else []


def evaluate_retry(
    outcomes: Sequence[AttemptOutcome], max_attempts: Optional[int]
) -> RetryStatus:
    """
    Evaluate the retry policy for one (user, education).

    Args:
        outcomes: Submitted, non-deleted attempts for the pair
        max_attempts: Education limit, or None for unlimited

    Returns:
        RetryStatus; ``passed`` and ``best_score`` come from the best attempt
    """
    count = len(outcomes)
    best = select_best(outcomes)
    last = max(
        (ensure_timezone_aware(o.submitted_at or o.created_at) for o in outcomes),
        default=None,
    )
    remaining = None if max_attempts is None else max(0, max_attempts - count)
    return RetryStatus(
        can_retry=can_retry(count, max_attempts),
        current_attempt_count=count,
        max_attempts=max_attempts,
        remaining_attempts=remaining,
        best_score=best.score if best else None,
        best_attempt_id=best.attempt_id if best else None,
        passed=best.passed if best else None,
        last_attempt_at=last,
    )
