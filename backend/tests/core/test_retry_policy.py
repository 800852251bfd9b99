"""
Tests for the retry policy and best-score selection.
"""
from datetime import datetime, timedelta, timezone

from quiz_service.core.retry_policy import (
    AttemptOutcome,
    best_attempt_ids,
    can_retry,
    evaluate_retry,
    select_best,
)

BASE = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def outcome(attempt_id, score, day, passed=None, pass_score=60):
    created = BASE + timedelta(days=day)
    return AttemptOutcome(
        attempt_id=attempt_id,
        score=score,
        passed=score >= pass_score if passed is None else passed,
        created_at=created,
        submitted_at=created + timedelta(minutes=10),
    )


class TestCanRetry:
    def test_under_limit(self):
        assert can_retry(1, 2) is True

    def test_at_limit(self):
        assert can_retry(2, 2) is False

    def test_unlimited(self):
        assert can_retry(500, None) is True


class TestSelectBest:
    """Tests for select_best."""

    def test_highest_score_wins(self):
        outcomes = [outcome("a", 60, 0), outcome("b", 90, 1), outcome("c", 75, 2)]

        assert select_best(outcomes).attempt_id == "b"

    def test_tie_goes_to_most_recent(self):
        outcomes = [outcome("a", 80, 0), outcome("b", 80, 2), outcome("c", 80, 1)]

        assert select_best(outcomes).attempt_id == "b"

    def test_empty(self):
        assert select_best([]) is None

    def test_exactly_one_best_id(self):
        outcomes = [outcome("a", 80, 0), outcome("b", 80, 1)]

        assert best_attempt_ids(outcomes) == ["b"]
        assert best_attempt_ids([]) == []


class TestEvaluateRetry:
    """Tests for evaluate_retry."""

    def test_limit_of_two(self):
        """Two attempts used out of two: no retry left."""
        status = evaluate_retry([outcome("a", 40, 0), outcome("b", 50, 1)], max_attempts=2)

        assert status.can_retry is False
        assert status.current_attempt_count == 2
        assert status.remaining_attempts == 0

    def test_one_attempt_left(self):
        status = evaluate_retry([outcome("a", 40, 0)], max_attempts=2)

        assert status.can_retry is True
        assert status.remaining_attempts == 1

    def test_unlimited_has_no_remaining_count(self):
        status = evaluate_retry([outcome("a", 40, 0)] * 5, max_attempts=None)

        assert status.can_retry is True
        assert status.remaining_attempts is None
        assert status.max_attempts is None

    def test_best_score_and_passed_follow_best_attempt(self):
        """Scores [60, 90, 75]: best is 90 and passed comes from that attempt."""
        outcomes = [outcome("a", 60, 0), outcome("b", 90, 1), outcome("c", 75, 2)]

        status = evaluate_retry(outcomes, max_attempts=None)

        assert status.best_score == 90
        assert status.best_attempt_id == "b"
        assert status.passed is True

    def test_passed_is_false_when_best_attempt_failed(self):
        outcomes = [outcome("a", 40, 0), outcome("b", 55, 1)]

        status = evaluate_retry(outcomes, max_attempts=3)

        assert status.passed is False
        assert status.best_score == 55

    def test_last_attempt_at_is_latest_submission(self):
        outcomes = [outcome("a", 40, 3), outcome("b", 55, 1)]

        status = evaluate_retry(outcomes, max_attempts=None)

        assert status.last_attempt_at == BASE + timedelta(days=3, minutes=10)

    def test_no_attempts(self):
        status = evaluate_retry([], max_attempts=1)

        assert status.can_retry is True
        assert status.current_attempt_count == 0
        assert status.best_score is None
        assert status.passed is None
        assert status.last_attempt_at is None
