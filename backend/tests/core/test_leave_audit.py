"""
Tests for leave auditing.
"""
from datetime import datetime, timedelta, timezone

from quiz_service.core.leave_audit import (
    MAX_REASON_LENGTH,
    build_leave_event,
    counted_seconds,
)

NOW = datetime(2026, 3, 2, 9, 5, 0, tzinfo=timezone.utc)


class TestBuildLeaveEvent:
    """Tests for build_leave_event."""

    def test_event_fields(self):
        event = build_leave_event("attempt-1", NOW, leave_seconds=8, reason="blur")

        assert event.attempt_id == "attempt-1"
        assert event.reason == "blur"
        assert event.leave_seconds == 8
        assert event.recorded_at == NOW

    def test_client_timestamp_used_when_given(self):
        client_time = NOW - timedelta(seconds=40)

        event = build_leave_event("attempt-1", NOW, timestamp=client_time)

        assert event.occurred_at == client_time
        assert event.recorded_at == NOW

    def test_naive_client_timestamp_treated_as_utc(self):
        event = build_leave_event("attempt-1", NOW, timestamp=datetime(2026, 3, 2, 9, 1))

        assert event.occurred_at == datetime(2026, 3, 2, 9, 1, tzinfo=timezone.utc)

    def test_server_time_used_without_timestamp(self):
        assert build_leave_event("attempt-1", NOW).occurred_at == NOW

    def test_reason_truncated(self):
        event = build_leave_event("attempt-1", NOW, reason="x" * 120)

        assert len(event.reason) == MAX_REASON_LENGTH

    def test_blank_reason_stored_as_none(self):
        assert build_leave_event("attempt-1", NOW, reason="   ").reason is None


class TestCountedSeconds:
    def test_positive_seconds_counted(self):
        assert counted_seconds(12) == 12

    def test_non_positive_seconds_ignored(self):
        assert counted_seconds(0) == 0
        assert counted_seconds(-30) == 0
        assert counted_seconds(None) == 0
