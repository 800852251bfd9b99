"""
Error tracking and business metrics.

- Sentry: initialized at startup when SENTRY_DSN is set; ``capture_error`` is
  a no-op otherwise.
- Prometheus: quiz lifecycle counters and a score histogram, exposed at
  ``/metrics`` when PROMETHEUS_METRICS_ENABLED is true.

Usage:
    from quiz_service.observability import quiz_metrics

    quiz_metrics.record_started(resumed=False)
    quiz_metrics.record_submitted(score=80, late=False)
"""
import logging
from typing import Any, Dict, Optional

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from quiz_service.core.config import settings

logger = logging.getLogger(__name__)

_sentry_initialized = False


def init_sentry() -> bool:
    """Initialize the Sentry SDK with FastAPI/Starlette integrations.

    Returns:
        True if Sentry was initialized, False if skipped (no DSN) or failed.
    """
    global _sentry_initialized

    if not settings.SENTRY_DSN:
        logger.debug("Sentry initialization skipped (DSN not configured)")
        return False

    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration
        from sentry_sdk.integrations.logging import LoggingIntegration
        from sentry_sdk.integrations.starlette import StarletteIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENV,
            release=settings.APP_VERSION,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[
                LoggingIntegration(level=None, event_level=None),
                FastApiIntegration(transaction_style="endpoint"),
                StarletteIntegration(transaction_style="endpoint"),
            ],
            send_default_pii=False,
        )
        _sentry_initialized = True
        logger.info(
            f"Sentry initialized for environment '{settings.ENV}' "
            f"with {settings.SENTRY_TRACES_SAMPLE_RATE * 100:.0f}% trace sampling"
        )
        return True
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
        return False


def capture_error(
    exception: BaseException,
    *,
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """Send an exception to Sentry with request context.

    Returns:
        Sentry event ID, or None when Sentry is not initialized.
    """
    if not _sentry_initialized:
        return None

    import sentry_sdk

    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("additional", {k: str(v) for k, v in context.items()})
        for key, value in (tags or {}).items():
            scope.set_tag(key, value)
        return sentry_sdk.capture_exception(exception)


def shutdown_sentry() -> None:
    """Flush pending Sentry events."""
    if not _sentry_initialized:
        return

    import sentry_sdk

    sentry_sdk.flush(timeout=2.0)


class QuizMetrics:
    """Prometheus instruments for the quiz attempt lifecycle."""

    def __init__(self) -> None:
        self.attempts_started = Counter(
            "quiz_attempts_started",
            "Quiz start calls by outcome",
            ["outcome"],  # created | resumed
        )
        self.attempts_submitted = Counter(
            "quiz_attempts_submitted",
            "Graded quiz submissions",
            ["late"],
        )
        self.attempts_rejected = Counter(
            "quiz_attempts_rejected",
            "Rejected start/submit calls by reason",
            ["reason"],  # duplicate_submit | expired | retry_exhausted
        )
        self.leave_events = Counter(
            "quiz_leave_events",
            "Client-reported quiz interruptions",
        )
        self.generation_failures = Counter(
            "quiz_generation_failures",
            "Failed question generation calls",
            ["fallback"],
        )
        self.scores = Histogram(
            "quiz_attempt_score",
            "Distribution of submitted quiz scores",
            buckets=(10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
        )

    def record_started(self, resumed: bool) -> None:
        self.attempts_started.labels(outcome="resumed" if resumed else "created").inc()

    def record_submitted(self, score: int, late: bool) -> None:
        self.attempts_submitted.labels(late=str(late).lower()).inc()
        self.scores.observe(score)

    def record_rejected(self, reason: str) -> None:
        self.attempts_rejected.labels(reason=reason).inc()

    def record_leave(self) -> None:
        self.leave_events.inc()

    def record_generation_failure(self, fallback: bool) -> None:
        self.generation_failures.labels(fallback=str(fallback).lower()).inc()


def render_metrics() -> tuple[bytes, str]:
    """Current metrics in Prometheus exposition format, with content type."""
    return generate_latest(), CONTENT_TYPE_LATEST


quiz_metrics = QuizMetrics()
