"""
Best-effort wrapper for side effects of quiz operations.

Metric updates and similar bookkeeping run inside ``graceful_failure`` so a
broken registry or exporter is logged and the learner's start, save or
submit still completes:

    with graceful_failure("record submit metrics", logger):
        quiz_metrics.record_submitted(score, late=False)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Log and discard any ``Exception`` raised inside the block.

    The message reads ``Failed to <operation_name> (k=v, ...): <error>``.
    ``BaseException`` subclasses such as KeyboardInterrupt are not caught.
    """
    try:
        yield
    except Exception as e:
        detail = ""
        if context:
            detail = " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        logger.log(log_level, f"Failed to {operation_name}{detail}: {e}", exc_info=exc_info)
