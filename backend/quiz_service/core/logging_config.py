"""
Logging setup for the quiz service.

Production emits one JSON object per line; development keeps a plain
``time - logger - level - message`` format. Engine log calls attach attempt
context through ``extra=`` (``attempt_id``, ``education_id``) and those keys
become top-level JSON fields, next to the request id of the HTTP call.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from quiz_service.core.config import settings

# Set by RequestLoggingMiddleware for the duration of one request
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# ``extra=`` keys promoted to JSON fields
STRUCTURED_FIELDS = (
    # request logging middleware
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
    "user_identifier",
    # quiz engine
    "attempt_id",
    "education_id",
    # unhandled exception handler
    "error_id",
)

# Third-party loggers capped at WARNING regardless of LOG_LEVEL
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single-line JSON document."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            {name: getattr(record, name) for name in STRUCTURED_FIELDS if hasattr(record, name)}
        )

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _console_logger(level: int) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def setup_logging() -> None:
    """
    Install the logging configuration for the current settings.

    The ``quiz_service`` package logs at LOG_LEVEL; uvicorn access logs are
    only shown outside DEBUG and chatty client/ORM loggers stay at WARNING.
    """
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = "json" if settings.ENV == "production" else "default"

    loggers: Dict[str, Any] = {
        "quiz_service": _console_logger(level),
        "uvicorn.access": _console_logger(
            logging.WARNING if settings.DEBUG else logging.INFO
        ),
    }
    for name in QUIET_LOGGERS:
        loggers[name] = _console_logger(logging.WARNING)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {"()": JSONFormatter},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": formatter,
                    "stream": sys.stdout,
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": loggers,
        }
    )
