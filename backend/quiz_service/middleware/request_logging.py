"""
Access logging for the quiz API.

One line when a request arrives and one when it completes, carrying the
method, path, status and duration as structured fields. The request id is
taken from ``X-Request-ID`` (or generated) and echoed on the response.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from quiz_service.core.logging_config import request_id_context

logger = logging.getLogger(__name__)


def _caller_label(request: Request) -> str:
    # Only a short token prefix is logged
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return f"token:{auth_header[7:17]}..."
    return "anonymous"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each API request and tag it with a request id."""

    # Health check and scrape endpoints
    SKIP_PATHS = ("/health", "/ping", "/metrics")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_context.set(request_id)

        path = str(request.url.path)
        quiet = path.endswith(self.SKIP_PATHS)
        fields = {
            "method": request.method,
            "path": path,
            "client_host": request.client.host if request.client else "unknown",
            "user_identifier": _caller_label(request),
        }

        if not quiet:
            logger.info("Incoming request", extra=fields)

        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        if quiet:
            return response

        fields["status_code"] = response.status_code
        fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
        if response.status_code >= 500:
            logger.error("Server error response", extra=fields)
        elif response.status_code >= 400:
            logger.warning("Client error response", extra=fields)
        else:
            logger.info("Request completed", extra=fields)
        return response
