"""
Domain exceptions raised by the quiz attempt engine.

Each exception carries the HTTP status and machine-readable error code it maps
to. The engine never raises HTTPException directly; the application-level
handler in ``quiz_service.main`` translates these into responses of the form
``{"detail": <message>, "error_code": <code>}``.
"""
from fastapi import status


class QuizError(Exception):
    """Base class for all quiz engine failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AttemptNotFound(QuizError):
    """Attempt unknown, owned by someone else, or not in the required state."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class EducationNotFound(QuizError):
    """Education unknown to the catalog, or deleted."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class AttemptConflict(QuizError):
    """Attempt was already finalized (duplicate submit)."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class AttemptExpired(QuizError):
    """Submission arrived after the time limit while expiry is enforced."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "ATTEMPT_EXPIRED"


class InvalidAnswer(QuizError):
    """Answer references an unknown question or an out-of-range choice."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_ARGUMENT"


class RetryExhausted(QuizError):
    """No attempts left for this education."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "RETRY_EXHAUSTED"


class GenerationUnavailable(QuizError):
    """Question generation failed; no attempt was created."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "GENERATION_FAILED"
