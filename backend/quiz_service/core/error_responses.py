"""
User-facing error text for the quiz API.

Domain exceptions raised by the engine take their messages from
``ErrorMessages`` so the same wording reaches the client whether the failure
surfaces from a learner endpoint or an admin one. Messages are complete
sentences; attempt and education ids are appended in parentheses.

Authentication and authorization failures happen before the engine is
involved and are raised as HTTPExceptions through ``raise_unauthorized``,
``raise_forbidden`` and, for internal routes, ``raise_not_configured``.
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Static messages as constants, parameterized ones as static methods."""

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    INTERNAL_TOKEN_INVALID = "Invalid internal service token."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    ADMIN_ROLE_REQUIRED = "Administrator role required."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    ATTEMPT_NOT_SUBMITTED = "Quiz attempt has not been submitted yet."
    ATTEMPT_NOT_IN_PROGRESS = (
        "Quiz attempt is already submitted. Only in-progress attempts can be modified."
    )

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    ATTEMPT_ALREADY_SUBMITTED = (
        "Quiz attempt has already been submitted. Fetch the result instead."
    )
    ATTEMPT_EXPIRED = (
        "The time limit for this quiz attempt has passed. "
        "The attempt was closed with the answers saved before submission."
    )
    # Concurrent start lost the race and the winning attempt is already gone
    ATTEMPT_START_CONFLICT = (
        "Another quiz attempt was started at the same time. Please try again."
    )

    # ==========================================================================
    # Retry Policy (403)
    # ==========================================================================
    @staticmethod
    def retry_exhausted(max_attempts: int) -> str:
        """Message for when the user has used every allowed attempt."""
        return (
            f"All {max_attempts} allowed attempts have been used for this education."
        )

    # ==========================================================================
    # Server Errors (500, 503)
    # ==========================================================================
    GENERATION_FAILED = (
        "Quiz questions could not be generated. Please try again later."
    )

    INTERNAL_TOKEN_NOT_CONFIGURED = (
        "Internal API is not configured on this server."
    )

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def attempt_not_found(attempt_id: str) -> str:
        """Message for unknown or foreign attempts (never reveals which)."""
        return f"Quiz attempt not found (ID: {attempt_id})."

    @staticmethod
    def education_not_found(education_id: int) -> str:
        """Message for unknown or deleted educations."""
        return f"Education not found (ID: {education_id})."

    @staticmethod
    def unknown_question_ids(question_ids: set) -> str:
        """Message when answers reference questions outside the attempt snapshot."""
        # Sort for consistent, readable output (avoids curly brace set notation)
        ids_str = ", ".join(str(qid) for qid in sorted(question_ids))
        return (
            f"Invalid question IDs: {ids_str}. "
            "These questions do not belong to this quiz attempt."
        )

    @staticmethod
    def choice_out_of_range(question_id: int, selected: int, choice_count: int) -> str:
        """Message when a selected index falls outside the question's choices."""
        return (
            f"Selected index {selected} is out of range for question {question_id} "
            f"(valid: 0-{choice_count - 1})."
        )


# ==============================================================================
# HTTPException builders for the auth dependencies
# ==============================================================================


def raise_unauthorized(detail: str, include_www_authenticate: bool = True) -> NoReturn:
    """Raise 401 for a missing, expired or malformed bearer token."""
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_forbidden(detail: str) -> NoReturn:
    """Raise 403 when the caller is authenticated but lacks the admin role."""
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def raise_not_configured(detail: str) -> NoReturn:
    """Raise 500 when a route needs a secret the server was started without."""
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
