"""
Internal endpoints for other services (personalization).

Not exposed to learners: callers authenticate with the shared
X-Internal-Token header and name the user in X-User-Id.
"""
import logging
import secrets

from fastapi import APIRouter, Depends, Header, Query

from quiz_service.api.deps import get_quiz_engine
from quiz_service.core.config import settings
from quiz_service.core.error_responses import (
    ErrorMessages,
    raise_not_configured,
    raise_unauthorized,
)
from quiz_service.core.quiz_engine import QuizEngine
from quiz_service.schemas.quiz import TopicScoreResponse

router = APIRouter()
logger = logging.getLogger(__name__)


def verify_internal_token(x_internal_token: str = Header(...)) -> bool:
    """
    Verify the service token from the X-Internal-Token header.

    Uses constant-time comparison.

    Raises:
        HTTPException: 500 if INTERNAL_API_TOKEN is not set, 401 if the
            header does not match
    """
    if not settings.INTERNAL_API_TOKEN:
        raise_not_configured(ErrorMessages.INTERNAL_TOKEN_NOT_CONFIGURED)

    if not secrets.compare_digest(x_internal_token, settings.INTERNAL_API_TOKEN):
        logger.warning("Rejected internal call with an invalid service token")
        raise_unauthorized(
            ErrorMessages.INTERNAL_TOKEN_INVALID, include_www_authenticate=False
        )

    return True


@router.get("/quiz/score-by-topic", response_model=TopicScoreResponse)
def get_score_by_topic(
    topic: str = Query(..., min_length=1, description="Education category, e.g. SECURITY"),
    x_user_id: str = Header(..., min_length=1),
    _: bool = Depends(verify_internal_token),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    A user's best quiz results across the educations of one topic.

    Returns:
        Per-education best score and pass status, plus attempted and passed
        counts and the mean of best scores
    """
    return engine.score_by_topic(x_user_id, topic)
