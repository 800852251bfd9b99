"""
Admin endpoints: quiz dashboard aggregates and attempt corrections.

All routes require the admin role claim.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from quiz_service.api.deps import get_quiz_engine
from quiz_service.core.auth import CallerContext, get_admin_caller
from quiz_service.core.quiz_engine import QuizEngine
from quiz_service.schemas.quiz import (
    DashboardSummaryResponse,
    DeleteAttemptsResponse,
    DepartmentScoreResponse,
    QuizStatsResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)

PERIOD_DAYS_QUERY = Query(
    None, description="Trailing window in days (default 30; non-positive uses default)"
)
DEPARTMENT_QUERY = Query(None, description="Only attempts submitted from this department")


@router.get("/dashboard/quiz/summary", response_model=DashboardSummaryResponse)
def get_quiz_summary(
    period_days: Optional[int] = PERIOD_DAYS_QUERY,
    department: Optional[str] = DEPARTMENT_QUERY,
    admin: CallerContext = Depends(get_admin_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Headline quiz numbers for the period.

    Returns:
        Average score, participants, pass rate (score >= 80) and
        participation rate against the eligible population
    """
    return engine.dashboard_summary(period_days, department)


@router.get("/dashboard/quiz/department-scores", response_model=DepartmentScoreResponse)
def get_department_scores(
    period_days: Optional[int] = PERIOD_DAYS_QUERY,
    department: Optional[str] = DEPARTMENT_QUERY,
    admin: CallerContext = Depends(get_admin_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Quiz numbers grouped by the department stored on each attempt.
    """
    return engine.department_scores(period_days, department)


@router.get("/dashboard/quiz/quiz-stats", response_model=QuizStatsResponse)
def get_quiz_stats(
    period_days: Optional[int] = PERIOD_DAYS_QUERY,
    department: Optional[str] = DEPARTMENT_QUERY,
    admin: CallerContext = Depends(get_admin_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Per-education quiz numbers, latest education version only.
    """
    return engine.quiz_stats(period_days, department)


@router.delete(
    "/quiz/educations/{education_id}/users/{user_id}/attempts",
    response_model=DeleteAttemptsResponse,
)
def delete_user_attempts(
    education_id: int,
    user_id: str,
    admin: CallerContext = Depends(get_admin_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Soft-delete every attempt of a user for an education.

    Deleted attempts stop counting toward retries, best scores and
    statistics. Attempt numbers are not reused.
    """
    logger.info(
        f"Admin {admin.user_id} deleting quiz attempts of user {user_id}",
        extra={"education_id": education_id},
    )
    return engine.delete_attempts(education_id, user_id)
