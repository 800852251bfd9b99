"""
Quiz attempt endpoints for learners.

Every endpoint acts on behalf of the authenticated caller; attempts belonging
to other users are reported as not found.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from quiz_service.api.deps import get_quiz_engine
from quiz_service.core.auth import CallerContext, get_caller
from quiz_service.core.quiz_engine import QuizEngine
from quiz_service.schemas.quiz import (
    AnswersRequest,
    AvailableEducationItem,
    DepartmentStatsItem,
    LeaveRequest,
    LeaveResponse,
    MyAttemptItem,
    ResultResponse,
    RetryInfoResponse,
    SaveResponse,
    StartResponse,
    SubmitResponse,
    TimerResponse,
    WrongNoteItem,
)

router = APIRouter()


@router.get("/available-educations", response_model=List[AvailableEducationItem])
def get_available_educations(
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    List educations the caller completed, with their quiz status.

    Returns:
        Attempt count, retry eligibility, best score and any in-progress
        attempt for each education
    """
    return engine.available_educations(caller)


@router.get("/my-attempts", response_model=List[MyAttemptItem])
def get_my_attempts(
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    List the caller's submitted attempts, newest first.

    The single best attempt per education is flagged ``isBestScore``.
    """
    return engine.my_attempts(caller)


@router.get("/department-stats", response_model=List[DepartmentStatsItem])
def get_department_stats(
    education_id: Optional[int] = Query(
        None, description="Restrict to one education (all educations if omitted)"
    ),
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Department averages and participation share for an education.
    """
    return engine.department_stats(education_id)


@router.get("/{education_id}/start", response_model=StartResponse)
def start_quiz(
    education_id: int,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Start a quiz attempt, or resume the one in progress.

    Calling this twice returns the same attempt and question snapshot.
    Correct answers are never included.

    Args:
        education_id: Education to take the quiz for

    Returns:
        Attempt id, questions with any saved answers, and time limit

    Raises:
        404: Education not found
        403: RETRY_EXHAUSTED when no attempts are left
        503: Question generation failed
    """
    return engine.start(education_id, caller)


@router.get("/{education_id}/retry-info", response_model=RetryInfoResponse)
def get_retry_info(
    education_id: int,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Retry eligibility, attempt counts and best score for an education.
    """
    return engine.retry_info(education_id, caller)


@router.post("/attempt/{attempt_id}/save", response_model=SaveResponse)
def save_answers(
    attempt_id: str,
    request: AnswersRequest,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Autosave answers. Replaces the previous draft entirely.

    Raises:
        404: Attempt not found or already submitted
        400: Unknown question or out-of-range choice index
    """
    return engine.save(attempt_id, caller, request.as_map())


@router.post("/attempt/{attempt_id}/leave", response_model=LeaveResponse)
def record_leave(
    attempt_id: str,
    request: LeaveRequest,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Record that the user left the quiz screen (tab blur, navigation away).
    """
    return engine.leave(
        attempt_id,
        caller,
        timestamp=request.timestamp,
        reason=request.reason,
        leave_seconds=request.leave_seconds,
    )


@router.get("/attempt/{attempt_id}/timer", response_model=TimerResponse)
def get_timer(
    attempt_id: str,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Remaining time for an in-progress attempt, computed from its start time.
    """
    return engine.timer(attempt_id, caller)


@router.post("/attempt/{attempt_id}/submit", response_model=SubmitResponse)
def submit_quiz(
    attempt_id: str,
    request: AnswersRequest,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Grade and finalize an attempt.

    Answers sent here are merged over the autosaved draft. A second submit
    for the same attempt is rejected with 409; fetch the result instead.

    Raises:
        404: Attempt not found
        409: CONFLICT when already submitted, ATTEMPT_EXPIRED when late
            submissions are rejected
        400: Unknown question or out-of-range choice index
    """
    return engine.submit(attempt_id, caller, request.as_map())


@router.get("/attempt/{attempt_id}/result", response_model=ResultResponse)
def get_result(
    attempt_id: str,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Outcome of a submitted attempt, with the pass score it was graded against.
    """
    return engine.result(attempt_id, caller)


@router.get("/{attempt_id}/wrongs", response_model=List[WrongNoteItem])
def get_wrong_answers(
    attempt_id: str,
    caller: CallerContext = Depends(get_caller),
    engine: QuizEngine = Depends(get_quiz_engine),
):
    """
    Wrong and unanswered questions of a submitted attempt, with explanations.
    """
    return engine.wrongs(attempt_id, caller)
