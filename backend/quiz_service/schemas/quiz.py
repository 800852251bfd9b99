"""
Pydantic schemas for quiz endpoints.

Wire field names are camelCase (``attemptId``, ``remainingSeconds``); Python
attributes stay snake_case. Requests accept either spelling.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serializing to camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# Requests
# =============================================================================


class AnswerItem(CamelModel):
    """One answer: the selected choice index for a question."""

    question_id: int = Field(..., description="Question ID from the attempt snapshot")
    user_selected_index: Optional[int] = Field(
        None, description="Selected choice index (0-based); null clears the answer"
    )


class AnswersRequest(CamelModel):
    """Schema for save and submit requests."""

    answers: List[AnswerItem] = Field(default_factory=list)

    def as_map(self) -> Dict[int, Optional[int]]:
        """Answers keyed by question id; a repeated question keeps its last entry."""
        return {item.question_id: item.user_selected_index for item in self.answers}


class LeaveRequest(CamelModel):
    """Schema for reporting that the user left the quiz screen."""

    timestamp: Optional[datetime] = Field(
        None, description="Client time of the interruption (defaults to server time)"
    )
    reason: Optional[str] = Field(
        None, max_length=200, description="Client reason (e.g. blur, visibility)"
    )
    leave_seconds: Optional[int] = Field(
        None, description="Seconds spent away; only positive values accumulate"
    )


# =============================================================================
# Attempt lifecycle responses
# =============================================================================


class QuestionItem(CamelModel):
    """Snapshot question as shown to the user. Never carries the answer key."""

    question_id: int
    order: int
    question: str
    choices: List[str]
    answer_index: Optional[int] = Field(
        None, description="Previously saved selection, if any"
    )


class StartResponse(CamelModel):
    attempt_id: str
    education_id: int
    attempt_no: int
    questions: List[QuestionItem]
    time_limit: Optional[int] = Field(None, description="Seconds; null means unlimited")
    started_at: datetime
    resumed: bool = Field(..., description="True when an in-progress attempt was returned")


class SaveResponse(CamelModel):
    saved: bool
    saved_count: int
    saved_at: datetime


class LeaveResponse(CamelModel):
    recorded: bool
    leave_count: int
    last_leave_at: Optional[datetime]


class TimerResponse(CamelModel):
    time_limit: Optional[int]
    started_at: datetime
    expires_at: Optional[datetime]
    remaining_seconds: Optional[int]
    is_expired: bool


class SubmitResponse(CamelModel):
    attempt_id: str
    score: int
    passed: bool
    correct_count: int
    wrong_count: int
    total_count: int
    submitted_at: datetime
    time_limit_exceeded: bool


class ResultResponse(CamelModel):
    attempt_id: str
    score: int
    passed: bool
    pass_score: Optional[int]
    correct_count: int
    wrong_count: int
    total_count: int
    finished_at: datetime
    time_limit_exceeded: bool


class WrongNoteItem(CamelModel):
    """A question the user got wrong (or left unanswered)."""

    question_id: int
    order: int
    question: str
    choices: List[str]
    user_answer_index: Optional[int]
    correct_answer_index: Optional[int]
    explanation: Optional[str] = None


# =============================================================================
# Per-user summaries
# =============================================================================


class AvailableEducationItem(CamelModel):
    education_id: int
    title: str
    category: Optional[str] = None
    attempt_count: int
    max_attempts: Optional[int]
    can_retry: bool
    has_attempted: bool
    best_score: Optional[int] = None
    passed: Optional[bool] = None
    in_progress_attempt_id: Optional[str] = None


class MyAttemptItem(CamelModel):
    attempt_id: str
    education_id: int
    education_title: Optional[str] = None
    score: int
    passed: bool
    attempt_no: int
    submitted_at: datetime
    is_best_score: bool


class RetryInfoResponse(CamelModel):
    education_id: int
    education_title: str
    can_retry: bool
    current_attempt_count: int
    max_attempts: Optional[int]
    remaining_attempts: Optional[int]
    best_score: Optional[int]
    passed: Optional[bool]
    last_attempt_at: Optional[datetime]


class DepartmentStatsItem(CamelModel):
    department_name: str
    average_score: float
    progress_percent: float
    participant_count: int


# =============================================================================
# Admin dashboard
# =============================================================================


class DashboardSummaryResponse(CamelModel):
    period_days: int
    department: Optional[str] = None
    overall_average_score: float
    attempt_count: int
    participant_count: int
    pass_rate: float
    participation_rate: Optional[float]


class DepartmentScoreItem(CamelModel):
    department: str
    average_score: float
    attempt_count: int
    participant_count: int
    pass_rate: float
    participation_rate: Optional[float]


class DepartmentScoreResponse(CamelModel):
    period_days: int
    items: List[DepartmentScoreItem]


class QuizStatsItem(CamelModel):
    education_id: int
    quiz_title: Optional[str]
    education_version: Optional[int]
    average_score: float
    attempt_count: int
    participant_count: int
    pass_rate: float


class QuizStatsResponse(CamelModel):
    period_days: int
    items: List[QuizStatsItem]


class DeleteAttemptsResponse(CamelModel):
    education_id: int
    user_id: str
    deleted_count: int


# =============================================================================
# Internal (service-to-service)
# =============================================================================


class TopicScoreItem(CamelModel):
    """Best result of one user for one education in the topic."""

    education_id: int
    title: str
    has_attempt: bool
    best_score: Optional[int] = None
    passed: Optional[bool] = None
    attempt_count: int = 0
    pass_score: Optional[int] = None
    last_attempt_at: Optional[datetime] = None


class TopicScoreResponse(CamelModel):
    topic: str
    education_count: int
    attempted_count: int
    passed_count: int
    has_attempt: bool
    average_score: float = Field(
        ..., description="Mean of best scores over attempted educations"
    )
    items: List[TopicScoreItem]
