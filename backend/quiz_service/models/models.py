"""
Database models for the quiz attempt service.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from .base import Base

# Rows matching this predicate are the single "in progress" attempt per
# (user, education). Shared by the model index and the migration.
ACTIVE_ATTEMPT_PREDICATE = "submitted_at IS NULL AND deleted_at IS NULL"


def _new_attempt_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizAttempt(Base):
    """One user's pass through a generated quiz for one education."""

    __tablename__ = "quiz_attempts"

    id = Column(String(36), primary_key=True, default=_new_attempt_id)
    user_id = Column(String(64), nullable=False, index=True)
    education_id = Column(Integer, nullable=False, index=True)
    education_version = Column(Integer, nullable=True)
    attempt_no = Column(Integer, nullable=False)

    # Snapshot of the caller's department taken at submission time
    department = Column(String(100), nullable=True, index=True)

    # Draft buffer: {"<question_id>": selected_index}
    answers = Column(JSON, nullable=False, default=dict)

    # Leave auditing (observational only)
    leave_count = Column(Integer, nullable=False, default=0)
    total_leave_seconds = Column(Integer, nullable=False, default=0)
    last_leave_at = Column(DateTime(timezone=True), nullable=True)

    # Outcome, written once by submit
    score = Column(Integer, nullable=True)
    passed = Column(Boolean, nullable=True)
    correct_count = Column(Integer, nullable=True)
    wrong_count = Column(Integer, nullable=True)
    total_count = Column(Integer, nullable=True)

    # Copied from the education policy at start so later policy edits do not
    # affect attempts already in flight
    time_limit_seconds = Column(Integer, nullable=True)  # NULL: unlimited
    pass_score = Column(Integer, nullable=True)  # NULL: no pass threshold
    # Set on submit when it arrived after the deadline (accepted, flagged)
    time_limit_exceeded = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    submitted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    questions = relationship(
        "QuizQuestion",
        back_populates="attempt",
        order_by="QuizQuestion.question_order",
        cascade="all, delete-orphan",
    )
    leave_events = relationship(
        "QuizLeaveEvent",
        back_populates="attempt",
        order_by="QuizLeaveEvent.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "education_id", "attempt_no", name="uq_quiz_attempts_user_edu_no"
        ),
        # At most one in-progress attempt per (user, education). Concurrent
        # starts race on this index; the loser resumes the winner's row.
        Index(
            "ix_quiz_attempts_active",
            "user_id",
            "education_id",
            unique=True,
            sqlite_where=text(ACTIVE_ATTEMPT_PREDICATE),
            postgresql_where=text(ACTIVE_ATTEMPT_PREDICATE),
        ),
        Index("ix_quiz_attempts_user_education", "user_id", "education_id"),
        CheckConstraint(
            "score IS NULL OR (score >= 0 AND score <= 100)",
            name="ck_quiz_attempts_score_range",
        ),
        CheckConstraint(
            "total_count IS NULL OR correct_count + wrong_count = total_count",
            name="ck_quiz_attempts_counts",
        ),
    )


class QuizQuestion(Base):
    """Immutable question snapshot of an attempt, including the answer key."""

    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(
        String(36),
        ForeignKey("quiz_attempts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_order = Column(Integer, nullable=False)
    prompt = Column(Text, nullable=False)
    choices = Column(JSON, nullable=False)  # List of choice texts
    correct_index = Column(Integer, nullable=True)
    explanation = Column(Text, nullable=True)

    # Graded answer, written once at submission beside the snapshot
    selected_index = Column(Integer, nullable=True)

    attempt = relationship("QuizAttempt", back_populates="questions")

    __table_args__ = (
        UniqueConstraint(
            "attempt_id", "question_order", name="uq_quiz_questions_attempt_order"
        ),
    )


class QuizLeaveEvent(Base):
    """Append-only audit record of a client-reported interruption."""

    __tablename__ = "quiz_leave_events"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(
        String(36),
        ForeignKey("quiz_attempts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    occurred_at = Column(DateTime(timezone=True), nullable=False)
    reason = Column(String(50), nullable=True)
    leave_seconds = Column(Integer, nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    attempt = relationship("QuizAttempt", back_populates="leave_events")


class EducationQuizPolicy(Base):
    """
    Local read model of an education's quiz configuration.

    Kept in sync by the education service; this service never edits it.
    """

    __tablename__ = "education_quiz_policies"

    education_id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(255), nullable=False)
    category = Column(String(50), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    pass_score = Column(Integer, nullable=True)  # NULL: no pass threshold
    time_limit_seconds = Column(Integer, nullable=True)  # NULL: unlimited
    max_attempts = Column(Integer, nullable=True)  # NULL: unlimited
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class EducationCompletion(Base):
    """Local read model: which users completed which education (quiz eligibility)."""

    __tablename__ = "education_completions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    education_id = Column(Integer, nullable=False, index=True)
    department = Column(String(100), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "education_id", name="uq_education_completions_user_edu"
        ),
    )
