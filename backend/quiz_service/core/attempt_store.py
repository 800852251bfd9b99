"""
Persistence for quiz attempts.

Every query that feeds counts, best scores or statistics goes through
``_live`` so soft-deleted attempts are excluded by one predicate.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, update
from sqlalchemy.orm import Session, selectinload

from quiz_service.core.answer_drafts import dump_answers
from quiz_service.core.grading import GradingResult
from quiz_service.core.quiz_stats import ScoredAttempt
from quiz_service.core.retry_policy import AttemptOutcome
from quiz_service.models.models import (
    EducationQuizPolicy,
    QuizAttempt,
    QuizLeaveEvent,
    QuizQuestion,
)

logger = logging.getLogger(__name__)


def to_outcome(attempt: QuizAttempt) -> AttemptOutcome:
    """Project a submitted attempt onto the retry policy's view of it."""
    return AttemptOutcome(
        attempt_id=attempt.id,
        score=attempt.score or 0,
        passed=bool(attempt.passed),
        created_at=attempt.created_at,
        submitted_at=attempt.submitted_at,
    )


class AttemptStore:
    """Repository for QuizAttempt and its snapshot, draft and audit rows."""

    def __init__(self, db: Session):
        self.db = db

    def _live(self):
        return self.db.query(QuizAttempt).filter(QuizAttempt.deleted_at.is_(None))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get(self, attempt_id: str) -> Optional[QuizAttempt]:
        return self._live().filter(QuizAttempt.id == attempt_id).first()

    def find_unsubmitted(self, user_id: str, education_id: int) -> Optional[QuizAttempt]:
        """The in-progress attempt for (user, education), newest first if several."""
        return (
            self._live()
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.education_id == education_id,
                QuizAttempt.submitted_at.is_(None),
            )
            .options(selectinload(QuizAttempt.questions))
            .order_by(QuizAttempt.created_at.desc())
            .first()
        )

    def in_progress_by_education(self, user_id: str) -> Dict[int, str]:
        rows = (
            self._live()
            .with_entities(QuizAttempt.education_id, QuizAttempt.id)
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.submitted_at.is_(None),
            )
            .all()
        )
        return {education_id: attempt_id for education_id, attempt_id in rows}

    def next_attempt_no(self, user_id: str, education_id: int) -> int:
        """
        Next sequence number for (user, education).

        Counts soft-deleted attempts too so a number is never reused.
        """
        current = (
            self.db.query(func.max(QuizAttempt.attempt_no))
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.education_id == education_id,
            )
            .scalar()
        )
        return (current or 0) + 1

    def submitted_attempts(
        self, user_id: str, education_id: Optional[int] = None
    ) -> List[QuizAttempt]:
        """Submitted attempts of a user, newest submission first."""
        query = self._live().filter(
            QuizAttempt.user_id == user_id,
            QuizAttempt.submitted_at.isnot(None),
        )
        if education_id is not None:
            query = query.filter(QuizAttempt.education_id == education_id)
        return query.order_by(QuizAttempt.submitted_at.desc()).all()

    def previous_prompts(self, user_id: str, education_id: int) -> List[str]:
        """Distinct prompts from the user's submitted attempts for an education."""
        rows = (
            self.db.query(QuizQuestion.prompt)
            .join(QuizAttempt, QuizAttempt.id == QuizQuestion.attempt_id)
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.education_id == education_id,
                QuizAttempt.submitted_at.isnot(None),
            )
            .distinct()
            .all()
        )
        return [row.prompt for row in rows]

    def scored_attempts(
        self,
        since: Optional[datetime] = None,
        department: Optional[str] = None,
        education_id: Optional[int] = None,
    ) -> List[ScoredAttempt]:
        """Submitted attempts for statistics, oldest submission first."""
        query = (
            self._live()
            .outerjoin(
                EducationQuizPolicy,
                EducationQuizPolicy.education_id == QuizAttempt.education_id,
            )
            .with_entities(
                QuizAttempt.user_id,
                QuizAttempt.education_id,
                QuizAttempt.score,
                QuizAttempt.department,
                QuizAttempt.education_version,
                EducationQuizPolicy.title,
            )
            .filter(
                QuizAttempt.submitted_at.isnot(None),
                QuizAttempt.score.isnot(None),
            )
        )
        if since is not None:
            query = query.filter(QuizAttempt.submitted_at >= since)
        if department:
            query = query.filter(QuizAttempt.department == department)
        if education_id is not None:
            query = query.filter(QuizAttempt.education_id == education_id)

        return [
            ScoredAttempt(
                user_id=row.user_id,
                education_id=row.education_id,
                score=row.score,
                department=row.department,
                education_version=row.education_version,
                education_title=row.title,
            )
            for row in query.order_by(QuizAttempt.submitted_at.asc()).all()
        ]

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert(self, attempt: QuizAttempt, questions: Sequence[QuizQuestion]) -> None:
        """
        Stage a new attempt with its question snapshot and flush.

        Raises:
            IntegrityError: Another in-progress attempt won the race for
                (user, education); the caller must roll back.
        """
        attempt.questions = list(questions)
        self.db.add(attempt)
        self.db.flush()

    def _in_progress_update(self, attempt_id: str):
        """UPDATE matching the attempt only while it is live and unsubmitted."""
        return (
            update(QuizAttempt)
            .where(
                QuizAttempt.id == attempt_id,
                QuizAttempt.submitted_at.is_(None),
                QuizAttempt.deleted_at.is_(None),
            )
            .execution_options(synchronize_session=False)
        )

    def update_answers(self, attempt_id: str, answers: Dict[int, int]) -> bool:
        """
        Overwrite the draft of an in-progress attempt.

        Returns:
            False if the attempt was submitted or deleted since it was read
        """
        stmt = self._in_progress_update(attempt_id).values(answers=dump_answers(answers))
        return self.db.execute(stmt).rowcount == 1

    def apply_leave(
        self, attempt_id: str, occurred_at: datetime, leave_seconds: int
    ) -> bool:
        """
        Count one leave report against an in-progress attempt.

        Counters are incremented by the database, not from values read
        earlier in the request.

        Returns:
            False if the attempt was submitted or deleted since it was read
        """
        stmt = self._in_progress_update(attempt_id).values(
            leave_count=func.coalesce(QuizAttempt.leave_count, 0) + 1,
            total_leave_seconds=(
                func.coalesce(QuizAttempt.total_leave_seconds, 0) + leave_seconds
            ),
            last_leave_at=occurred_at,
        )
        return self.db.execute(stmt).rowcount == 1

    def add_leave_event(self, event: QuizLeaveEvent) -> None:
        self.db.add(event)

    def finalize_submission(
        self,
        attempt: QuizAttempt,
        answers: Dict[int, int],
        result: GradingResult,
        department: Optional[str],
        submitted_at: datetime,
        time_limit_exceeded: bool,
    ) -> bool:
        """
        Write the outcome exactly once.

        The UPDATE only matches while ``submitted_at IS NULL``; a concurrent
        or repeated submit that lost the race updates zero rows.

        Returns:
            True if this call finalized the attempt, False if it was already
            submitted
        """
        stmt = (
            update(QuizAttempt)
            .where(
                QuizAttempt.id == attempt.id,
                QuizAttempt.submitted_at.is_(None),
            )
            .values(
                answers=dump_answers(answers),
                score=result.score,
                passed=result.passed,
                correct_count=result.correct_count,
                wrong_count=result.wrong_count,
                total_count=result.total_count,
                department=department,
                submitted_at=submitted_at,
                time_limit_exceeded=time_limit_exceeded,
            )
            .execution_options(synchronize_session=False)
        )
        if self.db.execute(stmt).rowcount != 1:
            return False

        selected = {g.question_id: g.selected_index for g in result.graded}
        for question in attempt.questions:
            question.selected_index = selected.get(question.id)
        return True

    def soft_delete(self, user_id: str, education_id: int, now: datetime) -> int:
        """Tombstone every live attempt of a user for an education."""
        stmt = (
            update(QuizAttempt)
            .where(
                QuizAttempt.user_id == user_id,
                QuizAttempt.education_id == education_id,
                QuizAttempt.deleted_at.is_(None),
            )
            .values(deleted_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, attempt: QuizAttempt) -> None:
        self.db.refresh(attempt)
