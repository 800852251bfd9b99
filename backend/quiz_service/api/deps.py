"""
Shared FastAPI dependencies for quiz routers.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from quiz_service.core.attempt_store import AttemptStore
from quiz_service.core.datetime_utils import Clock, utc_now
from quiz_service.core.quiz_engine import QuizEngine
from quiz_service.models import get_db
from quiz_service.services.education_catalog import SqlEducationCatalog
from quiz_service.services.question_generator import (
    QuestionGenerator,
    get_question_generator,
)


def get_clock() -> Clock:
    """Time source for the engine (overridden in tests)."""
    return utc_now


def get_quiz_engine(
    db: Session = Depends(get_db),
    generator: QuestionGenerator = Depends(get_question_generator),
    clock: Clock = Depends(get_clock),
) -> QuizEngine:
    """Build a QuizEngine bound to the request's database session."""
    return QuizEngine(
        store=AttemptStore(db),
        catalog=SqlEducationCatalog(db),
        generator=generator,
        clock=clock,
    )
