"""
Models package for the quiz attempt service.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    QuizAttempt,
    QuizQuestion,
    QuizLeaveEvent,
    EducationQuizPolicy,
    EducationCompletion,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "QuizAttempt",
    "QuizQuestion",
    "QuizLeaveEvent",
    "EducationQuizPolicy",
    "EducationCompletion",
]
