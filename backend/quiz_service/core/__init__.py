"""
Core module for application configuration and quiz domain logic.

Note: the engine and store modules are not imported at package level to avoid
circular imports with quiz_service.models (which imports config from here).
Import them directly: from quiz_service.core.quiz_engine import QuizEngine
"""
from .config import settings

__all__ = ["settings"]
