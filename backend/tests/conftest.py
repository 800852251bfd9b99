"""
Pytest configuration and shared fixtures for testing.
"""
import os
import sys
from pathlib import Path

# Settings are read at import time: give the test run its own signing key and
# a SQLite URL before anything from quiz_service is imported.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-quiz-service")
os.environ.setdefault("DATABASE_URL", "sqlite:///./quiz_service_test.db")
os.environ.setdefault("ENV", "test")

# Add backend/ to path so quiz_service is importable without installation
backend_root = Path(__file__).parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Dict, List, Optional, Sequence  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from quiz_service.api.deps import get_clock  # noqa: E402
from quiz_service.core.attempt_store import AttemptStore  # noqa: E402
from quiz_service.core.auth import CallerContext  # noqa: E402
from quiz_service.core.config import settings  # noqa: E402
from quiz_service.core.quiz_engine import QuizEngine  # noqa: E402
from quiz_service.main import app  # noqa: E402
from quiz_service.models import (  # noqa: E402
    Base,
    EducationCompletion,
    EducationQuizPolicy,
    get_db,
)
from quiz_service.services.education_catalog import SqlEducationCatalog  # noqa: E402
from quiz_service.services.question_generator import (  # noqa: E402
    GeneratedQuestion,
    QuestionGenerationError,
    get_question_generator,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Skips Sentry initialization.
    """
    yield


# Neutralize the production lifespan on the singleton app.
app.router.lifespan_context = _test_lifespan


# Use SQLite for tests; the path is relative to this file so the .db lands
# inside tests/ regardless of the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

START_TIME = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable time source; call it to read the current time."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeQuestionGenerator:
    """
    In-memory question generator.

    Every question has four choices and choice 0 is always correct, so tests
    answer 0 for a correct answer and 1 for a wrong one.
    """

    def __init__(self, question_count: int = 10):
        self.question_count = question_count
        self.fail = False
        self.return_empty = False
        self.calls: List[Dict[str, Any]] = []

    def generate(
        self,
        education,
        num_questions: int,
        max_options: int,
        exclude: Sequence[str] = (),
    ) -> List[GeneratedQuestion]:
        self.calls.append(
            {
                "education_id": education.education_id,
                "num_questions": num_questions,
                "max_options": max_options,
                "exclude": list(exclude),
            }
        )
        if self.fail:
            raise QuestionGenerationError("generation service unavailable")
        if self.return_empty:
            return []
        offset = len(self.calls) * 100
        return [
            GeneratedQuestion(
                prompt=f"Question {offset + n} for education {education.education_id}",
                choices=["Correct", "Wrong A", "Wrong B", "Wrong C"],
                correct_index=0,
                explanation=f"Explanation {offset + n}",
            )
            for n in range(self.question_count)
        ]


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_clock():
    """Clock fixed at START_TIME until a test advances it."""
    return FakeClock()


@pytest.fixture
def fake_generator():
    """Question generator producing ten questions with choice 0 correct."""
    return FakeQuestionGenerator()


@pytest.fixture(scope="function")
def client(db_session, fake_clock, fake_generator):
    """
    Create a test client with database, clock and generator overrides.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_question_generator] = lambda: fake_generator
    app.dependency_overrides[get_clock] = lambda: fake_clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def quiz_engine(db_session, fake_clock, fake_generator):
    """QuizEngine wired to the test session, fake clock and fake generator."""
    return QuizEngine(
        store=AttemptStore(db_session),
        catalog=SqlEducationCatalog(db_session),
        generator=fake_generator,
        clock=fake_clock,
    )


@pytest.fixture
def make_policy(db_session):
    """
    Factory fixture creating an education quiz policy.
    """

    def _make_policy(
        education_id: int = 1,
        title: str = "Information Security Basics",
        pass_score: Optional[int] = 60,
        time_limit_seconds: Optional[int] = 600,
        max_attempts: Optional[int] = None,
        version: int = 1,
        category: Optional[str] = "SECURITY",
    ) -> EducationQuizPolicy:
        policy = EducationQuizPolicy(
            education_id=education_id,
            title=title,
            category=category,
            version=version,
            pass_score=pass_score,
            time_limit_seconds=time_limit_seconds,
            max_attempts=max_attempts,
        )
        db_session.add(policy)
        db_session.commit()
        db_session.refresh(policy)
        return policy

    return _make_policy


@pytest.fixture
def complete_education(db_session):
    """
    Factory fixture recording that a user completed an education.
    """

    def _complete(
        user_id: str, education_id: int = 1, department: Optional[str] = "Sales"
    ) -> EducationCompletion:
        completion = EducationCompletion(
            user_id=user_id,
            education_id=education_id,
            department=department,
            completed_at=START_TIME - timedelta(days=1),
        )
        db_session.add(completion)
        db_session.commit()
        return completion

    return _complete


@pytest.fixture
def education(make_policy):
    """Default education: 10 minute limit, pass score 60, unlimited retries."""
    return make_policy()


@pytest.fixture
def caller():
    """Learner identity used by engine-level tests."""
    return CallerContext(user_id="user-1", department="Sales")


@pytest.fixture
def other_caller():
    """A second learner who must never see user-1's attempts."""
    return CallerContext(user_id="user-2", department="Engineering")


def create_token(
    user_id: str,
    department: Optional[str] = None,
    roles: Sequence[str] = (),
    **extra_claims: Any,
) -> str:
    """Sign a token the way the identity provider would."""
    claims: Dict[str, Any] = {
        settings.JWT_USER_ID_CLAIM: user_id,
        "realm_access": {"roles": list(roles)},
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    if department:
        claims[settings.JWT_DEPARTMENT_CLAIM] = department
    claims.update(extra_claims)
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def token_factory():
    """Expose create_token to tests that need custom claims."""
    return create_token


@pytest.fixture
def auth_headers():
    """
    Create authentication headers for learner user-1 (Sales).
    """
    return {"Authorization": f"Bearer {create_token('user-1', 'Sales')}"}


@pytest.fixture
def other_auth_headers():
    """
    Create authentication headers for learner user-2 (Engineering).
    """
    return {"Authorization": f"Bearer {create_token('user-2', 'Engineering')}"}


@pytest.fixture
def admin_headers():
    """
    Create headers with a token carrying the admin role.
    """
    token = create_token("admin-1", "Compliance", roles=[settings.ADMIN_ROLE])
    return {"Authorization": f"Bearer {token}"}


def answers_payload(
    question_ids: Sequence[int], correct: int, answered: Optional[int] = None
) -> Dict[str, Any]:
    """
    Build a save/submit body for FakeQuestionGenerator questions.

    The first ``correct`` questions get the correct choice, the rest of the
    first ``answered`` questions a wrong one; remaining questions are left out.
    """
    answered = len(question_ids) if answered is None else answered
    return {
        "answers": [
            {"questionId": qid, "userSelectedIndex": 0 if n < correct else 1}
            for n, qid in enumerate(question_ids[:answered])
        ]
    }


@pytest.fixture
def build_answers():
    """Expose answers_payload to tests."""
    return answers_payload


def answer_map(
    question_ids: Sequence[int], correct: int, answered: Optional[int] = None
) -> Dict[int, Optional[int]]:
    """Engine-level counterpart of answers_payload."""
    answered = len(question_ids) if answered is None else answered
    return {
        qid: (0 if n < correct else 1)
        for n, qid in enumerate(question_ids[:answered])
    }


@pytest.fixture
def build_answer_map():
    """Expose answer_map to tests."""
    return answer_map
