"""
Tests for exception handlers in main.py.
"""
from fastapi import APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from quiz_service.core.quiz_errors import (
    AttemptConflict,
    AttemptExpired,
    GenerationUnavailable,
    QuizError,
    RetryExhausted,
)
from quiz_service.main import create_application


def make_client(raise_exc):
    """App with one route raising the given exception."""
    app = create_application()
    router = APIRouter()

    @router.get("/boom")
    def boom():
        raise raise_exc

    app.include_router(router)
    return TestClient(app, raise_server_exceptions=False)


class TestHandlersRegistered:
    def test_handlers_exist(self):
        app = create_application()

        assert QuizError in app.exception_handlers
        assert StarletteHTTPException in app.exception_handlers
        assert RequestValidationError in app.exception_handlers
        assert Exception in app.exception_handlers


class TestQuizErrorHandler:
    """Engine exceptions become {"detail", "error_code"} responses."""

    def test_conflict(self):
        response = make_client(AttemptConflict("Already submitted.")).get("/boom")

        assert response.status_code == 409
        assert response.json() == {"detail": "Already submitted.", "error_code": "CONFLICT"}

    def test_expired(self):
        response = make_client(AttemptExpired("Too late.")).get("/boom")

        assert response.status_code == 409
        assert response.json()["error_code"] == "ATTEMPT_EXPIRED"

    def test_retry_exhausted(self):
        response = make_client(RetryExhausted("No attempts left.")).get("/boom")

        assert response.status_code == 403
        assert response.json()["error_code"] == "RETRY_EXHAUSTED"

    def test_generation_unavailable(self):
        response = make_client(GenerationUnavailable("Try later.")).get("/boom")

        assert response.status_code == 503
        assert response.json()["error_code"] == "GENERATION_FAILED"


class TestGenericHandler:
    def test_unexpected_error_has_error_id(self):
        response = make_client(RuntimeError("unexpected")).get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["detail"] == "Internal server error"
        assert len(body["error_id"]) == 36


class TestValidationHandler:
    def test_bad_request_body(self, client, auth_headers):
        response = client.post(
            "/v1/quiz/attempt/some-id/save",
            json={"answers": [{"userSelectedIndex": 1}]},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_ARGUMENT"
