"""
Tests for bearer token authentication and the admin role check.
"""
from datetime import datetime, timedelta, timezone

from jose import jwt

from quiz_service.core.auth import caller_from_claims, decode_token
from quiz_service.core.config import settings


class TestDecodeToken:
    """Tests for decode_token."""

    def test_valid_token(self, token_factory):
        payload = decode_token(token_factory("user-1", "Sales"))

        assert payload["sub"] == "user-1"
        assert payload["department"] == "Sales"

    def test_wrong_signature(self):
        token = jwt.encode({"sub": "user-1"}, "some-other-key", algorithm="HS256")

        assert decode_token(token) is None

    def test_expired_token(self):
        token = jwt.encode(
            {"sub": "user-1", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
        )

        assert decode_token(token) is None

    def test_garbage(self):
        assert decode_token("not-a-jwt") is None


class TestCallerFromClaims:
    """Tests for caller_from_claims."""

    def test_realm_roles(self):
        caller = caller_from_claims(
            {"sub": "admin-1", "realm_access": {"roles": [settings.ADMIN_ROLE, "user"]}}
        )

        assert caller.user_id == "admin-1"
        assert caller.is_admin is True
        assert caller.department is None

    def test_top_level_roles(self):
        caller = caller_from_claims({"sub": "u", "roles": [settings.ADMIN_ROLE]})

        assert caller.is_admin is True

    def test_learner_is_not_admin(self):
        caller = caller_from_claims({"sub": "u", "department": "Sales"})

        assert caller.is_admin is False
        assert caller.department == "Sales"

    def test_missing_subject(self):
        assert caller_from_claims({"department": "Sales"}) is None

    def test_numeric_subject_becomes_string(self):
        assert caller_from_claims({"sub": 42}).user_id == "42"


class TestAuthenticatedEndpoints:
    """Authentication as seen through the API."""

    def test_missing_token_rejected(self, client):
        response = client.get("/v1/quiz/my-attempts")

        assert response.status_code in (401, 403)

    def test_invalid_token_rejected(self, client):
        response = client.get(
            "/v1/quiz/my-attempts", headers={"Authorization": "Bearer invalid"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authentication token."
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_token_without_subject_rejected(self, client):
        token = jwt.encode(
            {"department": "Sales"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
        )

        response = client.get(
            "/v1/quiz/my-attempts", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token payload."

    def test_valid_token_accepted(self, client, auth_headers):
        response = client.get("/v1/quiz/my-attempts", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == []

    def test_admin_route_requires_admin_role(self, client, auth_headers):
        response = client.get("/v1/admin/dashboard/quiz/summary", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Administrator role required."

    def test_admin_route_with_admin_role(self, client, admin_headers):
        response = client.get("/v1/admin/dashboard/quiz/summary", headers=admin_headers)

        assert response.status_code == 200
