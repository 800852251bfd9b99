"""
Caller identity from bearer JWTs.

Tokens are issued by the identity provider; this service only verifies them
and extracts the caller's user id, department and roles. The resulting
``CallerContext`` is passed explicitly into every engine call.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from quiz_service.core.config import settings
from quiz_service.core.error_responses import (
    ErrorMessages,
    raise_forbidden,
    raise_unauthorized,
)

# HTTP Bearer token scheme
security = HTTPBearer()


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller."""

    user_id: str
    department: Optional[str] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return settings.ADMIN_ROLE in self.roles


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid, None if invalid
    """
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE or None,
            options=options,
        )
    except JWTError:
        return None


def caller_from_claims(payload: Dict[str, Any]) -> Optional[CallerContext]:
    """
    Build a CallerContext from token claims.

    Roles are read from ``realm_access.roles`` (identity-provider realm roles)
    and a top-level ``roles`` list, whichever is present.

    Returns:
        CallerContext, or None when the user id claim is missing
    """
    user_id = payload.get(settings.JWT_USER_ID_CLAIM)
    if not user_id:
        return None

    roles = set()
    realm_access = payload.get("realm_access")
    if isinstance(realm_access, dict):
        roles.update(realm_access.get("roles") or [])
    if isinstance(payload.get("roles"), list):
        roles.update(payload["roles"])

    department = payload.get(settings.JWT_DEPARTMENT_CLAIM)
    return CallerContext(
        user_id=str(user_id),
        department=str(department) if department else None,
        roles=frozenset(str(r) for r in roles),
    )


def get_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CallerContext:
    """
    FastAPI dependency resolving the authenticated caller.

    Raises:
        HTTPException: 401 if the token is invalid or has no user id
    """
    payload = decode_token(credentials.credentials)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    caller = caller_from_claims(payload)
    if caller is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)
    return caller


def get_admin_caller(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    """
    FastAPI dependency requiring the admin role.

    Raises:
        HTTPException: 403 if the caller lacks the admin role
    """
    if not caller.is_admin:
        raise_forbidden(ErrorMessages.ADMIN_ROLE_REQUIRED)
    return caller
