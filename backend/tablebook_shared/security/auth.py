"""
Bearer tokens and role guards.

Access tokens are HS256 JWTs. Besides iss/aud/iat/exp/jti they carry
``sub`` (principal id as a string) and ``role``; staff tokens add the
``venue_id`` their dashboard is scoped to.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from typing import Any

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tablebook_shared.config.constants import Roles
from tablebook_shared.config.logging import get_logger
from tablebook_shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from tablebook_shared.utils.exceptions import AuthenticationError, ForbiddenError

logger = get_logger(__name__)

ALGORITHM = "HS256"

_bearer = HTTPBearer(auto_error=False)


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    issued_at = int(time.time())
    lifetime = settings.jwt_access_token_expire_minutes * 60 if ttl_seconds is None else ttl_seconds
    claims = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=ALGORITHM)


def sign_customer_token(customer_id: int, email: str, name: str) -> str:
    return sign_jwt({"sub": str(customer_id), "role": Roles.CUSTOMER, "email": email, "name": name})


def sign_staff_token(staff_id: int, venue_id: int, email: str, staff_role: str) -> str:
    return sign_jwt(
        {
            "sub": str(staff_id),
            "role": Roles.STAFF,
            "venue_id": venue_id,
            "staff_role": staff_role,
            "email": email,
        }
    )


def sign_admin_token(admin_id: int, email: str) -> str:
    return sign_jwt({"sub": str(admin_id), "role": Roles.ADMIN, "email": email})


def _check_claims(claims: dict[str, Any]) -> None:
    subject = claims.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid token: missing subject claim")
    if not str(subject).isdigit():
        raise AuthenticationError("Invalid token: malformed subject claim")

    role = claims.get("role")
    if role not in Roles.ALL:
        raise AuthenticationError("Invalid token: invalid role claim")
    if role == Roles.STAFF and not isinstance(claims.get("venue_id"), int):
        raise AuthenticationError("Invalid token: missing venue_id claim")


def verify_jwt(token: str) -> dict[str, Any]:
    """Decode ``token``; AuthenticationError (401) on anything unusable."""
    try:
        claims = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token", reason=str(exc)) from exc

    _check_claims(claims)
    return claims


def current_user_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> dict[str, Any]:
    if credentials is None:
        raise AuthenticationError("Missing or malformed Authorization header")
    return verify_jwt(credentials.credentials)


def _role_guard(role: str) -> Callable[..., dict[str, Any]]:
    def guard(ctx: dict[str, Any] = Depends(current_user_context)) -> dict[str, Any]:
        if ctx["role"] != role:
            raise ForbiddenError(f"access this resource as {ctx['role']}", required_role=role)
        return ctx

    guard.__name__ = f"require_{role}"
    return guard


require_customer = _role_guard(Roles.CUSTOMER)
require_staff = _role_guard(Roles.STAFF)
require_admin = _role_guard(Roles.ADMIN)


def get_subject_id(ctx: dict[str, Any]) -> int:
    return int(ctx["sub"])


def get_venue_id(ctx: dict[str, Any]) -> int:
    return int(ctx["venue_id"])
