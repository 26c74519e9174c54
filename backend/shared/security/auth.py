"""
Authentication and authorization utilities.

Staff authenticate with HS256 JWTs carrying ``sub`` (user id) and ``role``.
Issuing tokens for real logins is handled elsewhere; ``sign_jwt`` exists for
service-to-service use and tests.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Iterable

import jwt
from fastapi import Depends, Header

from shared.config.constants import Roles
from shared.config.logging import get_logger
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from shared.utils.exceptions import ForbiddenError, UnauthorizedError

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated staff member behind a request or connection."""

    user_id: int
    role: str


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
    token_type: str = "access",
) -> str:
    """
    Sign a JWT token with the given payload.

    Args:
        payload: Claims to include in the token (sub, role, ...).
        ttl_seconds: Token lifetime in seconds. Defaults to access token expiry.
        token_type: Type of token.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Returns:
        Decoded token claims.

    Raises:
        UnauthorizedError: If token is invalid, expired or lacks required claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except jwt.InvalidTokenError as e:
        # Client gets a generic message; the reason goes to the log
        logger.warning("JWT validation failed", error=str(e))
        raise UnauthorizedError("Invalid token")

    if "sub" not in payload:
        raise UnauthorizedError("Invalid token: missing subject claim")

    try:
        int(payload["sub"])
    except (ValueError, TypeError):
        raise UnauthorizedError("Invalid token: malformed subject claim")

    if payload.get("role") not in Roles.ALL:
        raise UnauthorizedError("Invalid token: unknown role")

    if payload.get("type", "access") != "access":
        raise UnauthorizedError("Invalid token type")

    return payload


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    return Principal(user_id=int(claims["sub"]), role=claims["role"])


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        UnauthorizedError: If header is missing or malformed.
    """
    if not authorization:
        raise UnauthorizedError("Missing Authorization header")
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_principal(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    FastAPI dependency resolving the authenticated staff member.

    Usage:
        @router.post("/api/orders")
        def create_order(principal: Principal = Depends(current_principal)):
            ...
    """
    token = get_bearer_token(authorization)
    return principal_from_claims(verify_jwt(token))


def require_roles(principal: Principal, allowed: Iterable[str]) -> None:
    """
    Verify that the principal holds one of the allowed roles.

    Raises:
        ForbiddenError: If the role is not allowed.
    """
    allowed = frozenset(allowed)
    if principal.role not in allowed:
        raise ForbiddenError(
            f"perform this action (requires one of: {', '.join(sorted(allowed))})",
            user_id=principal.user_id,
            role=principal.role,
        )


def roles_dependency(*allowed: str):
    """
    Build a dependency that resolves the principal and checks its role.

    Usage:
        @router.post("/api/menu/items")
        def create(principal: Principal = Depends(roles_dependency(*MANAGEMENT_ROLES))):
            ...
    """

    def _dependency(principal: Principal = Depends(current_principal)) -> Principal:
        require_roles(principal, allowed)
        return principal

    return _dependency
