"""
Tests for JWT authentication and role checks.
"""

import jwt
import pytest

from shared.config.constants import MANAGEMENT_ROLES, Roles
from shared.security.auth import (
    Principal,
    get_bearer_token,
    principal_from_claims,
    require_roles,
    sign_jwt,
    verify_jwt,
)
from shared.utils.exceptions import ForbiddenError, UnauthorizedError


class TestJWT:
    """Token signing and verification."""

    def test_round_trip_claims(self):
        token = sign_jwt({"sub": "7", "role": Roles.WAITER})

        claims = verify_jwt(token)

        assert claims["sub"] == "7"
        assert claims["role"] == Roles.WAITER
        assert claims["type"] == "access"
        assert principal_from_claims(claims) == Principal(user_id=7, role=Roles.WAITER)

    def test_expired_token(self):
        token = sign_jwt({"sub": "7", "role": Roles.WAITER}, ttl_seconds=-10)

        with pytest.raises(UnauthorizedError, match="expired"):
            verify_jwt(token)

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "7", "role": Roles.WAITER}, "another-secret", algorithm="HS256")

        with pytest.raises(UnauthorizedError):
            verify_jwt(token)

    def test_unknown_role(self):
        token = sign_jwt({"sub": "7", "role": "CHEF"})

        with pytest.raises(UnauthorizedError, match="role"):
            verify_jwt(token)

    def test_non_numeric_subject(self):
        token = sign_jwt({"sub": "alice", "role": Roles.WAITER})

        with pytest.raises(UnauthorizedError, match="subject"):
            verify_jwt(token)

    def test_refresh_token_is_not_accepted(self):
        token = sign_jwt({"sub": "7", "role": Roles.WAITER}, token_type="refresh")

        with pytest.raises(UnauthorizedError):
            verify_jwt(token)


class TestBearerHeader:

    def test_extracts_token(self):
        assert get_bearer_token("Bearer abc.def") == "abc.def"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "bearer abc"])
    def test_rejects_bad_headers(self, header):
        with pytest.raises(UnauthorizedError):
            get_bearer_token(header)


class TestRoles:

    def test_allowed_role(self):
        require_roles(Principal(user_id=1, role=Roles.MANAGER), MANAGEMENT_ROLES)

    def test_forbidden_role(self):
        with pytest.raises(ForbiddenError) as exc_info:
            require_roles(Principal(user_id=1, role=Roles.KITCHEN), MANAGEMENT_ROLES)

        assert exc_info.value.status_code == 403
