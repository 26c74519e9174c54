"""
Security module: JWT verification and role checks.
"""

from shared.security.auth import (
    Principal,
    sign_jwt,
    verify_jwt,
    get_bearer_token,
    current_principal,
    require_roles,
    roles_dependency,
)

__all__ = [
    "Principal",
    "sign_jwt",
    "verify_jwt",
    "get_bearer_token",
    "current_principal",
    "require_roles",
    "roles_dependency",
]
