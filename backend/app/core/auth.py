"""
Authentication dependencies for Academia Backend
Validates Supabase access tokens and provides user context
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from app.core.database import get_supabase
from app.core.exceptions import AuthenticationError, PermissionDenied
from app.repositories.profile_repository import ProfileRepository


logger = logging.getLogger(__name__)

# Security scheme for bearer tokens
security = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """User resolved from a Supabase access token"""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def verify_access_token(sb: Client, token: str) -> AuthenticatedUser:
    """
    Verify a Supabase access token with the auth server.

    Raises:
        AuthenticationError if the token is rejected or resolves to no user
    """
    try:
        response = sb.auth.get_user(token)
    except Exception as e:
        logger.info(f"Token rejected by Supabase auth: {e}")
        raise AuthenticationError("Unauthorized")

    user = getattr(response, "user", None) if response is not None else None
    if user is None:
        raise AuthenticationError("Unauthorized")

    return AuthenticatedUser(id=str(user.id), email=getattr(user, "email", None))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    sb: Client = Depends(get_supabase)
) -> AuthenticatedUser:
    """
    Dependency that extracts and validates the current user.

    Usage:
        @router.post("/validate")
        async def validate(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Missing authorization header")

    return verify_access_token(sb, credentials.credentials)


def require_roles(
    *roles: str,
    message: Optional[str] = None,
    missing_profile_message: str = "User profile not found"
):
    """
    Dependency factory for role-based access control.

    The caller's role is read from ``profiles.role``. A caller without a
    profile row is rejected with ``missing_profile_message``.

    Usage:
        @router.post("/upload")
        async def upload(user: AuthenticatedUser = Depends(require_roles("professor", "admin"))):
            ...
    """
    denied_message = message or f"Access denied. Required role: {' or '.join(roles)}"

    async def role_checker(
        user: AuthenticatedUser = Depends(get_current_user),
        sb: Client = Depends(get_supabase)
    ) -> AuthenticatedUser:
        role = ProfileRepository(sb).get_role(user.id)

        if role is None:
            raise PermissionDenied(missing_profile_message)

        if role not in roles:
            logger.warning(f"User {user.id} with role '{role}' denied (requires {roles})")
            raise PermissionDenied(denied_message)

        return user.model_copy(update={"role": role})

    return role_checker


# Convenience dependencies for common role requirements
ADMIN_REQUIRED_MESSAGE = "Unauthorized: Admin access required"
require_admin = require_roles(
    "admin",
    message=ADMIN_REQUIRED_MESSAGE,
    missing_profile_message=ADMIN_REQUIRED_MESSAGE
)
require_uploader = require_roles(
    "professor", "admin",
    message="Forbidden - Only professors and admins can upload videos"
)
