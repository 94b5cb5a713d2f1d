"""
Authentication dependencies for FastAPI.

This module provides the identity gate: it turns a bearer token into a
Principal or rejects the request.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.core.jwt import decode_access_token
from backend.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from backend.app.core.exceptions import AuthenticationError, TokenRevokedError, InsufficientPermissionsError
from backend.app.db.session import get_db
from backend.app.models.enums import AccountStatus
from backend.app.models.profile import Profile
from backend.app.schemas.auth import Principal

# HTTP Bearer security scheme (auto_error off so a missing header is a 401, not a 403)
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    FastAPI dependency for JWT authentication.

    Security checks:
    1. Validates JWT token signature, audience and expiry
    2. Checks if token has been explicitly revoked
    3. Checks if all user tokens have been revoked (account deactivated)
    4. Resolves role and account status from the profile row (real-time check)

    Args:
        credentials: HTTP Bearer token from request header
        db: Database session for the profile lookup

    Returns:
        Principal for the caller

    Raises:
        AuthenticationError / TokenRevokedError: 401
        InsufficientPermissionsError: 403 if the account is deactivated
        ServiceUnavailableError: 503 if revocation state cannot be read
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    token = credentials.credentials

    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    # Named in the access log line
    request.state.user_id = user_id

    # 2. Check if this specific token has been revoked
    if await is_token_revoked(token):
        raise TokenRevokedError()

    # 3. Check if all user tokens have been revoked (account was deactivated)
    if await are_user_tokens_revoked(user_id):
        raise TokenRevokedError("User access has been revoked")

    # 4. Real-time database check: role and status live on the profile row
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalar_one_or_none()

    if profile is None:
        # Signed up with the provider but not onboarded yet
        return Principal(id=user_id, email=payload.get("email"), token=token)

    if profile.account_status == AccountStatus.DEACTIVATED:
        raise InsufficientPermissionsError("User account is deactivated")

    return Principal(
        id=profile.id,
        email=profile.email,
        role=profile.role,
        account_status=profile.account_status,
        token=token,
    )
