"""
Security guards for role-based access control.

`require_admin` protects endpoints; `assert_admin_profile` repeats the check
inside a service transaction against the profile row as it is right now.
"""

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.models.enums import UserRole
from backend.app.models.profile import Profile
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.schemas.auth import Principal


async def require_admin(current_user: Principal = Depends(get_current_user)) -> Principal:
    """
    Dependency for admin-only endpoints.

    The role on the principal comes from the profile row, never from token
    claims, so a revoked admin is refused on their next request.

    Usage:
        @router.post("/admin/withdrawals/{withdrawal_id}/approve")
        async def approve(
            withdrawal_id: str,
            admin: Principal = Depends(require_admin)
        ):
            ...

    Returns:
        Principal if admin, raises 403 otherwise
    """
    if not current_user.is_admin:
        raise InsufficientPermissionsError("Admin access required")

    return current_user


async def assert_admin_profile(db: AsyncSession, admin: Principal) -> None:
    """Refuse a principal whose profile lost the admin role after the request was authorized."""
    result = await db.execute(select(Profile.role).where(Profile.id == admin.id))
    if result.scalar_one_or_none() != UserRole.ADMIN:
        raise InsufficientPermissionsError("Admin access required")
