"""
Admin role management.

The `profiles.role` column is the canonical role. Every change is mirrored
into the identity provider's user metadata before the database transaction
commits; if the provider cannot be updated the role change is rolled back
and ServiceUnavailableError propagates.
"""

import logging
from typing import List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import CannotRemoveSelfError, ValidationFailedError
from backend.app.models.enums import UserRole
from backend.app.models.profile import Profile
from backend.app.schemas.auth import Principal
from backend.app.services.audit import AuditAction, log_admin_action
from backend.app.services.auth_provider import AuthProviderClient

logger = logging.getLogger("nexachain.roles")


async def _profile_by_email(db: AsyncSession, email: str) -> Profile:
    result = await db.execute(
        select(Profile).where(func.lower(Profile.email) == email.strip().lower())
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise ValidationFailedError(f"No user found with email {email}", details={"email": email})
    return profile


async def _change_role(
    db: AsyncSession,
    provider: AuthProviderClient,
    admin: Principal,
    profile: Profile,
    role: UserRole,
    action: str,
) -> None:
    previous = profile.role
    try:
        profile.role = role
        await log_admin_action(
            db, admin, action,
            target_user_id=profile.id,
            target_email=profile.email,
            metadata={"previous_role": previous.value, "new_role": role.value},
        )
        await provider.update_user_metadata(profile.id, {"role": role.value})
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Role changed",
        extra={"target_id": profile.id, "admin_id": admin.id, "role": role.value}
    )


async def grant_admin(db: AsyncSession, provider: AuthProviderClient, admin: Principal, email: str) -> str:
    """
    Promote the profile with `email` to admin.

    Returns:
        Human readable result message

    Raises:
        ValidationFailedError: unknown email, or already an admin
        ServiceUnavailableError: provider metadata could not be updated
    """
    profile = await _profile_by_email(db, email)

    if profile.role == UserRole.ADMIN:
        raise ValidationFailedError(f"{profile.email} is already an admin")

    await _change_role(db, provider, admin, profile, UserRole.ADMIN, AuditAction.ADMIN_GRANTED)
    return f"{profile.email} is now an admin"


async def revoke_admin(db: AsyncSession, provider: AuthProviderClient, admin: Principal, email: str) -> str:
    """
    Demote the admin with `email` to user.

    Raises:
        CannotRemoveSelfError: the caller targeted their own account
        ValidationFailedError: unknown email, or not an admin
        ServiceUnavailableError: provider metadata could not be updated
    """
    profile = await _profile_by_email(db, email)

    if profile.id == admin.id:
        raise CannotRemoveSelfError()

    if profile.role != UserRole.ADMIN:
        raise ValidationFailedError(f"{profile.email} is not an admin")

    await _change_role(db, provider, admin, profile, UserRole.USER, AuditAction.ADMIN_REVOKED)
    return f"Admin access removed from {profile.email}"


async def list_admins(db: AsyncSession) -> List[Profile]:
    result = await db.execute(
        select(Profile).where(Profile.role == UserRole.ADMIN).order_by(Profile.created_at.desc())
    )
    return result.scalars().all()


async def sync_roles(db: AsyncSession, provider: AuthProviderClient, admin: Principal) -> int:
    """
    Push every profile's role into the provider's user metadata.

    Stops at the first provider failure (ServiceUnavailableError); profiles
    already pushed stay pushed, which is harmless since the push is
    idempotent.

    Returns:
        Number of profiles synced
    """
    result = await db.execute(select(Profile.id, Profile.role).order_by(Profile.created_at))
    rows = result.all()

    synced = 0
    for profile_id, role in rows:
        await provider.update_user_metadata(profile_id, {"role": role.value})
        synced += 1

    try:
        await log_admin_action(db, admin, AuditAction.ROLES_SYNCED, metadata={"synced_count": synced})
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Roles synced", extra={"admin_id": admin.id, "synced_count": synced})
    return synced
