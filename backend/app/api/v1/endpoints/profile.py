"""
Profile Endpoints.

The caller's own profile, created on first access, plus onboarding.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ValidationFailedError
from backend.app.schemas.auth import Principal
from backend.app.schemas.profile import ProfileEnvelope, ProfileResponse, ProfileUpdate
from backend.app.services.profiles import EDITABLE_FIELDS, apply_referral_code, get_or_create_profile

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileEnvelope)
async def get_my_profile(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Return the caller's profile, creating it with the `user` role if missing."""
    profile = await get_or_create_profile(db, current_user)
    return ProfileEnvelope(profile=ProfileResponse.model_validate(profile))


@router.patch("", response_model=ProfileEnvelope)
async def update_my_profile(
    update_data: ProfileUpdate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update contact details; `referral_code` links the caller to a referrer once.

    Role, balances and account status are never writable here.
    """
    changes = update_data.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationFailedError("No valid fields to update")

    profile = await get_or_create_profile(db, current_user)

    try:
        for field in EDITABLE_FIELDS:
            if field in changes:
                if field == "country" and changes[field] is None:
                    continue
                setattr(profile, field, changes[field])

        if changes.get("referral_code"):
            await apply_referral_code(db, profile, changes["referral_code"])

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(profile)
    return ProfileEnvelope(profile=ProfileResponse.model_validate(profile))
