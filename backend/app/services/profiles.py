"""
Profile onboarding.

Profiles are created lazily the first time an authenticated identity asks
for one, and may be linked to a referrer exactly once.
"""

import logging
import random
import string
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import ResourceNotFoundError, ValidationFailedError
from backend.app.models.enums import ReferralStatus, UserRole
from backend.app.models.profile import Profile
from backend.app.models.referral import Referral
from backend.app.schemas.auth import Principal

logger = logging.getLogger("nexachain.profiles")

_BASE36 = string.digits + string.ascii_uppercase
EDITABLE_FIELDS = ("full_name", "phone", "wallet_address", "city", "state", "country")


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_referral_code() -> str:
    """Prefix + base36 millisecond clock + 4 random base36 characters."""
    suffix = "".join(random.choices(_BASE36, k=4))
    return f"{settings.referral_code_prefix}{_base36(int(time.time() * 1000))}{suffix}"


async def get_profile(db: AsyncSession, user_id: str) -> Optional[Profile]:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def require_profile(db: AsyncSession, user_id: str) -> Profile:
    profile = await get_profile(db, user_id)
    if profile is None:
        raise ResourceNotFoundError("Profile")
    return profile


async def get_or_create_profile(db: AsyncSession, principal: Principal) -> Profile:
    """
    Return the caller's profile, creating it on first access.

    New profiles always start with the `user` role; roles are only ever
    granted through role management.
    """
    profile = await get_profile(db, principal.id)
    if profile is not None:
        return profile

    if not principal.email:
        raise ValidationFailedError("Token carries no email; cannot create profile")

    profile = Profile(
        id=principal.id,
        email=principal.email,
        role=UserRole.USER,
        referral_code=generate_referral_code(),
    )
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent first access created it already
        await db.rollback()
        return await require_profile(db, principal.id)

    await db.refresh(profile)
    logger.info("Profile created", extra={"user_id": profile.id})
    return profile


async def apply_referral_code(db: AsyncSession, profile: Profile, code: str) -> Referral:
    """
    Link `profile` to the owner of `code` and open a pending referral.

    Caller commits.
    """
    if profile.referred_by:
        raise ValidationFailedError("Referral code already applied")

    code = code.strip().upper()
    if code == profile.referral_code.upper():
        raise ValidationFailedError("You cannot use your own referral code")

    result = await db.execute(select(Profile).where(Profile.referral_code == code))
    referrer = result.scalar_one_or_none()
    if referrer is None:
        raise ValidationFailedError("Invalid referral code", details={"referral_code": code})

    profile.referred_by = referrer.id
    referral = Referral(
        referrer_id=referrer.id,
        referred_id=profile.id,
        status=ReferralStatus.PENDING,
    )
    db.add(referral)
    return referral
