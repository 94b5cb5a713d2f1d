"""
Referral Endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.models.referral import Referral
from backend.app.schemas.auth import Principal
from backend.app.schemas.profile import ReferralListResponse, ReferralResponse
from backend.app.services.profiles import require_profile

router = APIRouter(prefix="/referrals", tags=["Referrals"])


@router.get("", response_model=ReferralListResponse)
async def list_my_referrals(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List referrals where the caller is the referrer, newest first.

    404 if the caller has not been onboarded yet.
    """
    profile = await require_profile(db, current_user.id)

    result = await db.execute(
        select(Referral)
        .where(Referral.referrer_id == profile.id)
        .order_by(Referral.created_at.desc())
    )
    referrals = result.scalars().all()

    return ReferralListResponse(referrals=[ReferralResponse.model_validate(r) for r in referrals])
