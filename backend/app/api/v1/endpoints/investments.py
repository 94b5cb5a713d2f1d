"""
Investment Endpoints.

Read-only view of the caller's running investments.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.models.active_investment import ActiveInvestment
from backend.app.models.enums import InvestmentStatus
from backend.app.schemas.auth import Principal
from backend.app.schemas.investment import InvestmentListResponse, InvestmentResponse

router = APIRouter(prefix="/investments", tags=["Investments"])


@router.get("", response_model=InvestmentListResponse)
async def list_my_investments(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the caller's active investments, newest first.

    Only the caller's own rows are returned.
    """
    result = await db.execute(
        select(ActiveInvestment)
        .options(selectinload(ActiveInvestment.plan))
        .where(
            ActiveInvestment.user_id == current_user.id,
            ActiveInvestment.status == InvestmentStatus.ACTIVE
        )
        .order_by(ActiveInvestment.created_at.desc())
    )
    investments = result.scalars().all()

    return InvestmentListResponse(
        investments=[InvestmentResponse.from_investment(inv) for inv in investments]
    )
