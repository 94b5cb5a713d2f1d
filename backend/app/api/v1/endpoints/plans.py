"""
Investment Plan Endpoints.

Public plan catalogue.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.investment_plan import InvestmentPlan
from backend.app.schemas.plan import PlanListResponse, PlanResponse

router = APIRouter(prefix="/plans", tags=["Plans"])


@router.get("", response_model=PlanListResponse)
async def list_plans(db: AsyncSession = Depends(get_db)):
    """
    List active investment plans, cheapest entry point first.

    No authentication required.
    """
    result = await db.execute(
        select(InvestmentPlan)
        .where(InvestmentPlan.is_active == True)
        .order_by(InvestmentPlan.min_amount.asc())
    )
    plans = result.scalars().all()

    return PlanListResponse(plans=[PlanResponse.model_validate(plan) for plan in plans])
