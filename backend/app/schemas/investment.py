"""
Active investment schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.enums import InvestmentStatus


class InvestmentResponse(BaseModel):
    """Active investment with its plan's display fields flattened in."""
    id: str
    user_id: str
    plan_id: str
    deposit_id: str
    principal_amount: Decimal
    current_value: Decimal
    expected_return: Decimal
    start_date: datetime
    end_date: datetime
    status: InvestmentStatus
    created_at: datetime

    plan_name: Optional[str] = None
    plan_emoji: Optional[str] = None
    daily_roi: Optional[Decimal] = None
    duration_days: Optional[int] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_investment(cls, investment) -> "InvestmentResponse":
        """Build from an ActiveInvestment whose `plan` has been eagerly loaded."""
        response = cls.model_validate(investment)
        plan = investment.plan
        if plan is not None:
            response.plan_name = plan.name
            response.plan_emoji = plan.emoji
            response.daily_roi = plan.daily_roi
            response.duration_days = plan.duration_days
        return response


class InvestmentListResponse(BaseModel):
    investments: List[InvestmentResponse]
