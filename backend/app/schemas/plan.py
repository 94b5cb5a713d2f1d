"""
Investment plan schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal
from typing import Optional, List


class PlanResponse(BaseModel):
    """Schema for a listed investment plan."""
    id: str
    name: str
    emoji: Optional[str] = None
    daily_roi: Decimal
    total_roi: Decimal
    duration_days: int
    min_amount: Decimal
    max_amount: Optional[Decimal] = None
    referral_bonus_percent: Decimal
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PlanListResponse(BaseModel):
    plans: List[PlanResponse]
