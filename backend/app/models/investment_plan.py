"""
Investment plan database model.
"""

import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Numeric
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow


class InvestmentPlan(Base):
    """
    Publicly listed investment plan.

    `daily_roi`, `total_roi` and `referral_bonus_percent` are percentages.
    A NULL `max_amount` means the plan has no upper limit.
    """
    __tablename__ = "investment_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    emoji = Column(String(16), nullable=True)

    daily_roi = Column(Numeric(8, 2), default=0, nullable=False)
    total_roi = Column(Numeric(8, 2), default=0, nullable=False)
    duration_days = Column(Integer, default=30, nullable=False)

    min_amount = Column(Numeric(18, 2), nullable=False)
    max_amount = Column(Numeric(18, 2), nullable=True)
    referral_bonus_percent = Column(Numeric(8, 2), default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<InvestmentPlan(id={self.id}, name='{self.name}', min={self.min_amount})>"
