"""
Active investment database model.

Created when an admin confirms a deposit.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Enum, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow
from backend.app.models.enums import InvestmentStatus, enum_values


class ActiveInvestment(Base):
    """
    A running investment in a plan.

    `current_value` grows as admins credit ROI; `expected_return` is fixed
    at confirmation time from the plan's total ROI.
    """
    __tablename__ = "active_investments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    plan_id = Column(String(36), ForeignKey("investment_plans.id"), nullable=False)
    deposit_id = Column(String(36), ForeignKey("deposits.id"), nullable=False, unique=True)

    principal_amount = Column(Numeric(18, 2), nullable=False)
    current_value = Column(Numeric(18, 2), nullable=False)
    expected_return = Column(Numeric(18, 2), nullable=False)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(
        Enum(InvestmentStatus, name="investment_status", values_callable=enum_values),
        default=InvestmentStatus.ACTIVE, nullable=False, index=True
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    plan = relationship("InvestmentPlan", lazy="raise")

    def __repr__(self):
        return f"<ActiveInvestment(id={self.id}, principal={self.principal_amount}, status='{self.status.value}')>"
