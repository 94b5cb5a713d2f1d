"""
Referral database model.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Enum, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow
from backend.app.models.enums import ReferralStatus, enum_values


class Referral(Base):
    """
    Link between a referrer and a referred user.

    Created at onboarding; the bonus is accumulated when deposits of the
    referred user are confirmed.
    """
    __tablename__ = "referrals"
    __table_args__ = (
        UniqueConstraint("referrer_id", "referred_id", name="uq_referrals_pair"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    referrer_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)
    referred_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    bonus_amount = Column(Numeric(18, 2), default=0, nullable=False)
    status = Column(
        Enum(ReferralStatus, name="referral_status", values_callable=enum_values),
        default=ReferralStatus.PENDING, nullable=False
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Referral(referrer={self.referrer_id}, referred={self.referred_id}, status='{self.status.value}')>"
