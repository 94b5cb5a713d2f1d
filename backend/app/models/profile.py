"""
Profile database model.

A profile mirrors an identity-provider account and holds the user's role,
account status and balances. The role column here is the single source of
truth for authorization.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Enum, Numeric, ForeignKey
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow
from backend.app.models.enums import UserRole, AccountStatus, enum_values


class Profile(Base):
    """
    Investor / admin profile.

    `id` is the identity provider's user id (UUID string).
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    wallet_address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=False, default="Nigeria")

    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.USER, nullable=False, index=True
    )
    account_status = Column(
        Enum(AccountStatus, name="account_status", values_callable=enum_values),
        default=AccountStatus.ACTIVE, nullable=False
    )

    # Balances
    account_balance = Column(Numeric(18, 2), default=0, nullable=False)
    total_invested = Column(Numeric(18, 2), default=0, nullable=False)
    total_withdrawn = Column(Numeric(18, 2), default=0, nullable=False)
    total_referral_bonus = Column(Numeric(18, 2), default=0, nullable=False)

    # Referrals
    referral_code = Column(String(32), unique=True, index=True, nullable=False)
    referred_by = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role.value}')>"
