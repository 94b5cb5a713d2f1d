"""
Withdrawal database model.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Enum, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow
from backend.app.models.enums import WithdrawalStatus, CryptoType, enum_values


class Withdrawal(Base):
    """
    Withdrawal request.

    Lifecycle: PENDING -> APPROVED | REJECTED.
    Creating a withdrawal does not touch the balance; approval debits it.
    """
    __tablename__ = "withdrawals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    amount = Column(Numeric(18, 2), nullable=False)
    crypto_type = Column(Enum(CryptoType, name="crypto_type", values_callable=enum_values), nullable=False)
    wallet_address = Column(String(255), nullable=False)

    status = Column(
        Enum(WithdrawalStatus, name="withdrawal_status", values_callable=enum_values),
        default=WithdrawalStatus.PENDING, nullable=False, index=True
    )

    # Admin decision
    processed_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    user = relationship("Profile", foreign_keys=[user_id], lazy="raise")

    def __repr__(self):
        return f"<Withdrawal(id={self.id}, amount={self.amount}, status='{self.status.value}')>"
