"""
Transaction entry database model.

Append-only ledger of balance-affecting events.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Enum, Numeric, ForeignKey, Index, text
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow
from backend.app.models.enums import TransactionType, enum_values

# Entry types that reference a single monetary request and may occur once per user
_ONE_PER_REFERENCE = "type IN ('deposit', 'withdrawal', 'referral_bonus')"


class TransactionEntry(Base):
    """
    Ledger row.

    Immutable record of a balance-affecting event. Rows are only ever
    created as a side effect of an approval, ROI credit or admin adjustment.
    NO updates allowed.

    `amount` is positive for deposits, withdrawals, ROI and referral bonuses
    (the type carries the direction) and signed for admin adjustments.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    type = Column(Enum(TransactionType, name="transaction_type", values_callable=enum_values), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    description = Column(String(255), nullable=True)
    reference_id = Column(String(36), nullable=True, index=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    # Exactly one entry per approved request
    __table_args__ = (
        Index(
            "uq_transactions_request_reference", "user_id", "type", "reference_id",
            unique=True,
            postgresql_where=text(_ONE_PER_REFERENCE),
            sqlite_where=text(_ONE_PER_REFERENCE),
        ),
    )

    def __repr__(self):
        return f"<TransactionEntry(id={self.id}, type='{self.type.value}', amount={self.amount})>"
