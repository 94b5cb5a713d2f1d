"""
Audit log database model.

Append-only record of every admin mutation of money, roles or accounts,
written in the same transaction as the mutation itself.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from sqlalchemy.sql import func
from backend.app.db.session import Base, utcnow


class AuditLog(Base):
    """
    One admin action.

    `action` holds an AuditAction constant. `resource_type`/`resource_id`
    point at the deposit, withdrawal or investment the action decided, when
    there is one. `correlation_id` ties the row to the request's log lines.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Not foreign keys: rows outlive deleted profiles
    actor_id = Column(String(36), index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    target_user_id = Column(String(36), index=True, nullable=True)
    target_email = Column(String(255), nullable=True)

    resource_type = Column(String(50), nullable=True)
    resource_id = Column(String(36), nullable=True)

    # Amounts are stored as strings to keep exact decimals
    meta_data = Column(JSON, nullable=True)

    correlation_id = Column(String(64), nullable=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target_email})>"
