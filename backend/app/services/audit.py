"""
Audit trail for admin actions on money, roles and accounts.

Rows are added to the caller's session and flushed, never committed here,
so each lands in the same transaction as the action it describes and
disappears with it on rollback.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.core.observability import correlation_id_var
from backend.app.models.audit_log import AuditLog
from backend.app.schemas.auth import Principal


class AuditAction:
    """Standardized audit action constants."""
    # Approval workflow
    DEPOSIT_CONFIRMED = "DEPOSIT_CONFIRMED"
    DEPOSIT_REJECTED = "DEPOSIT_REJECTED"
    WITHDRAWAL_APPROVED = "WITHDRAWAL_APPROVED"
    WITHDRAWAL_REJECTED = "WITHDRAWAL_REJECTED"

    # Balance operations
    BALANCE_ADJUSTED = "BALANCE_ADJUSTED"
    BALANCE_SET = "BALANCE_SET"
    ROI_CREDITED = "ROI_CREDITED"
    INVESTMENT_VALUE_SET = "INVESTMENT_VALUE_SET"

    # Role management
    ADMIN_GRANTED = "ADMIN_GRANTED"
    ADMIN_REVOKED = "ADMIN_REVOKED"
    ROLES_SYNCED = "ROLES_SYNCED"

    # Account management
    USER_ACTIVATED = "USER_ACTIVATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_DELETED = "USER_DELETED"


async def log_admin_action(
    db: AsyncSession,
    admin: Principal,
    action: str,
    target_user_id: Optional[str] = None,
    target_email: Optional[str] = None,
    resource: Optional[tuple] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Add an admin action to the caller's transaction.

    Args:
        db: Database session (caller commits)
        admin: Acting principal
        action: AuditAction constant
        target_user_id: Profile the action applied to
        target_email: Email of that profile, when known
        resource: `(resource_type, resource_id)` of the decided request
        metadata: JSON-serializable context; pass amounts as strings

    Returns:
        Pending AuditLog instance (id assigned)
    """
    resource_type, resource_id = resource if resource else (None, None)

    audit_log = AuditLog(
        actor_id=admin.id,
        actor_email=admin.email,
        action=action,
        target_user_id=target_user_id,
        target_email=target_email,
        resource_type=resource_type,
        resource_id=resource_id,
        meta_data=metadata,
        correlation_id=correlation_id_var.get(),
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_user_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> List[AuditLog]:
    """Most recent first, optionally filtered by target and action."""
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_user_id:
        query = query.where(AuditLog.target_user_id == target_user_id)

    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(query.limit(limit))
    return result.scalars().all()
