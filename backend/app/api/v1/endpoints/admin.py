"""
Admin API Endpoints.

Provides admin-only user management endpoints with audit logging.
"""

import logging
from collections import defaultdict
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, or_
from sqlalchemy.orm import selectinload
from typing import Optional
from backend.app.db.session import get_db
from backend.app.models.active_investment import ActiveInvestment
from backend.app.models.deposit import Deposit
from backend.app.models.enums import AccountStatus, InvestmentStatus
from backend.app.models.profile import Profile
from backend.app.models.referral import Referral
from backend.app.models.transaction_entry import TransactionEntry
from backend.app.models.withdrawal import Withdrawal
from backend.app.schemas.admin import (
    UserListResponse, UserListItem, AdminActionResponse, AuditTrailResponse, AuditLogResponse
)
from backend.app.schemas.auth import Principal
from backend.app.schemas.investment import InvestmentResponse
from backend.app.core.exceptions import ResourceNotFoundError, ValidationFailedError, ServiceUnavailableError
from backend.app.core.guards import require_admin
from backend.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from backend.app.services.audit import log_admin_action, AuditAction, get_audit_trail
from backend.app.services.auth_provider import AuthProviderClient, get_auth_provider

logger = logging.getLogger("nexachain.admin")

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _get_target(db: AsyncSession, user_id: str) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    target = result.scalar_one_or_none()
    if target is None:
        raise ResourceNotFoundError("User", user_id)
    return target


async def _mirror_status(provider: AuthProviderClient, user_id: str, account_status: AccountStatus) -> None:
    # Provider metadata is informational; the profile row is authoritative
    try:
        await provider.update_user_metadata(user_id, {"account_status": account_status.value})
    except ServiceUnavailableError:
        logger.warning(
            "Could not mirror account status to auth provider",
            extra={"user_id": user_id, "account_status": account_status.value}
        )


@router.get("/users", response_model=UserListResponse)
async def list_users(
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users, newest first, with their active investments (admin-only).
    """
    result = await db.execute(select(Profile).order_by(Profile.created_at.desc()))
    profiles = result.scalars().all()

    inv_result = await db.execute(
        select(ActiveInvestment)
        .options(selectinload(ActiveInvestment.plan))
        .where(ActiveInvestment.status == InvestmentStatus.ACTIVE)
        .order_by(ActiveInvestment.created_at.desc())
    )
    by_user = defaultdict(list)
    for investment in inv_result.scalars().all():
        by_user[investment.user_id].append(InvestmentResponse.from_investment(investment))

    users = []
    for profile in profiles:
        item = UserListItem.model_validate(profile)
        item.active_investments = by_user.get(profile.id, [])
        users.append(item)

    return UserListResponse(users=users, count=len(users))


@router.post("/users/{user_id}/deactivate", response_model=AdminActionResponse)
async def deactivate_user(
    user_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    provider: AuthProviderClient = Depends(get_auth_provider)
):
    """
    Deactivate a user and revoke all their active tokens (admin-only).

    This immediately terminates all user sessions.
    """
    if user_id == admin.id:
        raise ValidationFailedError("You cannot deactivate your own account")

    target = await _get_target(db, user_id)

    if target.account_status == AccountStatus.DEACTIVATED:
        raise ValidationFailedError("User is already deactivated")

    try:
        target.account_status = AccountStatus.DEACTIVATED
        await log_admin_action(
            db, admin, AuditAction.USER_DEACTIVATED,
            target_user_id=target.id,
            target_email=target.email,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await revoke_all_user_tokens(user_id)
    await _mirror_status(provider, user_id, AccountStatus.DEACTIVATED)

    logger.info("User deactivated", extra={"user_id": user_id, "admin_id": admin.id})

    return AdminActionResponse(success=True, message=f"User {target.email} has been deactivated")


@router.post("/users/{user_id}/activate", response_model=AdminActionResponse)
async def activate_user(
    user_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    provider: AuthProviderClient = Depends(get_auth_provider)
):
    """
    Re-activate a user and clear token revocations (admin-only).
    """
    target = await _get_target(db, user_id)

    if target.account_status == AccountStatus.ACTIVE:
        raise ValidationFailedError("User is already active")

    try:
        target.account_status = AccountStatus.ACTIVE
        await log_admin_action(
            db, admin, AuditAction.USER_ACTIVATED,
            target_user_id=target.id,
            target_email=target.email,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    # Clear token revocations (user can sign in and use new tokens again)
    await clear_user_token_revocation(user_id)
    await _mirror_status(provider, user_id, AccountStatus.ACTIVE)

    logger.info("User activated", extra={"user_id": user_id, "admin_id": admin.id})

    return AdminActionResponse(success=True, message=f"User {target.email} has been activated")


@router.delete("/users/{user_id}", response_model=AdminActionResponse)
async def delete_user(
    user_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    provider: AuthProviderClient = Depends(get_auth_provider)
):
    """
    Permanently delete a user and everything they own (admin-only).

    Order: ledger, investments, deposits, withdrawals, referrals, profile,
    then the auth-provider account. If the provider delete fails the
    database deletes are rolled back.
    """
    if user_id == admin.id:
        raise ValidationFailedError("You cannot delete your own account")

    target = await _get_target(db, user_id)
    target_email = target.email

    try:
        await db.execute(delete(TransactionEntry).where(TransactionEntry.user_id == user_id))
        await db.execute(delete(ActiveInvestment).where(ActiveInvestment.user_id == user_id))
        await db.execute(delete(Deposit).where(Deposit.user_id == user_id))
        await db.execute(delete(Withdrawal).where(Withdrawal.user_id == user_id))
        await db.execute(delete(Referral).where(
            or_(Referral.referrer_id == user_id, Referral.referred_id == user_id)
        ))
        # Decisions taken by this user on other people's requests stay, unattributed
        await db.execute(update(Deposit).where(Deposit.processed_by == user_id).values(processed_by=None))
        await db.execute(update(Withdrawal).where(Withdrawal.processed_by == user_id).values(processed_by=None))
        await db.execute(update(Profile).where(Profile.referred_by == user_id).values(referred_by=None))
        await db.execute(delete(Profile).where(Profile.id == user_id))

        await log_admin_action(
            db, admin, AuditAction.USER_DELETED,
            target_user_id=user_id,
            target_email=target_email,
        )

        await provider.delete_user(user_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("User deleted", extra={"user_id": user_id, "admin_id": admin.id})

    return AdminActionResponse(success=True, message="User account permanently deleted")


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    target_user_id: Optional[str] = Query(None, description="Filter by target user ID"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum number of logs to return"),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Retrieve audit trail logs, newest first (admin-only).

    Supports filtering by target user and action type.
    """
    logs = await get_audit_trail(
        db=db,
        target_user_id=target_user_id,
        action=action,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
