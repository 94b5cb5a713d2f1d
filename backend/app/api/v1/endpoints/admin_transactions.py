"""
Admin Deposit & Withdrawal Endpoints.

Global listings and the approve/reject decisions. All routes are
admin-only; decisions go through ApprovalService.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import Optional
from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.domain.ledger.approval_service import ApprovalService
from backend.app.models.deposit import Deposit
from backend.app.models.enums import DepositStatus, WithdrawalStatus
from backend.app.models.withdrawal import Withdrawal
from backend.app.schemas.admin import (
    AdminDepositListResponse, AdminWithdrawalListResponse,
    DepositDecisionResponse, WithdrawalDecisionResponse
)
from backend.app.schemas.auth import Principal
from backend.app.schemas.funding import DepositResponse, WithdrawalResponse

router = APIRouter(prefix="/admin", tags=["Admin Transactions"])


def _with_user(response, user):
    if user is not None:
        response.user_email = user.email
        response.user_name = user.full_name
    return response


@router.get("/deposits", response_model=AdminDepositListResponse)
async def list_all_deposits(
    status: Optional[DepositStatus] = Query(None, description="Filter by status"),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List every deposit with depositor and plan details, newest first (admin-only).
    """
    query = select(Deposit).options(selectinload(Deposit.plan), selectinload(Deposit.user))
    if status is not None:
        query = query.where(Deposit.status == status)
    result = await db.execute(query.order_by(Deposit.created_at.desc()))
    deposits = result.scalars().all()

    items = []
    for deposit in deposits:
        item = _with_user(DepositResponse.model_validate(deposit), deposit.user)
        if deposit.plan is not None:
            item.plan_name = deposit.plan.name
            item.plan_emoji = deposit.plan.emoji
        items.append(item)

    return AdminDepositListResponse(deposits=items, count=len(items))


@router.get("/withdrawals", response_model=AdminWithdrawalListResponse)
async def list_all_withdrawals(
    status: Optional[WithdrawalStatus] = Query(None, description="Filter by status"),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List every withdrawal with requester details, newest first (admin-only).
    """
    query = select(Withdrawal).options(selectinload(Withdrawal.user))
    if status is not None:
        query = query.where(Withdrawal.status == status)
    result = await db.execute(query.order_by(Withdrawal.created_at.desc()))
    withdrawals = result.scalars().all()

    items = [_with_user(WithdrawalResponse.model_validate(w), w.user) for w in withdrawals]

    return AdminWithdrawalListResponse(withdrawals=items, count=len(items))


@router.post("/deposits/{deposit_id}/approve", response_model=DepositDecisionResponse)
async def approve_deposit(
    deposit_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Confirm a pending deposit (admin-only).

    Opens the investment, records the ledger entry and pays any referral
    bonus in one transaction.
    """
    decision = await ApprovalService.confirm_deposit(db, deposit_id, admin)

    return DepositDecisionResponse(
        success=True,
        message="Deposit confirmed",
        deposit=DepositResponse.model_validate(decision.deposit),
        referral_bonus=decision.referral_bonus,
    )


@router.post("/deposits/{deposit_id}/reject", response_model=DepositDecisionResponse)
async def reject_deposit(
    deposit_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reject a pending deposit (admin-only)."""
    decision = await ApprovalService.reject_deposit(db, deposit_id, admin)

    return DepositDecisionResponse(
        success=True,
        message="Deposit rejected",
        deposit=DepositResponse.model_validate(decision.deposit),
    )


@router.post("/withdrawals/{withdrawal_id}/approve", response_model=WithdrawalDecisionResponse)
async def approve_withdrawal(
    withdrawal_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve a pending withdrawal and debit the balance (admin-only).

    Returns the balance before and after the debit.
    """
    decision = await ApprovalService.approve_withdrawal(db, withdrawal_id, admin)

    return WithdrawalDecisionResponse(
        success=True,
        message="Withdrawal approved",
        withdrawal=WithdrawalResponse.model_validate(decision.withdrawal),
        old_balance=decision.old_balance,
        new_balance=decision.new_balance,
    )


@router.post("/withdrawals/{withdrawal_id}/reject", response_model=WithdrawalDecisionResponse)
async def reject_withdrawal(
    withdrawal_id: str,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reject a pending withdrawal; the balance is untouched (admin-only)."""
    decision = await ApprovalService.reject_withdrawal(db, withdrawal_id, admin)

    return WithdrawalDecisionResponse(
        success=True,
        message="Withdrawal rejected",
        withdrawal=WithdrawalResponse.model_validate(decision.withdrawal),
    )
