"""
Deposit Endpoints.

Users submit deposits against a plan; an admin later confirms or rejects
them (see admin_transactions).
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from backend.app.db.session import get_db
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ValidationFailedError
from backend.app.models.deposit import Deposit
from backend.app.models.enums import DepositStatus
from backend.app.models.investment_plan import InvestmentPlan
from backend.app.schemas.auth import Principal
from backend.app.schemas.funding import (
    DepositCreate, DepositResponse, DepositCreateResponse, DepositListResponse
)
from backend.app.services.profiles import get_or_create_profile

logger = logging.getLogger("nexachain.deposits")

router = APIRouter(prefix="/deposits", tags=["Deposits"])


def deposit_response(deposit: Deposit, plan: InvestmentPlan = None) -> DepositResponse:
    response = DepositResponse.model_validate(deposit)
    if plan is not None:
        response.plan_name = plan.name
        response.plan_emoji = plan.emoji
    return response


@router.post("", response_model=DepositCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_deposit(
    deposit_data: DepositCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a deposit for an investment plan.

    The plan must be active and the amount must lie within the plan's
    limits. The deposit starts PENDING; nothing is credited until an admin
    confirms it.
    """
    plan = await db.get(InvestmentPlan, deposit_data.plan_id)
    if plan is None or not plan.is_active:
        raise ValidationFailedError("Invalid plan", details={"plan_id": deposit_data.plan_id})

    if deposit_data.amount < plan.min_amount:
        raise ValidationFailedError(
            f"Minimum deposit for {plan.name} is {plan.min_amount}",
            details={"min_amount": plan.min_amount}
        )

    if plan.max_amount is not None and deposit_data.amount > plan.max_amount:
        raise ValidationFailedError(
            f"Maximum deposit for {plan.name} is {plan.max_amount}",
            details={"max_amount": plan.max_amount}
        )

    # Deposits reference the profile, so make sure it exists
    await get_or_create_profile(db, current_user)

    deposit = Deposit(
        user_id=current_user.id,
        plan_id=plan.id,
        amount=deposit_data.amount,
        crypto_type=deposit_data.crypto_type,
        wallet_address=deposit_data.wallet_address,
        proof_image_url=deposit_data.proof_image_url,
        status=DepositStatus.PENDING,
    )
    db.add(deposit)
    await db.commit()
    await db.refresh(deposit)

    logger.info(
        "Deposit submitted",
        extra={"deposit_id": deposit.id, "user_id": current_user.id, "amount": str(deposit.amount)}
    )

    return DepositCreateResponse(
        deposit=deposit_response(deposit, plan),
        message="Deposit submitted and awaiting confirmation"
    )


@router.get("", response_model=DepositListResponse)
async def list_my_deposits(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the caller's deposits with plan name and emoji, newest first.
    """
    result = await db.execute(
        select(Deposit)
        .options(selectinload(Deposit.plan))
        .where(Deposit.user_id == current_user.id)
        .order_by(Deposit.created_at.desc())
    )
    deposits = result.scalars().all()

    return DepositListResponse(deposits=[deposit_response(d, d.plan) for d in deposits])
