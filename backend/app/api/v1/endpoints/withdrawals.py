"""
Withdrawal Endpoints.

Users request withdrawals; the balance is only debited when an admin
approves the request.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientFundsError, ValidationFailedError
from backend.app.models.enums import WithdrawalStatus
from backend.app.models.withdrawal import Withdrawal
from backend.app.schemas.auth import Principal
from backend.app.schemas.funding import (
    WithdrawalCreate, WithdrawalResponse, WithdrawalCreateResponse, WithdrawalListResponse
)
from backend.app.services.profiles import require_profile

logger = logging.getLogger("nexachain.withdrawals")

router = APIRouter(prefix="/withdrawals", tags=["Withdrawals"])


@router.post("", response_model=WithdrawalCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    withdrawal_data: WithdrawalCreate,
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Request a withdrawal.

    Checks (in order):
    1. Profile exists (404)
    2. Amount does not exceed the current balance (400)
    3. Amount meets the minimum withdrawal (400)
    """
    profile = await require_profile(db, current_user.id)

    if withdrawal_data.amount > profile.account_balance:
        raise InsufficientFundsError(
            details={"balance": profile.account_balance, "amount": withdrawal_data.amount}
        )

    if withdrawal_data.amount < settings.min_withdrawal_amount:
        raise ValidationFailedError(
            f"Minimum withdrawal is ${settings.min_withdrawal_amount}",
            details={"min_amount": settings.min_withdrawal_amount}
        )

    withdrawal = Withdrawal(
        user_id=profile.id,
        amount=withdrawal_data.amount,
        crypto_type=withdrawal_data.crypto_type,
        wallet_address=withdrawal_data.wallet_address,
        status=WithdrawalStatus.PENDING,
    )
    db.add(withdrawal)
    await db.commit()
    await db.refresh(withdrawal)

    logger.info(
        "Withdrawal requested",
        extra={"withdrawal_id": withdrawal.id, "user_id": profile.id, "amount": str(withdrawal.amount)}
    )

    return WithdrawalCreateResponse(
        withdrawal=WithdrawalResponse.model_validate(withdrawal),
        message="Withdrawal request submitted"
    )


@router.get("", response_model=WithdrawalListResponse)
async def list_my_withdrawals(
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the caller's withdrawals, newest first.
    """
    result = await db.execute(
        select(Withdrawal)
        .where(Withdrawal.user_id == current_user.id)
        .order_by(Withdrawal.created_at.desc())
    )
    withdrawals = result.scalars().all()

    return WithdrawalListResponse(
        withdrawals=[WithdrawalResponse.model_validate(w) for w in withdrawals]
    )
