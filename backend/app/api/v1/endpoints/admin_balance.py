"""
Admin Balance Endpoints.

Manual balance corrections, ROI credits and investment revaluation
(admin-only). Each call is one atomic BalanceService operation with its
own ledger entry and audit row.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.domain.ledger.balance_service import BalanceService
from backend.app.schemas.admin import (
    BalanceAdjustRequest,
    BalanceSetRequest,
    RoiCreditRequest,
    RoiSetRequest,
    BalanceChangeResponse,
    InvestmentValueResponse,
)
from backend.app.schemas.auth import Principal

router = APIRouter(prefix="/admin", tags=["Admin Balance"])


def _response(change, message: str) -> BalanceChangeResponse:
    return BalanceChangeResponse(
        success=True,
        message=message,
        user_id=change.user_id,
        old_balance=change.old_balance,
        new_balance=change.new_balance,
        transaction_id=change.entry.id if change.entry is not None else None,
    )


@router.post("/balance/adjust", response_model=BalanceChangeResponse)
async def adjust_balance(
    request: BalanceAdjustRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Credit (positive) or debit (negative) a user's balance.

    A debit larger than the balance is refused with InsufficientFunds.
    """
    change = await BalanceService.adjust_balance(
        db, request.user_id, request.amount, admin, request.description
    )
    return _response(change, "Balance adjusted")


@router.post("/balance/set", response_model=BalanceChangeResponse)
async def set_balance(
    request: BalanceSetRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Set a user's balance to an absolute, non-negative value."""
    change = await BalanceService.set_balance(db, request.user_id, request.amount, admin)
    return _response(change, "Balance updated")


@router.post("/roi/credit", response_model=BalanceChangeResponse)
async def credit_roi(
    request: RoiCreditRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Credit ROI to an active investment and its owner's balance."""
    change = await BalanceService.credit_roi(
        db, request.investment_id, request.amount, admin, request.description
    )
    return _response(change, "ROI credited")


@router.post("/roi/set", response_model=InvestmentValueResponse)
async def set_investment_value(
    request: RoiSetRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Set an active investment's current value.

    The owner's balance does not move; `profit` is the new value minus the
    principal.
    """
    change = await BalanceService.set_investment_value(
        db, request.investment_id, request.new_value, admin, request.description
    )
    return InvestmentValueResponse(
        success=True,
        message=f"Investment value set to ${change.new_value:,.2f}",
        investment_id=change.investment_id,
        user_id=change.user_id,
        old_value=change.old_value,
        new_value=change.new_value,
        profit=change.profit,
        transaction_id=change.entry.id if change.entry is not None else None,
    )
