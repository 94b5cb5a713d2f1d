"""
Balance Service (Domain Logic).

Admin-initiated balance operations: signed adjustments, absolute set, ROI
credits and investment revaluation. Each operation is one transaction that
writes the new amount, at most one ledger entry and one audit row, or
nothing at all. The acting admin's role is re-read inside that transaction.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InsufficientFundsError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.core.guards import assert_admin_profile
from backend.app.db.session import utcnow
from backend.app.domain.ledger.money import cents, to_money
from backend.app.models.active_investment import ActiveInvestment
from backend.app.models.enums import InvestmentStatus, TransactionType
from backend.app.models.profile import Profile
from backend.app.models.transaction_entry import TransactionEntry
from backend.app.schemas.auth import Principal
from backend.app.services.audit import AuditAction, log_admin_action

logger = logging.getLogger("nexachain.balance")


@dataclass
class BalanceChange:
    user_id: str
    old_balance: Decimal
    new_balance: Decimal
    entry: Optional[TransactionEntry] = None


@dataclass
class InvestmentValueChange:
    investment_id: str
    user_id: str
    old_value: Decimal
    new_value: Decimal
    profit: Decimal
    entry: Optional[TransactionEntry] = None


async def _load_profile(db: AsyncSession, user_id: str) -> Profile:
    profile = (await db.execute(
        select(Profile).where(Profile.id == user_id)
    )).scalar_one_or_none()
    if profile is None:
        raise ResourceNotFoundError("User", user_id)
    return profile


async def _load_active_investment(db: AsyncSession, investment_id: str) -> ActiveInvestment:
    investment = await db.get(ActiveInvestment, investment_id)
    if investment is None:
        raise ResourceNotFoundError("Investment", investment_id)

    if investment.status != InvestmentStatus.ACTIVE:
        raise InvalidStateError("Investment", investment.status.value, InvestmentStatus.ACTIVE.value)
    return investment


class BalanceService:

    @staticmethod
    async def adjust_balance(
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        admin: Principal,
        description: Optional[str] = None,
    ) -> BalanceChange:
        """
        Add a signed amount to a user's balance.

        Negative amounts are debits and must be covered by the current
        balance; the update is conditioned on that so a concurrent debit
        cannot take the balance below zero.
        """
        amount = to_money(amount)
        if amount == 0:
            raise ValidationFailedError("Amount must not be zero")

        profile = await _load_profile(db, user_id)
        old_balance = to_money(profile.account_balance)

        if old_balance + amount < 0:
            raise InsufficientFundsError(
                "Adjustment would make the balance negative",
                details={"balance": old_balance, "amount": amount},
            )

        description = description or (
            "Admin credit" if amount > 0 else "Admin debit"
        )

        try:
            await assert_admin_profile(db, admin)

            stmt = update(Profile).where(Profile.id == user_id)
            if amount < 0:
                stmt = stmt.where(cents(Profile.account_balance) >= -amount)

            result = await db.execute(
                stmt.values(account_balance=Profile.account_balance + amount, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InsufficientFundsError(
                    "Adjustment would make the balance negative",
                    details={"amount": amount},
                )

            entry = TransactionEntry(
                user_id=user_id,
                type=TransactionType.ADMIN_ADJUSTMENT,
                amount=amount,
                description=description,
            )
            db.add(entry)

            await log_admin_action(
                db, admin, AuditAction.BALANCE_ADJUSTED,
                target_user_id=user_id,
                target_email=profile.email,
                metadata={"amount": str(amount), "description": description},
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(profile)
        await db.refresh(entry)

        logger.info(
            "Balance adjusted",
            extra={"user_id": user_id, "admin_id": admin.id, "amount": str(amount)}
        )

        return BalanceChange(
            user_id=user_id,
            old_balance=old_balance,
            new_balance=to_money(profile.account_balance),
            entry=entry,
        )

    @staticmethod
    async def set_balance(
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        admin: Principal,
    ) -> BalanceChange:
        """
        Overwrite a user's balance, recording the difference in the ledger.

        The write is a compare-and-swap on the balance that was read, so an
        approval landing in between is not silently overwritten.
        """
        amount = to_money(amount)
        if amount < 0:
            raise ValidationFailedError("Balance cannot be negative")

        profile = await _load_profile(db, user_id)
        old_balance = to_money(profile.account_balance)
        difference = amount - old_balance
        entry = None

        try:
            await assert_admin_profile(db, admin)

            result = await db.execute(
                update(Profile)
                .where(Profile.id == user_id, cents(Profile.account_balance) == old_balance)
                .values(account_balance=amount, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidStateError("Balance", "modified", "unchanged")

            if difference != 0:
                entry = TransactionEntry(
                    user_id=user_id,
                    type=TransactionType.ADMIN_ADJUSTMENT,
                    amount=difference,
                    description=f"Balance set by admin (from {old_balance} to {amount})",
                )
                db.add(entry)

            await log_admin_action(
                db, admin, AuditAction.BALANCE_SET,
                target_user_id=user_id,
                target_email=profile.email,
                metadata={"old_balance": str(old_balance), "new_balance": str(amount)},
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(profile)
        if entry is not None:
            await db.refresh(entry)

        logger.info(
            "Balance set",
            extra={"user_id": user_id, "admin_id": admin.id, "old": str(old_balance), "new": str(amount)}
        )

        return BalanceChange(user_id=user_id, old_balance=old_balance, new_balance=amount, entry=entry)

    @staticmethod
    async def credit_roi(
        db: AsyncSession,
        investment_id: str,
        amount: Decimal,
        admin: Principal,
        description: Optional[str] = None,
    ) -> BalanceChange:
        """
        Credit ROI on an active investment.

        Increases the investment's current value and the owner's balance,
        and appends a `roi` entry referencing the investment.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationFailedError("ROI amount must be positive")

        investment = await _load_active_investment(db, investment_id)
        profile = await _load_profile(db, investment.user_id)
        old_balance = to_money(profile.account_balance)
        description = description or "ROI credit"

        try:
            await assert_admin_profile(db, admin)

            await db.execute(
                update(ActiveInvestment)
                .where(ActiveInvestment.id == investment_id)
                .values(current_value=ActiveInvestment.current_value + amount, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            await db.execute(
                update(Profile)
                .where(Profile.id == investment.user_id)
                .values(account_balance=Profile.account_balance + amount, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )

            entry = TransactionEntry(
                user_id=investment.user_id,
                type=TransactionType.ROI,
                amount=amount,
                description=description,
                reference_id=investment.id,
            )
            db.add(entry)

            await log_admin_action(
                db, admin, AuditAction.ROI_CREDITED,
                target_user_id=investment.user_id,
                target_email=profile.email,
                resource=("investment", investment.id),
                metadata={"amount": str(amount)},
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(investment)
        await db.refresh(profile)
        await db.refresh(entry)

        logger.info(
            "ROI credited",
            extra={"investment_id": investment.id, "admin_id": admin.id, "amount": str(amount)}
        )

        return BalanceChange(
            user_id=investment.user_id,
            old_balance=old_balance,
            new_balance=to_money(profile.account_balance),
            entry=entry,
        )

    @staticmethod
    async def set_investment_value(
        db: AsyncSession,
        investment_id: str,
        new_value: Decimal,
        admin: Principal,
        description: Optional[str] = None,
    ) -> InvestmentValueChange:
        """
        Revalue an active investment to an absolute amount.

        Only the investment moves; the owner's account balance is untouched.
        The difference is recorded as a `roi` entry referencing the
        investment, and the write is a compare-and-swap on the value that
        was read, like `set_balance`.
        """
        new_value = to_money(new_value)
        if new_value < 0:
            raise ValidationFailedError("Investment value cannot be negative")

        investment = await _load_active_investment(db, investment_id)
        profile = await _load_profile(db, investment.user_id)
        old_value = to_money(investment.current_value)
        difference = new_value - old_value
        profit = new_value - to_money(investment.principal_amount)
        entry = None

        try:
            await assert_admin_profile(db, admin)

            result = await db.execute(
                update(ActiveInvestment)
                .where(
                    ActiveInvestment.id == investment_id,
                    ActiveInvestment.status == InvestmentStatus.ACTIVE,
                    cents(ActiveInvestment.current_value) == old_value,
                )
                .values(current_value=new_value, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidStateError("Investment", "modified", "unchanged")

            if difference != 0:
                entry = TransactionEntry(
                    user_id=investment.user_id,
                    type=TransactionType.ROI,
                    amount=difference,
                    description=description or f"Investment value set by admin (from {old_value} to {new_value})",
                    reference_id=investment.id,
                )
                db.add(entry)

            await log_admin_action(
                db, admin, AuditAction.INVESTMENT_VALUE_SET,
                target_user_id=investment.user_id,
                target_email=profile.email,
                resource=("investment", investment.id),
                metadata={"old_value": str(old_value), "new_value": str(new_value), "profit": str(profit)},
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(investment)
        if entry is not None:
            await db.refresh(entry)

        logger.info(
            "Investment value set",
            extra={"investment_id": investment.id, "admin_id": admin.id, "old": str(old_value), "new": str(new_value)}
        )

        return InvestmentValueChange(
            investment_id=investment.id,
            user_id=investment.user_id,
            old_value=old_value,
            new_value=new_value,
            profit=profit,
            entry=entry,
        )
