"""
Approval Service (Domain Logic).

State machine for monetary requests:

    Deposit:    PENDING -> CONFIRMED | REJECTED
    Withdrawal: PENDING -> APPROVED  | REJECTED

Every decision is one transaction. The pending guard is re-checked by the
UPDATE itself (`WHERE status = 'pending'`), so of two racing admins exactly
one flips the row; the other sees zero affected rows and gets
InvalidStateError. Balance debits are conditioned on the balance covering
the amount in the same way. Any failure rolls back every write of the
decision, including its ledger and audit rows.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InsufficientFundsError,
    InvalidStateError,
    ResourceNotFoundError,
)
from backend.app.core.guards import assert_admin_profile
from backend.app.db.session import utcnow
from backend.app.domain.ledger.money import cents, to_money, percent_of
from backend.app.models.active_investment import ActiveInvestment
from backend.app.models.deposit import Deposit
from backend.app.models.enums import (
    DepositStatus,
    InvestmentStatus,
    ReferralStatus,
    TransactionType,
    WithdrawalStatus,
)
from backend.app.models.investment_plan import InvestmentPlan
from backend.app.models.profile import Profile
from backend.app.models.referral import Referral
from backend.app.models.transaction_entry import TransactionEntry
from backend.app.models.withdrawal import Withdrawal
from backend.app.schemas.auth import Principal
from backend.app.services.audit import AuditAction, log_admin_action

logger = logging.getLogger("nexachain.approvals")


@dataclass
class WithdrawalDecision:
    withdrawal: Withdrawal
    old_balance: Optional[Decimal] = None
    new_balance: Optional[Decimal] = None


@dataclass
class DepositDecision:
    deposit: Deposit
    investment: Optional[ActiveInvestment] = None
    referral_bonus: Optional[Decimal] = None


async def _current_status(db: AsyncSession, model, request_id: str, resource: str):
    result = await db.execute(select(model.status).where(model.id == request_id))
    status = result.scalar_one_or_none()
    if status is None:
        # Deleted (e.g. with its user) after it was loaded
        raise ResourceNotFoundError(resource, request_id)
    return status


async def _claim(db: AsyncSession, model, request_id: str, pending, terminal, admin: Principal, resource: str) -> None:
    """Conditionally move a request out of PENDING; zero rows means someone else already did."""
    now = utcnow()
    result = await db.execute(
        update(model)
        .where(model.id == request_id, model.status == pending)
        .values(status=terminal, processed_by=admin.id, processed_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = await _current_status(db, model, request_id, resource)
        raise InvalidStateError(resource, current.value, pending.value)


class ApprovalService:

    @staticmethod
    async def approve_withdrawal(db: AsyncSession, withdrawal_id: str, admin: Principal) -> WithdrawalDecision:
        """
        Approve a PENDING withdrawal.

        Flow:
        1. Load withdrawal (NotFound)
        2. Status must be PENDING (InvalidState)
        3. Balance must cover the amount (InsufficientFunds)
        4. Atomically: claim the row, debit balance + bump total_withdrawn,
           append the withdrawal ledger entry and the audit row

        Args:
            db: Database session (this method commits or rolls back)
            withdrawal_id: ID of the withdrawal
            admin: Deciding admin

        Returns:
            WithdrawalDecision with refreshed withdrawal and balances
        """
        withdrawal = (await db.execute(
            select(Withdrawal).where(Withdrawal.id == withdrawal_id)
        )).scalar_one_or_none()

        if withdrawal is None:
            raise ResourceNotFoundError("Withdrawal", withdrawal_id)

        if withdrawal.status != WithdrawalStatus.PENDING:
            raise InvalidStateError("Withdrawal", withdrawal.status.value)

        profile = (await db.execute(
            select(Profile).where(Profile.id == withdrawal.user_id)
        )).scalar_one_or_none()
        if profile is None:
            raise ResourceNotFoundError("Profile", withdrawal.user_id)

        amount = to_money(withdrawal.amount)
        old_balance = to_money(profile.account_balance)

        if old_balance < amount:
            raise InsufficientFundsError(details={"balance": old_balance, "amount": amount})

        try:
            await assert_admin_profile(db, admin)
            await _claim(
                db, Withdrawal, withdrawal_id,
                WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED, admin, "Withdrawal"
            )

            debit = await db.execute(
                update(Profile)
                .where(Profile.id == withdrawal.user_id, cents(Profile.account_balance) >= amount)
                .values(
                    account_balance=Profile.account_balance - amount,
                    total_withdrawn=Profile.total_withdrawn + amount,
                    updated_at=utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if debit.rowcount != 1:
                raise InsufficientFundsError(details={"amount": amount})

            db.add(TransactionEntry(
                user_id=withdrawal.user_id,
                type=TransactionType.WITHDRAWAL,
                amount=amount,
                description=f"Withdrawal to {withdrawal.crypto_type.value} wallet",
                reference_id=withdrawal.id,
            ))

            await log_admin_action(
                db, admin, AuditAction.WITHDRAWAL_APPROVED,
                target_user_id=profile.id,
                target_email=profile.email,
                resource=("withdrawal", withdrawal.id),
                metadata={"amount": str(amount)},
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(withdrawal)
        await db.refresh(profile)

        logger.info(
            "Withdrawal approved",
            extra={"withdrawal_id": withdrawal.id, "admin_id": admin.id, "amount": str(amount)}
        )

        return WithdrawalDecision(
            withdrawal=withdrawal,
            old_balance=old_balance,
            new_balance=to_money(profile.account_balance),
        )

    @staticmethod
    async def reject_withdrawal(db: AsyncSession, withdrawal_id: str, admin: Principal) -> WithdrawalDecision:
        """
        Reject a PENDING withdrawal. Balance and ledger are untouched.
        """
        withdrawal = (await db.execute(
            select(Withdrawal).where(Withdrawal.id == withdrawal_id)
        )).scalar_one_or_none()

        if withdrawal is None:
            raise ResourceNotFoundError("Withdrawal", withdrawal_id)

        if withdrawal.status != WithdrawalStatus.PENDING:
            raise InvalidStateError("Withdrawal", withdrawal.status.value)

        try:
            await assert_admin_profile(db, admin)
            await _claim(
                db, Withdrawal, withdrawal_id,
                WithdrawalStatus.PENDING, WithdrawalStatus.REJECTED, admin, "Withdrawal"
            )
            await log_admin_action(
                db, admin, AuditAction.WITHDRAWAL_REJECTED,
                target_user_id=withdrawal.user_id,
                resource=("withdrawal", withdrawal.id),
                metadata={"amount": str(withdrawal.amount)},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(withdrawal)
        logger.info("Withdrawal rejected", extra={"withdrawal_id": withdrawal.id, "admin_id": admin.id})

        return WithdrawalDecision(withdrawal=withdrawal)

    @staticmethod
    async def confirm_deposit(db: AsyncSession, deposit_id: str, admin: Principal) -> DepositDecision:
        """
        Confirm a PENDING deposit.

        Atomically:
        1. Claim the deposit (PENDING -> CONFIRMED)
        2. Open an ActiveInvestment for the plan
        3. total_invested += amount on the depositor
        4. Deposit ledger entry
        5. Referral bonus for the referrer, if the depositor was referred
           and the plan pays one (balance credit, ledger entry, referral row)
        """
        deposit = (await db.execute(
            select(Deposit).where(Deposit.id == deposit_id)
        )).scalar_one_or_none()

        if deposit is None:
            raise ResourceNotFoundError("Deposit", deposit_id)

        if deposit.status != DepositStatus.PENDING:
            raise InvalidStateError("Deposit", deposit.status.value)

        plan = await db.get(InvestmentPlan, deposit.plan_id)
        if plan is None:
            raise ResourceNotFoundError("Investment plan", deposit.plan_id)

        depositor = await db.get(Profile, deposit.user_id)
        if depositor is None:
            raise ResourceNotFoundError("Profile", deposit.user_id)

        amount = to_money(deposit.amount)
        start = utcnow()
        bonus = None

        try:
            await assert_admin_profile(db, admin)
            await _claim(
                db, Deposit, deposit_id,
                DepositStatus.PENDING, DepositStatus.CONFIRMED, admin, "Deposit"
            )

            investment = ActiveInvestment(
                user_id=deposit.user_id,
                plan_id=plan.id,
                deposit_id=deposit.id,
                principal_amount=amount,
                current_value=amount,
                expected_return=percent_of(amount, plan.total_roi),
                start_date=start,
                end_date=start + timedelta(days=plan.duration_days or 30),
                status=InvestmentStatus.ACTIVE,
            )
            db.add(investment)

            await db.execute(
                update(Profile)
                .where(Profile.id == deposit.user_id)
                .values(total_invested=Profile.total_invested + amount, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )

            db.add(TransactionEntry(
                user_id=deposit.user_id,
                type=TransactionType.DEPOSIT,
                amount=amount,
                description=f"Deposit for {plan.name}",
                reference_id=deposit.id,
            ))

            if depositor.referred_by and to_money(plan.referral_bonus_percent) > 0:
                bonus = percent_of(amount, plan.referral_bonus_percent)
                await _pay_referral_bonus(db, depositor, deposit, bonus)

            await log_admin_action(
                db, admin, AuditAction.DEPOSIT_CONFIRMED,
                target_user_id=depositor.id,
                target_email=depositor.email,
                resource=("deposit", deposit.id),
                metadata={
                    "amount": str(amount),
                    "referral_bonus": str(bonus) if bonus is not None else None,
                },
            )

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(deposit)
        await db.refresh(investment)

        logger.info(
            "Deposit confirmed",
            extra={"deposit_id": deposit.id, "admin_id": admin.id, "amount": str(amount)}
        )

        return DepositDecision(deposit=deposit, investment=investment, referral_bonus=bonus)

    @staticmethod
    async def reject_deposit(db: AsyncSession, deposit_id: str, admin: Principal) -> DepositDecision:
        """
        Reject a PENDING deposit. No investment, balance or ledger effect.
        """
        deposit = (await db.execute(
            select(Deposit).where(Deposit.id == deposit_id)
        )).scalar_one_or_none()

        if deposit is None:
            raise ResourceNotFoundError("Deposit", deposit_id)

        if deposit.status != DepositStatus.PENDING:
            raise InvalidStateError("Deposit", deposit.status.value)

        try:
            await assert_admin_profile(db, admin)
            await _claim(
                db, Deposit, deposit_id,
                DepositStatus.PENDING, DepositStatus.REJECTED, admin, "Deposit"
            )
            await log_admin_action(
                db, admin, AuditAction.DEPOSIT_REJECTED,
                target_user_id=deposit.user_id,
                resource=("deposit", deposit.id),
                metadata={"amount": str(deposit.amount)},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(deposit)
        logger.info("Deposit rejected", extra={"deposit_id": deposit.id, "admin_id": admin.id})

        return DepositDecision(deposit=deposit)


async def _pay_referral_bonus(db: AsyncSession, depositor: Profile, deposit: Deposit, bonus: Decimal) -> None:
    """Credit the referrer inside the caller's transaction."""
    referrer_id = depositor.referred_by

    await db.execute(
        update(Profile)
        .where(Profile.id == referrer_id)
        .values(
            account_balance=Profile.account_balance + bonus,
            total_referral_bonus=Profile.total_referral_bonus + bonus,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )

    db.add(TransactionEntry(
        user_id=referrer_id,
        type=TransactionType.REFERRAL_BONUS,
        amount=bonus,
        description=f"Referral bonus from {depositor.email or 'user'}'s deposit",
        reference_id=deposit.id,
    ))

    referral = (await db.execute(
        select(Referral).where(
            Referral.referrer_id == referrer_id,
            Referral.referred_id == depositor.id,
        )
    )).scalar_one_or_none()

    if referral is None:
        db.add(Referral(
            referrer_id=referrer_id,
            referred_id=depositor.id,
            bonus_amount=bonus,
            status=ReferralStatus.PAID,
        ))
    else:
        referral.bonus_amount = to_money(referral.bonus_amount) + bonus
        referral.status = ReferralStatus.PAID

    await db.flush()
