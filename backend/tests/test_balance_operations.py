"""
Admin balance adjustments, absolute set and ROI credits.
"""

from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from backend.app.core.exceptions import (
    InsufficientFundsError,
    InsufficientPermissionsError,
    InvalidStateError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.db.session import utcnow
from backend.app.domain.ledger.balance_service import BalanceService
from backend.app.models.active_investment import ActiveInvestment
from backend.app.models.audit_log import AuditLog
from backend.app.models.deposit import Deposit
from backend.app.models.enums import CryptoType, DepositStatus, InvestmentStatus, TransactionType, UserRole
from backend.app.models.profile import Profile
from backend.app.models.transaction_entry import TransactionEntry


@pytest.fixture
async def investment(db_session, user, plan):
    deposit = Deposit(
        user_id=user.id,
        plan_id=plan.id,
        amount=Decimal("200"),
        crypto_type=CryptoType.USDT,
        wallet_address="TXyz",
        status=DepositStatus.CONFIRMED,
    )
    db_session.add(deposit)
    await db_session.flush()

    now = utcnow()
    investment = ActiveInvestment(
        user_id=user.id,
        plan_id=plan.id,
        deposit_id=deposit.id,
        principal_amount=Decimal("200"),
        current_value=Decimal("200"),
        expected_return=Decimal("90"),
        start_date=now,
        end_date=now + timedelta(days=30),
    )
    db_session.add(investment)
    await db_session.commit()
    return investment


async def _ledger(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(
            select(TransactionEntry).where(TransactionEntry.user_id == user_id)
        )
        return result.scalars().all()


async def _balance(session_factory, user_id):
    async with session_factory() as session:
        profile = await session.get(Profile, user_id)
        return profile.account_balance


@pytest.mark.asyncio
async def test_adjust_balance_credit_and_debit(db_session, session_factory, user, admin_principal):
    change = await BalanceService.adjust_balance(db_session, "u1", Decimal("25.50"), admin_principal)
    assert change.old_balance == Decimal("150.00")
    assert change.new_balance == Decimal("175.50")

    change = await BalanceService.adjust_balance(db_session, "u1", Decimal("-75.50"), admin_principal, "Chargeback")
    assert change.new_balance == Decimal("100.00")

    entries = await _ledger(session_factory, "u1")
    assert sorted(e.amount for e in entries) == [Decimal("-75.50"), Decimal("25.50")]
    assert {e.type for e in entries} == {TransactionType.ADMIN_ADJUSTMENT}
    assert "Chargeback" in {e.description for e in entries}


@pytest.mark.asyncio
async def test_adjust_balance_below_zero_refused(db_session, session_factory, user, admin_principal):
    with pytest.raises(InsufficientFundsError):
        await BalanceService.adjust_balance(db_session, "u1", Decimal("-150.01"), admin_principal)

    assert await _balance(session_factory, "u1") == Decimal("150.00")
    assert await _ledger(session_factory, "u1") == []


@pytest.mark.asyncio
async def test_adjust_balance_zero_refused(db_session, user, admin_principal):
    with pytest.raises(ValidationFailedError):
        await BalanceService.adjust_balance(db_session, "u1", Decimal("0"), admin_principal)


@pytest.mark.asyncio
async def test_set_balance_records_difference(db_session, session_factory, user, admin_principal):
    change = await BalanceService.set_balance(db_session, "u1", Decimal("40"), admin_principal)

    assert change.old_balance == Decimal("150.00")
    assert change.new_balance == Decimal("40.00")
    assert await _balance(session_factory, "u1") == Decimal("40.00")

    entries = await _ledger(session_factory, "u1")
    assert len(entries) == 1
    assert entries[0].amount == Decimal("-110.00")


@pytest.mark.asyncio
async def test_set_balance_to_same_value_writes_no_entry(db_session, session_factory, user, admin_principal):
    change = await BalanceService.set_balance(db_session, "u1", Decimal("150"), admin_principal)
    assert change.entry is None
    assert await _ledger(session_factory, "u1") == []


@pytest.mark.asyncio
async def test_set_balance_detects_concurrent_change(db_session, session_factory, user, admin_principal):
    """The stale balance read by this session no longer matches the row."""
    async with session_factory() as other:
        await BalanceService.adjust_balance(other, "u1", Decimal("10"), admin_principal)

    with pytest.raises(InvalidStateError):
        await BalanceService.set_balance(db_session, "u1", Decimal("0"), admin_principal)

    assert await _balance(session_factory, "u1") == Decimal("160.00")


@pytest.mark.asyncio
async def test_set_balance_after_fractional_credits(db_session, session_factory, make_profile, admin_principal):
    """Three 0.10 credits leave float residue on SQLite; the swap still matches."""
    saver = await make_profile("saver@nexachain.io", balance="0")
    for _ in range(3):
        await BalanceService.adjust_balance(db_session, saver.id, Decimal("0.10"), admin_principal)

    change = await BalanceService.set_balance(db_session, saver.id, Decimal("10"), admin_principal)

    assert change.old_balance == Decimal("0.30")
    assert change.entry.amount == Decimal("9.70")
    assert await _balance(session_factory, saver.id) == Decimal("10.00")


@pytest.mark.asyncio
async def test_demoted_admin_cannot_move_balances(db_session, session_factory, admin, user, admin_principal):
    admin.role = UserRole.USER
    await db_session.commit()

    with pytest.raises(InsufficientPermissionsError):
        await BalanceService.adjust_balance(db_session, "u1", Decimal("25"), admin_principal)
    with pytest.raises(InsufficientPermissionsError):
        await BalanceService.set_balance(db_session, "u1", Decimal("0"), admin_principal)

    assert await _balance(session_factory, "u1") == Decimal("150.00")
    assert await _ledger(session_factory, "u1") == []
    async with session_factory() as session:
        assert (await session.execute(select(AuditLog))).scalars().all() == []


@pytest.mark.asyncio
async def test_credit_roi(db_session, session_factory, user, investment, admin_principal):
    change = await BalanceService.credit_roi(db_session, investment.id, Decimal("3"), admin_principal)

    assert change.new_balance == Decimal("153.00")

    async with session_factory() as session:
        stored = await session.get(ActiveInvestment, investment.id)
    assert stored.current_value == Decimal("203.00")

    entries = await _ledger(session_factory, "u1")
    assert len(entries) == 1
    assert entries[0].type == TransactionType.ROI
    assert entries[0].reference_id == investment.id


@pytest.mark.asyncio
async def test_credit_roi_requires_active_investment(db_session, session_factory, investment, admin_principal):
    investment.status = InvestmentStatus.COMPLETED
    await db_session.commit()

    with pytest.raises(InvalidStateError):
        await BalanceService.credit_roi(db_session, investment.id, Decimal("3"), admin_principal)

    assert await _balance(session_factory, "u1") == Decimal("150.00")


@pytest.mark.asyncio
async def test_balance_endpoints(client, admin_headers, user, investment):
    adjusted = await client.post(
        "/api/admin/balance/adjust",
        json={"user_id": "u1", "amount": "-50", "description": "Correction"},
        headers=admin_headers,
    )
    assert adjusted.status_code == 200
    assert Decimal(adjusted.json()["new_balance"]) == Decimal("100")
    assert adjusted.json()["transaction_id"]

    too_much = await client.post(
        "/api/admin/balance/adjust", json={"user_id": "u1", "amount": "-500"}, headers=admin_headers
    )
    assert too_much.status_code == 400
    assert too_much.json()["error_code"] == "ERR_FUNDS_001"

    zero = await client.post(
        "/api/admin/balance/adjust", json={"user_id": "u1", "amount": "0"}, headers=admin_headers
    )
    assert zero.status_code == 422

    negative_set = await client.post(
        "/api/admin/balance/set", json={"user_id": "u1", "amount": "-1"}, headers=admin_headers
    )
    assert negative_set.status_code == 422

    unknown = await client.post(
        "/api/admin/balance/set", json={"user_id": "ghost", "amount": "1"}, headers=admin_headers
    )
    assert unknown.status_code == 404

    roi = await client.post(
        "/api/admin/roi/credit", json={"investment_id": investment.id, "amount": "12.5"}, headers=admin_headers
    )
    assert roi.status_code == 200
    assert Decimal(roi.json()["new_balance"]) == Decimal("112.5")


@pytest.mark.asyncio
async def test_set_investment_value(db_session, session_factory, user, investment, admin_principal):
    change = await BalanceService.set_investment_value(db_session, investment.id, Decimal("260"), admin_principal)

    assert change.old_value == Decimal("200.00")
    assert change.new_value == Decimal("260.00")
    assert change.profit == Decimal("60.00")

    async with session_factory() as session:
        stored = await session.get(ActiveInvestment, investment.id)
        audit = (await session.execute(select(AuditLog))).scalar_one()
    assert stored.current_value == Decimal("260.00")
    assert audit.action == "INVESTMENT_VALUE_SET"
    assert (audit.resource_type, audit.resource_id) == ("investment", investment.id)
    assert audit.meta_data["profit"] == "60.00"

    # Revaluation leaves the account balance alone
    assert await _balance(session_factory, "u1") == Decimal("150.00")
    entries = await _ledger(session_factory, "u1")
    assert len(entries) == 1
    assert entries[0].type == TransactionType.ROI
    assert entries[0].amount == Decimal("60.00")
    assert entries[0].reference_id == investment.id


@pytest.mark.asyncio
async def test_set_investment_value_below_principal(db_session, session_factory, investment, admin_principal):
    change = await BalanceService.set_investment_value(db_session, investment.id, Decimal("150"), admin_principal)

    assert change.profit == Decimal("-50.00")
    assert change.entry.amount == Decimal("-50.00")


@pytest.mark.asyncio
async def test_set_investment_value_rules(db_session, session_factory, investment, admin_principal):
    with pytest.raises(ValidationFailedError):
        await BalanceService.set_investment_value(db_session, investment.id, Decimal("-1"), admin_principal)

    with pytest.raises(ResourceNotFoundError):
        await BalanceService.set_investment_value(db_session, "missing", Decimal("1"), admin_principal)

    investment.status = InvestmentStatus.COMPLETED
    await db_session.commit()
    with pytest.raises(InvalidStateError):
        await BalanceService.set_investment_value(db_session, investment.id, Decimal("300"), admin_principal)

    async with session_factory() as session:
        stored = await session.get(ActiveInvestment, investment.id)
    assert stored.current_value == Decimal("200.00")


@pytest.mark.asyncio
async def test_set_investment_value_detects_concurrent_credit(
    db_session, session_factory, investment, admin_principal
):
    await db_session.get(ActiveInvestment, investment.id)
    async with session_factory() as other:
        await BalanceService.credit_roi(other, investment.id, Decimal("5"), admin_principal)

    with pytest.raises(InvalidStateError):
        await BalanceService.set_investment_value(db_session, investment.id, Decimal("0"), admin_principal)

    async with session_factory() as session:
        stored = await session.get(ActiveInvestment, investment.id)
    assert stored.current_value == Decimal("205.00")


@pytest.mark.asyncio
async def test_roi_set_endpoint(client, admin_headers, user, investment):
    response = await client.post(
        "/api/admin/roi/set",
        json={"investment_id": investment.id, "new_value": "230.5"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Investment value set to $230.50"
    assert Decimal(body["old_value"]) == Decimal("200")
    assert Decimal(body["new_value"]) == Decimal("230.5")
    assert Decimal(body["profit"]) == Decimal("30.5")
    assert body["transaction_id"]

    negative = await client.post(
        "/api/admin/roi/set", json={"investment_id": investment.id, "new_value": "-1"}, headers=admin_headers
    )
    assert negative.status_code == 422

    unknown = await client.post(
        "/api/admin/roi/set", json={"investment_id": "nope", "new_value": "1"}, headers=admin_headers
    )
    assert unknown.status_code == 404
