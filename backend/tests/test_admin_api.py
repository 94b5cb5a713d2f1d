"""
Admin HTTP surface: authorization gate, approval endpoints and listings.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from backend.app.models.audit_log import AuditLog
from backend.app.models.deposit import Deposit
from backend.app.models.enums import AccountStatus, CryptoType, DepositStatus, UserRole, WithdrawalStatus
from backend.app.models.profile import Profile
from backend.app.models.transaction_entry import TransactionEntry
from backend.app.models.withdrawal import Withdrawal


@pytest.fixture
async def withdrawal(db_session, user):
    withdrawal = Withdrawal(
        id="w1",
        user_id=user.id,
        amount=Decimal("100"),
        crypto_type=CryptoType.USDT,
        wallet_address="TXyz-wallet",
    )
    db_session.add(withdrawal)
    await db_session.commit()
    return withdrawal


@pytest.fixture
async def deposit(db_session, user, plan):
    deposit = Deposit(
        id="d1",
        user_id=user.id,
        plan_id=plan.id,
        amount=Decimal("250"),
        crypto_type=CryptoType.ETH,
        wallet_address="0xabc",
    )
    db_session.add(deposit)
    await db_session.commit()
    return deposit


ADMIN_MUTATIONS = [
    ("post", "/api/admin/withdrawals/w1/approve", None),
    ("post", "/api/admin/withdrawals/w1/reject", None),
    ("post", "/api/admin/deposits/d1/approve", None),
    ("post", "/api/admin/deposits/d1/reject", None),
    ("post", "/api/admin/balance/adjust", {"user_id": "u1", "amount": "-100"}),
    ("post", "/api/admin/balance/set", {"user_id": "u1", "amount": "0"}),
    ("post", "/api/admin/roi/credit", {"investment_id": "i1", "amount": "10"}),
    ("post", "/api/admin/roi/set", {"investment_id": "i1", "new_value": "0"}),
    ("post", "/api/admin/manage-admins/add", {"email": "u1@nexachain.io"}),
    ("post", "/api/admin/manage-admins/remove", {"email": "admin@nexachain.io"}),
    ("post", "/api/admin/manage-admins/sync", None),
    ("post", "/api/admin/users/u1/deactivate", None),
    ("post", "/api/admin/users/u1/activate", None),
    ("delete", "/api/admin/users/u1", None),
]

ADMIN_READS = [
    "/api/admin/users",
    "/api/admin/deposits",
    "/api/admin/withdrawals",
    "/api/admin/audit-logs",
    "/api/admin/manage-admins/list",
]


@pytest.mark.asyncio
async def test_missing_token_is_401(client):
    response = await client.get("/api/admin/withdrawals")
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_AUTH_001"


@pytest.mark.asyncio
async def test_garbage_token_is_401(client):
    response = await client.get("/api/investments", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.parametrize("method,path,body", ADMIN_MUTATIONS)
async def test_non_admin_mutation_forbidden_without_side_effects(
    client, session_factory, admin, user, user_headers, withdrawal, deposit, auth_provider, method, path, body
):
    kwargs = {"headers": user_headers}
    if body is not None:
        kwargs["json"] = body

    response = await getattr(client, method)(path, **kwargs)

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"

    async with session_factory() as session:
        profile = await session.get(Profile, "u1")
        stored = await session.get(Withdrawal, "w1")
        pending_deposit = await session.get(Deposit, "d1")
        other_admin = await session.get(Profile, "a1")
        audit_rows = (await session.execute(select(AuditLog))).scalars().all()
        entries = (await session.execute(select(TransactionEntry))).scalars().all()
    assert profile is not None
    assert profile.role == UserRole.USER
    assert profile.account_status == AccountStatus.ACTIVE
    assert profile.account_balance == Decimal("150.00")
    assert stored.status == WithdrawalStatus.PENDING
    assert pending_deposit.status == DepositStatus.PENDING
    assert other_admin.role == UserRole.ADMIN
    assert audit_rows == []
    assert entries == []
    assert auth_provider.metadata == {}
    assert auth_provider.deleted == []


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ADMIN_READS)
async def test_non_admin_read_forbidden(client, user_headers, path):
    response = await client.get(path, headers=user_headers)

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PERM_001"


@pytest.mark.asyncio
async def test_role_claim_in_token_is_ignored(client, user):
    """Only the profile row grants admin; a forged metadata claim does not."""
    from backend.app.core.jwt import create_access_token

    token = create_access_token({
        "sub": user.id,
        "email": user.email,
        "user_metadata": {"role": "admin"},
        "role": "admin",
    })
    response = await client.get("/api/admin/deposits", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_approve_withdrawal_endpoint(client, admin_headers, withdrawal):
    response = await client.post("/api/admin/withdrawals/w1/approve", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert Decimal(body["old_balance"]) == Decimal("150")
    assert Decimal(body["new_balance"]) == Decimal("50")
    assert body["withdrawal"]["status"] == "approved"

    again = await client.post("/api/admin/withdrawals/w1/approve", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["error_code"] == "ERR_STATE_001"
    assert again.json()["details"]["status"] == "approved"


@pytest.mark.asyncio
async def test_approve_withdrawal_insufficient_funds_endpoint(client, db_session, admin_headers, user, withdrawal):
    user.account_balance = Decimal("50")
    await db_session.commit()

    response = await client.post("/api/admin/withdrawals/w1/approve", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_FUNDS_001"
    assert response.json()["message"] == "Insufficient balance"


@pytest.mark.asyncio
async def test_reject_unknown_withdrawal_is_404(client, admin_headers):
    response = await client.post("/api/admin/withdrawals/nope/reject", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_confirm_and_reject_deposit_endpoints(client, admin_headers, deposit):
    response = await client.post(f"/api/admin/deposits/{deposit.id}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deposit"]["status"] == "confirmed"

    rejected = await client.post(f"/api/admin/deposits/{deposit.id}/reject", headers=admin_headers)
    assert rejected.status_code == 400
    assert rejected.json()["details"]["status"] == "confirmed"


@pytest.mark.asyncio
async def test_admin_listings_newest_first(client, db_session, admin_headers, user, plan, deposit):
    second = Deposit(
        user_id=user.id,
        plan_id=plan.id,
        amount=Decimal("75"),
        crypto_type=CryptoType.SOL,
        wallet_address="sol-wallet",
    )
    db_session.add(second)
    await db_session.commit()

    response = await client.get("/api/admin/deposits", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert [d["id"] for d in body["deposits"]] == [second.id, deposit.id]
    assert body["deposits"][0]["user_email"] == "u1@nexachain.io"
    assert body["deposits"][0]["plan_name"] == "Starter"

    pending = await client.get("/api/admin/deposits", params={"status": "pending"}, headers=admin_headers)
    assert pending.json()["count"] == 2


@pytest.mark.asyncio
async def test_admin_withdrawal_listing(client, admin_headers, withdrawal):
    response = await client.get("/api/admin/withdrawals", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["withdrawals"][0]["id"] == "w1"
    assert body["withdrawals"][0]["status"] == "pending"


@pytest.mark.asyncio
async def test_audit_logs_listing(client, admin_headers, withdrawal):
    await client.post(
        "/api/admin/withdrawals/w1/reject", headers={**admin_headers, "X-Correlation-ID": "req-42"}
    )

    response = await client.get("/api/admin/audit-logs", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["logs"][0]["action"] == "WITHDRAWAL_REJECTED"
    assert body["logs"][0]["resource_id"] == "w1"
    assert body["logs"][0]["correlation_id"] == "req-42"

    filtered = await client.get(
        "/api/admin/audit-logs", params={"action": "USER_DELETED"}, headers=admin_headers
    )
    assert filtered.json()["total"] == 0
