"""
Admin role management: grant, revoke, list, sync.
"""

import pytest

from backend.app.models.enums import UserRole
from backend.app.models.profile import Profile


async def _role(session_factory, profile_id):
    async with session_factory() as session:
        profile = await session.get(Profile, profile_id)
        return profile.role


@pytest.mark.asyncio
async def test_grant_admin_updates_row_and_provider(client, session_factory, admin_headers, user, auth_provider):
    response = await client.post(
        "/api/admin/manage-admins/add", json={"email": "U1@nexachain.io"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert await _role(session_factory, "u1") == UserRole.ADMIN
    assert auth_provider.metadata["u1"] == {"role": "admin"}


@pytest.mark.asyncio
async def test_grant_admin_twice_is_400(client, admin_headers, admin):
    response = await client.post(
        "/api/admin/manage-admins/add", json={"email": admin.email}, headers=admin_headers
    )
    assert response.status_code == 400
    assert "already an admin" in response.json()["message"]


@pytest.mark.asyncio
async def test_grant_admin_unknown_email_is_400(client, admin_headers):
    response = await client.post(
        "/api/admin/manage-admins/add", json={"email": "nobody@nexachain.io"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


@pytest.mark.asyncio
async def test_provider_failure_rolls_back_role_change(client, session_factory, admin_headers, user, auth_provider):
    auth_provider.fail = True

    response = await client.post(
        "/api/admin/manage-admins/add", json={"email": user.email}, headers=admin_headers
    )

    assert response.status_code == 503
    assert response.json()["error_code"] == "ERR_UPSTREAM_001"
    assert await _role(session_factory, "u1") == UserRole.USER


@pytest.mark.asyncio
async def test_admin_cannot_remove_self(client, session_factory, admin, admin_headers, auth_provider):
    response = await client.post(
        "/api/admin/manage-admins/remove", json={"email": admin.email}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_PERM_002"
    assert await _role(session_factory, admin.id) == UserRole.ADMIN
    assert auth_provider.metadata == {}


@pytest.mark.asyncio
async def test_remove_other_admin(client, session_factory, make_profile, admin_headers, auth_provider):
    other = await make_profile("second@nexachain.io", role=UserRole.ADMIN)

    response = await client.post(
        "/api/admin/manage-admins/remove", json={"email": other.email}, headers=admin_headers
    )

    assert response.status_code == 200
    assert await _role(session_factory, other.id) == UserRole.USER
    assert auth_provider.metadata[other.id] == {"role": "user"}

    again = await client.post(
        "/api/admin/manage-admins/remove", json={"email": other.email}, headers=admin_headers
    )
    assert again.status_code == 400
    assert "not an admin" in again.json()["message"]


@pytest.mark.asyncio
async def test_removed_admin_loses_access_immediately(client, make_profile, admin_headers, auth_headers):
    other = await make_profile("second@nexachain.io", role=UserRole.ADMIN)
    other_headers = auth_headers(other.id, other.email)

    assert (await client.get("/api/admin/users", headers=other_headers)).status_code == 200

    await client.post("/api/admin/manage-admins/remove", json={"email": other.email}, headers=admin_headers)

    # Same token, role re-read from the profile row
    assert (await client.get("/api/admin/users", headers=other_headers)).status_code == 403


@pytest.mark.asyncio
async def test_list_and_sync(client, admin, admin_headers, user, auth_provider):
    listed = await client.get("/api/admin/manage-admins/list", headers=admin_headers)
    assert listed.status_code == 200
    assert [a["email"] for a in listed.json()["admins"]] == [admin.email]

    synced = await client.post("/api/admin/manage-admins/sync", headers=admin_headers)
    assert synced.status_code == 200
    assert synced.json()["synced_count"] == 2
    assert auth_provider.metadata == {"a1": {"role": "admin"}, "u1": {"role": "user"}}


@pytest.mark.asyncio
async def test_invalid_email_is_422(client, admin_headers):
    response = await client.post(
        "/api/admin/manage-admins/add", json={"email": "not-an-email"}, headers=admin_headers
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"
