"""
Admin Role Management Endpoints.

Grant, revoke, list and re-sync admin roles (admin-only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.core.guards import require_admin
from backend.app.schemas.admin import (
    ManageAdminRequest, AdminActionResponse, SyncRolesResponse, AdminListResponse, AdminSummary
)
from backend.app.schemas.auth import Principal
from backend.app.services import role_management
from backend.app.services.auth_provider import AuthProviderClient, get_auth_provider

router = APIRouter(prefix="/admin/manage-admins", tags=["Admin Roles"])


@router.post("/add", response_model=AdminActionResponse)
async def add_admin(
    request: ManageAdminRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    provider: AuthProviderClient = Depends(get_auth_provider)
):
    """
    Grant admin to the user with the given email.

    503 if the identity provider cannot be updated (no role change is kept).
    """
    message = await role_management.grant_admin(db, provider, admin, request.email)
    return AdminActionResponse(success=True, message=message)


@router.post("/remove", response_model=AdminActionResponse)
async def remove_admin(
    request: ManageAdminRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    provider: AuthProviderClient = Depends(get_auth_provider)
):
    """
    Revoke admin from the user with the given email.

    Admins cannot remove themselves.
    """
    message = await role_management.revoke_admin(db, provider, admin, request.email)
    return AdminActionResponse(success=True, message=message)


@router.get("/list", response_model=AdminListResponse)
async def list_admins(
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    admins = await role_management.list_admins(db)
    return AdminListResponse(admins=[AdminSummary.model_validate(a) for a in admins])


@router.post("/sync", response_model=SyncRolesResponse)
async def sync_roles(
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    provider: AuthProviderClient = Depends(get_auth_provider)
):
    """Push every profile's role to the identity provider."""
    synced = await role_management.sync_roles(db, provider, admin)
    return SyncRolesResponse(
        success=True,
        message="Roles synced successfully",
        synced_count=synced
    )
