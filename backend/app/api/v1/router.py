"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    plans, investments, referrals, deposits, withdrawals, profile, session,
    admin, admin_transactions, admin_balance, manage_admins
)

router = APIRouter()

# Public catalogue
router.include_router(plans.router)

# User-scoped endpoints
router.include_router(session.router)
router.include_router(profile.router)
router.include_router(investments.router)
router.include_router(referrals.router)
router.include_router(deposits.router)
router.include_router(withdrawals.router)

# Admin endpoints
router.include_router(admin_transactions.router)
router.include_router(admin_balance.router)
router.include_router(manage_admins.router)
router.include_router(admin.router)
