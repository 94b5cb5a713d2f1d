"""
Database seeding script for investment plans and the first admin.

Creates the public plan catalogue and, when BOOTSTRAP_ADMIN_ID and
BOOTSTRAP_ADMIN_EMAIL are set, an ADMIN profile for that identity-provider
account. Run this script after the database is set up but before first use.
"""

import asyncio
import os
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, Base, engine
from backend.app.models.investment_plan import InvestmentPlan
from backend.app.models.profile import Profile
from backend.app.models.enums import UserRole
from backend.app.services.profiles import generate_referral_code
from sqlalchemy import select

import backend.app.models.active_investment  # noqa: F401
import backend.app.models.audit_log  # noqa: F401
import backend.app.models.deposit  # noqa: F401
import backend.app.models.referral  # noqa: F401
import backend.app.models.transaction_entry  # noqa: F401
import backend.app.models.withdrawal  # noqa: F401


PLANS = [
    {"name": "Beginner Plan", "emoji": "🔰", "daily_roi": "5", "total_roi": "5", "duration_days": 1,
     "min_amount": "50", "max_amount": "499"},
    {"name": "Silver Plan", "emoji": "🪙", "daily_roi": "10", "total_roi": "10", "duration_days": 1,
     "min_amount": "500", "max_amount": "999"},
    {"name": "Gold Plan", "emoji": "🏆", "daily_roi": "20", "total_roi": "20", "duration_days": 2,
     "min_amount": "1000", "max_amount": "4999"},
    {"name": "VIP Membership", "emoji": "💎", "daily_roi": "35", "total_roi": "35", "duration_days": 4,
     "min_amount": "5000", "max_amount": None},
    {"name": "Long Term Investment", "emoji": "📈", "daily_roi": "3", "total_roi": "90", "duration_days": 30,
     "min_amount": "155", "max_amount": "5555"},
]


async def seed_plans(db):
    result = await db.execute(select(InvestmentPlan.name))
    existing = set(result.scalars().all())

    for plan in PLANS:
        if plan["name"] in existing:
            print(f"ℹ️  {plan['name']} already exists, skipping")
            continue
        db.add(InvestmentPlan(
            name=plan["name"],
            emoji=plan["emoji"],
            daily_roi=Decimal(plan["daily_roi"]),
            total_roi=Decimal(plan["total_roi"]),
            duration_days=plan["duration_days"],
            min_amount=Decimal(plan["min_amount"]),
            max_amount=Decimal(plan["max_amount"]) if plan["max_amount"] else None,
            referral_bonus_percent=Decimal("5"),
        ))
        print(f"✅ Created plan {plan['emoji']} {plan['name']}")


async def seed_admin(db):
    admin_id = os.getenv("BOOTSTRAP_ADMIN_ID")
    admin_email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    if not admin_id or not admin_email:
        print("ℹ️  BOOTSTRAP_ADMIN_ID / BOOTSTRAP_ADMIN_EMAIL not set, skipping admin")
        return

    profile = await db.get(Profile, admin_id)
    if profile is None:
        db.add(Profile(
            id=admin_id,
            email=admin_email.lower(),
            role=UserRole.ADMIN,
            referral_code=generate_referral_code(),
        ))
        print(f"✅ Created ADMIN profile for {admin_email}")
    elif profile.role != UserRole.ADMIN:
        profile.role = UserRole.ADMIN
        print(f"✅ Promoted {profile.email} to ADMIN")
    else:
        print(f"ℹ️  {profile.email} is already an ADMIN")

    print("   Run POST /api/admin/manage-admins/sync to mirror the role to the identity provider")


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")
        await seed_plans(db)
        await seed_admin(db)
        await db.commit()
        print("\n🎉 Seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed())
