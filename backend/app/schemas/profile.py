"""
Profile and referral schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.enums import UserRole, AccountStatus, ReferralStatus


class ProfileResponse(BaseModel):
    """Schema for the caller's own profile."""
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    wallet_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    role: UserRole
    account_status: AccountStatus
    account_balance: Decimal
    total_invested: Decimal
    total_withdrawn: Decimal
    total_referral_bonus: Decimal
    referral_code: str
    referred_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileEnvelope(BaseModel):
    profile: ProfileResponse


class ProfileUpdate(BaseModel):
    """
    Editable profile fields.

    `referral_code` is accepted once, during onboarding.
    """
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    wallet_address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    referral_code: Optional[str] = Field(None, max_length=32)


class ReferralResponse(BaseModel):
    id: str
    referrer_id: str
    referred_id: str
    bonus_amount: Decimal
    status: ReferralStatus
    created_at: datetime

    class Config:
        from_attributes = True


class ReferralListResponse(BaseModel):
    referrals: List[ReferralResponse]
