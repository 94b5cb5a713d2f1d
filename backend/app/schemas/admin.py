"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel, Field, EmailStr, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Any, Dict
from backend.app.models.enums import UserRole, AccountStatus
from backend.app.schemas.funding import DepositResponse, WithdrawalResponse
from backend.app.schemas.investment import InvestmentResponse


class UserListItem(BaseModel):
    """Schema for user in list response."""
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    role: UserRole
    account_status: AccountStatus
    account_balance: Decimal
    total_invested: Decimal
    total_withdrawn: Decimal
    total_referral_bonus: Decimal
    referral_code: str
    created_at: datetime
    active_investments: List[InvestmentResponse] = []

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserListItem]
    count: int


class AdminActionResponse(BaseModel):
    """Schema for admin action response."""
    success: bool
    message: str


class DepositDecisionResponse(AdminActionResponse):
    deposit: DepositResponse
    referral_bonus: Optional[Decimal] = None


class WithdrawalDecisionResponse(AdminActionResponse):
    withdrawal: WithdrawalResponse
    old_balance: Optional[Decimal] = None
    new_balance: Optional[Decimal] = None


class AdminDepositListResponse(BaseModel):
    deposits: List[DepositResponse]
    count: int


class AdminWithdrawalListResponse(BaseModel):
    withdrawals: List[WithdrawalResponse]
    count: int


class BalanceAdjustRequest(BaseModel):
    """Signed adjustment; negative amounts debit the balance."""
    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., max_digits=18, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("Amount must not be zero")
        return v


class BalanceSetRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)


class RoiCreditRequest(BaseModel):
    investment_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class RoiSetRequest(BaseModel):
    investment_id: str = Field(..., min_length=1)
    new_value: Decimal = Field(..., ge=0, max_digits=18, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class BalanceChangeResponse(AdminActionResponse):
    user_id: str
    old_balance: Decimal
    new_balance: Decimal
    transaction_id: Optional[str] = None


class InvestmentValueResponse(AdminActionResponse):
    investment_id: str
    user_id: str
    old_value: Decimal
    new_value: Decimal
    profit: Decimal
    transaction_id: Optional[str] = None


class ManageAdminRequest(BaseModel):
    email: EmailStr


class SyncRolesResponse(AdminActionResponse):
    synced_count: int


class AdminSummary(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AdminListResponse(BaseModel):
    admins: List[AdminSummary]


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[str]
    actor_email: Optional[str]
    action: str
    target_user_id: Optional[str]
    target_email: Optional[str]
    meta_data: Optional[Dict[str, Any]]
    resource_type: Optional[str]
    resource_id: Optional[str]
    correlation_id: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
