"""
Deposit and withdrawal request schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from backend.app.models.enums import CryptoType, DepositStatus, WithdrawalStatus


class DepositCreate(BaseModel):
    """Schema for submitting a deposit against a plan."""
    plan_id: str = Field(..., min_length=1)
    crypto_type: CryptoType
    wallet_address: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    proof_image_url: Optional[str] = Field(None, max_length=500)


class DepositResponse(BaseModel):
    id: str
    user_id: str
    plan_id: str
    amount: Decimal
    crypto_type: CryptoType
    wallet_address: str
    proof_image_url: Optional[str] = None
    status: DepositStatus
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    plan_name: Optional[str] = None
    plan_emoji: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None

    class Config:
        from_attributes = True


class DepositCreateResponse(BaseModel):
    deposit: DepositResponse
    message: str


class DepositListResponse(BaseModel):
    deposits: List[DepositResponse]


class WithdrawalCreate(BaseModel):
    """Schema for requesting a withdrawal. The balance is only debited on approval."""
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    crypto_type: CryptoType
    wallet_address: str = Field(..., min_length=1, max_length=255)


class WithdrawalResponse(BaseModel):
    id: str
    user_id: str
    amount: Decimal
    crypto_type: CryptoType
    wallet_address: str
    status: WithdrawalStatus
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    user_email: Optional[str] = None
    user_name: Optional[str] = None

    class Config:
        from_attributes = True


class WithdrawalCreateResponse(BaseModel):
    withdrawal: WithdrawalResponse
    message: str


class WithdrawalListResponse(BaseModel):
    withdrawals: List[WithdrawalResponse]
