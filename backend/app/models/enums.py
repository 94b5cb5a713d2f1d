"""
Enumerations for profiles, monetary requests and the transaction ledger.
"""

import enum


class UserRole(str, enum.Enum):
    """
    Principal role.

    Roles:
        USER: Investor account (default role)
        ADMIN: Approves deposits/withdrawals and manages other accounts
    """
    USER = "user"
    ADMIN = "admin"


class AccountStatus(str, enum.Enum):
    """Profile account status, toggled by admins."""
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class CryptoType(str, enum.Enum):
    """Supported payment currencies."""
    BTC = "BTC"
    ETH = "ETH"
    USDT = "USDT"
    SOL = "SOL"


class DepositStatus(str, enum.Enum):
    """Deposit lifecycle: PENDING -> CONFIRMED | REJECTED."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class WithdrawalStatus(str, enum.Enum):
    """Withdrawal lifecycle: PENDING -> APPROVED | REJECTED."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvestmentStatus(str, enum.Enum):
    """Active investment status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReferralStatus(str, enum.Enum):
    """Referral bonus status."""
    PENDING = "pending"  # Referred user has not had a deposit confirmed yet
    PAID = "paid"


class TransactionType(str, enum.Enum):
    """Ledger entry type."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    ROI = "roi"
    REFERRAL_BONUS = "referral_bonus"
    ADMIN_ADJUSTMENT = "admin_adjustment"


def enum_values(enum_cls):
    """Persist enum values (e.g. "pending") rather than member names."""
    return [member.value for member in enum_cls]
