"""
Authentication Pydantic schemas.

Defines the authenticated principal resolved by the identity gate.
"""

from pydantic import BaseModel, Field
from typing import Optional
from backend.app.models.enums import UserRole, AccountStatus


class Principal(BaseModel):
    """
    Authenticated actor.

    Built once per request from a verified token and the caller's profile row.
    `role` always comes from the profile, never from token metadata.
    """
    id: str = Field(..., description="Identity provider user id")
    email: Optional[str] = Field(default=None, description="Email address")
    role: UserRole = Field(default=UserRole.USER, description="Role from the profile row")
    account_status: AccountStatus = Field(default=AccountStatus.ACTIVE)
    token: str = Field(..., repr=False, exclude=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class SignOutResponse(BaseModel):
    success: bool = True
    message: str = "Signed out"
