"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from authcore.domain.entities import Account


# ============================================================================
# Command DTOs
# ============================================================================


class RegisterCommand(BaseModel):
    """Administrative registration of a new account"""

    username: str
    email: str
    password: str
    role: str
    employee_id: Optional[UUID] = None


class UpdateAccountCommand(BaseModel):
    """Administrative edit of an existing account"""

    email: str
    role: str
    is_active: bool
    employee_id: Optional[UUID] = None


# ============================================================================
# Response DTOs
# ============================================================================


class AccountView(BaseModel):
    """Public view of an account - never carries the password hash"""

    id: UUID
    username: str
    email: str
    role: str
    is_active: bool
    employee_id: Optional[UUID] = None
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> "AccountView":
        return cls(
            id=account.id,
            username=account.username,
            email=account.email,
            role=account.role.value,
            is_active=account.is_active,
            employee_id=account.employee_id,
            created_at=account.created_at,
        )


class LoginResult(BaseModel):
    """
    Response for login and refresh use cases

    refresh_token is the only copy of the clear refresh secret; the API
    layer moves it into a cookie instead of the response body.
    """

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    account: AccountView
    refresh_token: str
    refresh_token_expires_at: datetime
