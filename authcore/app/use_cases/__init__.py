"""
Use Cases

Organized into domain folders:
- auth/: Authentication flows
- users/: Account administration
"""

from .auth import (
    ChangePasswordUseCase,
    GetCurrentAccountUseCase,
    LoginUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    RegisterUseCase,
)
from .users import AccountAdminUseCase

__all__ = [
    # Auth
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    "GetCurrentAccountUseCase",
    "RegisterUseCase",
    # Users
    "AccountAdminUseCase",
]
