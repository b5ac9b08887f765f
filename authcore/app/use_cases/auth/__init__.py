"""
Authentication Use Cases

All authentication-related business logic.
"""

from .login_use_case import LoginUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .logout_use_case import LogoutUseCase
from .change_password_use_case import ChangePasswordUseCase
from .get_current_account_use_case import GetCurrentAccountUseCase
from .register_use_case import RegisterUseCase
from .errors import ErrorCode, INVALID_CREDENTIALS_MESSAGE
from .dtos import (
    AccountView,
    LoginResult,
    RegisterCommand,
    UpdateAccountCommand,
)

__all__ = [
    # Use Cases
    "LoginUseCase",
    "RefreshTokenUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    "GetCurrentAccountUseCase",
    "RegisterUseCase",
    # Errors
    "ErrorCode",
    "INVALID_CREDENTIALS_MESSAGE",
    # DTOs - Commands
    "RegisterCommand",
    "UpdateAccountCommand",
    # DTOs - Responses
    "AccountView",
    "LoginResult",
]
