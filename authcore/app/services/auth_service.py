"""
Authentication Service

Single entry point for the authentication and session lifecycle. Every
operation returns a Result; storage faults are reported as
PERSISTENCE_ERROR instead of escaping as exceptions.
"""

import logging
from typing import Awaitable, Optional, TypeVar
from uuid import UUID

from authcore.app.repositories.errors import RepositoryError
from authcore.app.services.auth_settings import AuthSettings
from authcore.app.services.password_hasher import IPasswordHasher
from authcore.app.services.token_signer import ITokenSigner
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth import (
    AccountView,
    ChangePasswordUseCase,
    ErrorCode,
    GetCurrentAccountUseCase,
    LoginResult,
    LoginUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    RegisterCommand,
    RegisterUseCase,
)
from authcore.domain.base import Clock, utc_now
from authcore.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERSISTENCE_ERROR_MESSAGE = "Authentication storage is unavailable. Please try again later"


class AuthService:
    """
    Facade over the authentication use cases.

    Owns the lockout and rotation policy (via AuthSettings) and wires the
    unit of work, hasher, signer and clock into each use case.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        hasher: IPasswordHasher,
        signer: ITokenSigner,
        settings: AuthSettings,
        clock: Clock = utc_now,
    ):
        self.uow = uow
        self.hasher = hasher
        self.signer = signer
        self.settings = settings
        self.clock = clock

    async def login(
        self,
        username: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        remember_me: bool = False,
    ) -> Result[LoginResult]:
        use_case = LoginUseCase(self.uow, self.hasher, self.signer, self.settings, self.clock)
        return await self._run(
            "login", use_case.execute(username, password, ip_address, user_agent, remember_me)
        )

    async def refresh(
        self,
        refresh_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[LoginResult]:
        use_case = RefreshTokenUseCase(self.uow, self.signer, self.settings, self.clock)
        return await self._run("refresh", use_case.execute(refresh_token, ip_address, user_agent))

    async def revoke(self, refresh_token: str) -> Result[None]:
        use_case = LogoutUseCase(self.uow, self.clock)
        return await self._run("revoke", use_case.execute(refresh_token))

    async def change_password(
        self, account_id: UUID, current_password: str, new_password: str
    ) -> Result[None]:
        use_case = ChangePasswordUseCase(self.uow, self.hasher, self.clock)
        return await self._run(
            "change_password", use_case.execute(account_id, current_password, new_password)
        )

    async def get_current_user(self, account_id: UUID) -> Result[AccountView]:
        use_case = GetCurrentAccountUseCase(self.uow)
        return await self._run("get_current_user", use_case.execute(account_id))

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: str,
        employee_id: Optional[UUID] = None,
    ) -> Result[AccountView]:
        command = RegisterCommand(
            username=username,
            email=email,
            password=password,
            role=role,
            employee_id=employee_id,
        )
        use_case = RegisterUseCase(self.uow, self.hasher, self.clock)
        return await self._run("register", use_case.execute(command))

    @staticmethod
    async def _run(operation: str, call: Awaitable[Result[T]]) -> Result[T]:
        try:
            return await call
        except RepositoryError:
            logger.exception(f"Persistence failure during {operation}")
            return Return.err(Error(ErrorCode.PERSISTENCE_ERROR, PERSISTENCE_ERROR_MESSAGE))
