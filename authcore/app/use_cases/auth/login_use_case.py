"""
Login Use Case

Handles credential verification, account lockout and session issuance.
"""

import logging
from typing import Optional

from authcore.app.services.auth_settings import AuthSettings
from authcore.app.services.password_hasher import IPasswordHasher
from authcore.app.services.token_signer import ITokenSigner
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import Clock, utc_now
from authcore.domain.entities import Account, Session
from authcore.libs.result import Error, Result, Return
from .dtos import AccountView, LoginResult
from .errors import INVALID_CREDENTIALS_MESSAGE, ErrorCode

logger = logging.getLogger(__name__)


class LoginUseCase:
    """
    Use case for account login and token issuance.

    Business Rules:
    - Unknown username and wrong password fail identically (no enumeration);
      a dummy hash check keeps the timing comparable
    - A running lockout blocks login before the password is checked
    - An elapsed lockout is cleared and the attempt proceeds normally
    - Disabled accounts cannot log in
    - Each wrong password counts atomically; reaching the threshold locks
      the account for the configured duration
    - Success resets the counter and issues an access token plus a new
      refresh session (lifetime doubled for "remember me")
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

    async def execute(
        self,
        username: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        remember_me: bool = False,
    ) -> Result[LoginResult]:
        """
        Execute login use case.

        Args:
            username: Account username
            password: Plain text password
            ip_address: Client IP (recorded on the session only)
            user_agent: Client user agent (recorded on the session only)
            remember_me: Issue a refresh session with doubled lifetime

        Returns:
            Result with LoginResult containing tokens and the account view, or Error
        """
        if not username or not username.strip() or not password:
            return Return.err(
                Error(ErrorCode.VALIDATION_ERROR, "Username and password are required")
            )

        async with self.uow:
            now = self.clock()
            account = await self.uow.accounts.get_by_username(username)

            if account is None:
                self.hasher.dummy_verify(password)
                return Return.err(
                    Error(ErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
                )

            if account.is_locked_out(now):
                logger.warning(f"Login attempt on locked account {account.id}")
                return Return.err(self._locked_error(account))

            if account.clear_expired_lockout(now):
                account = await self.uow.accounts.update(account)
                await self.uow.commit()

            if not account.is_active:
                logger.warning(f"Login attempt on disabled account {account.id}")
                return Return.err(
                    Error(
                        ErrorCode.ACCOUNT_DISABLED,
                        "Account is disabled. Contact an administrator",
                    )
                )

            if not self.hasher.verify(password, account.password_hash):
                return await self._register_failure(account, now)

            account.reset_failed_login_attempts(now)
            account = await self.uow.accounts.update(account)

            refresh_token = self.signer.issue_refresh_secret()
            session = Session.create(
                account_id=account.id,
                refresh_token=refresh_token,
                expires_at=now + self.settings.refresh_lifetime(remember_me),
                ip_address=ip_address,
                user_agent=user_agent,
                now=now,
            )
            await self.uow.sessions.create(session)

            await self.uow.commit()

            logger.info(f"Account {account.id} logged in")

            return Return.ok(
                LoginResult(
                    access_token=self.signer.issue_access_token(account, now),
                    expires_in=self.signer.expires_in_seconds,
                    account=AccountView.from_account(account),
                    refresh_token=refresh_token,
                    refresh_token_expires_at=session.expires_at,
                )
            )

    async def _register_failure(self, account: Account, now) -> Result[LoginResult]:
        max_attempts = self.settings.max_failed_attempts
        updated = await self.uow.accounts.register_failed_login(
            account.id,
            max_attempts=max_attempts,
            lockout_until=now + self.settings.lockout_duration,
            now=now,
        )
        await self.uow.commit()

        if updated is None:
            return Return.err(
                Error(ErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
            )

        if updated.is_locked_out(now):
            logger.warning(
                f"Account {updated.id} locked after {updated.failed_login_attempts} "
                f"failed login attempts"
            )
            return Return.err(
                Error(
                    ErrorCode.ACCOUNT_LOCKED,
                    f"Too many failed login attempts. Account is locked for "
                    f"{self.settings.lockout_minutes} minutes, until "
                    f"{updated.lockout_until:%Y-%m-%d %H:%M} UTC",
                    {"lockout_until": updated.lockout_until.isoformat()},
                )
            )

        remaining = updated.remaining_attempts(max_attempts)
        return Return.err(
            Error(
                ErrorCode.INVALID_CREDENTIALS,
                f"{INVALID_CREDENTIALS_MESSAGE}. Remaining attempts: {remaining}",
                {"remaining_attempts": remaining},
            )
        )

    @staticmethod
    def _locked_error(account: Account) -> Error:
        return Error(
            ErrorCode.ACCOUNT_LOCKED,
            f"Account is locked due to too many failed login attempts. "
            f"Try again after {account.lockout_until:%Y-%m-%d %H:%M} UTC",
            {"lockout_until": account.lockout_until.isoformat()},
        )
