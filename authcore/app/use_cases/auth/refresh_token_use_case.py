"""
Refresh Token Use Case

Handles access token refresh with refresh token rotation for security.
"""

import logging
from typing import Optional

from authcore.app.services.auth_settings import AuthSettings
from authcore.app.services.token_signer import ITokenSigner
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import Clock, utc_now
from authcore.domain.entities import Session
from authcore.libs.result import Error, Result, Return
from .dtos import AccountView, LoginResult
from .errors import ErrorCode

logger = logging.getLogger(__name__)


class RefreshTokenUseCase:
    """
    Use case for refreshing access tokens.

    Business Rules:
    - Refresh token rotation: old session revoked, new session issued
    - The old session records its successor (replaced_by_token_hash)
    - Expired and revoked sessions are rejected with distinct errors
    - The revoke is conditional, so of two concurrent refreshes of one
      token exactly one wins; the loser gets TOKEN_REVOKED
    - Replaying a revoked token revokes every session of the account
      when reuse detection is enabled
    - The owning account must still be active
    """

    def __init__(
        self,
        uow: UnitOfWork,
        signer: ITokenSigner,
        settings: AuthSettings,
        clock: Clock = utc_now,
    ):
        self.uow = uow
        self.signer = signer
        self.settings = settings
        self.clock = clock

    async def execute(
        self,
        refresh_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[LoginResult]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: The refresh token to verify and rotate
            ip_address: Client IP (recorded on the new session only)
            user_agent: Client user agent (recorded on the new session only)

        Returns:
            Result with LoginResult containing new tokens, or Error
        """
        if not refresh_token:
            return Return.err(
                Error(ErrorCode.VALIDATION_ERROR, "Refresh token is required")
            )

        async with self.uow:
            now = self.clock()
            token_hash = Session.hash_token(refresh_token)
            session = await self.uow.sessions.get_by_token_hash(token_hash)

            if session is None:
                return Return.err(Error(ErrorCode.INVALID_TOKEN, "Invalid refresh token"))

            if session.is_expired(now):
                return Return.err(
                    Error(ErrorCode.TOKEN_EXPIRED, "Refresh token has expired. Please log in again")
                )

            if session.is_revoked:
                return await self._reject_replay(session, now)

            account = await self.uow.accounts.get_by_id(session.account_id)
            if account is None:
                return Return.err(Error(ErrorCode.INVALID_TOKEN, "Invalid refresh token"))

            if not account.is_active:
                return Return.err(Error(ErrorCode.ACCOUNT_DISABLED, "Account is disabled"))

            new_refresh_token = self.signer.issue_refresh_secret()
            new_session = Session.create(
                account_id=account.id,
                refresh_token=new_refresh_token,
                expires_at=now + self.settings.refresh_lifetime(),
                ip_address=ip_address,
                user_agent=user_agent,
                now=now,
            )

            # Compare-and-set on the old row: only one concurrent caller passes
            won = await self.uow.sessions.revoke(
                token_hash, now, replaced_by_token_hash=new_session.token_hash
            )
            if not won:
                logger.warning(f"Concurrent refresh lost the race on session {session.id}")
                return Return.err(
                    Error(ErrorCode.TOKEN_REVOKED, "Refresh token has been revoked. Please log in again")
                )

            await self.uow.sessions.create(new_session)

            # Revoke and create become visible together
            await self.uow.commit()

            return Return.ok(
                LoginResult(
                    access_token=self.signer.issue_access_token(account, now),
                    expires_in=self.signer.expires_in_seconds,
                    account=AccountView.from_account(account),
                    refresh_token=new_refresh_token,
                    refresh_token_expires_at=new_session.expires_at,
                )
            )

    async def _reject_replay(self, session: Session, now) -> Result[LoginResult]:
        if self.settings.reuse_detection:
            revoked = await self.uow.sessions.revoke_all_by_account_id(session.account_id, now)
            await self.uow.commit()
            logger.warning(
                f"Revoked refresh token replayed for account {session.account_id}; "
                f"revoked {revoked} remaining session(s)"
            )
        else:
            logger.warning(f"Revoked refresh token replayed for account {session.account_id}")

        return Return.err(
            Error(ErrorCode.TOKEN_REVOKED, "Refresh token has been revoked. Please log in again")
        )
