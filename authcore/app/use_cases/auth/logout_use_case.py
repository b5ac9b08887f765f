"""
Logout Use Case

Revokes a refresh token. Never fails visibly.
"""

import logging

from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import Clock, utc_now
from authcore.domain.entities import Session
from authcore.libs.result import Result, Return

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Use case for revoking a refresh token on logout.

    Business Rules:
    - Idempotent: unknown, already revoked or expired tokens still succeed
    - An active session is revoked without a replacement pointer
    """

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now):
        self.uow = uow
        self.clock = clock

    async def execute(self, refresh_token: str) -> Result[None]:
        if not refresh_token:
            return Return.ok(None)

        async with self.uow:
            now = self.clock()
            token_hash = Session.hash_token(refresh_token)
            session = await self.uow.sessions.get_by_token_hash(token_hash)

            if session is None or not session.is_active(now):
                return Return.ok(None)

            if await self.uow.sessions.revoke(token_hash, now):
                await self.uow.commit()
                logger.info(f"Session {session.id} revoked on logout")

            return Return.ok(None)
