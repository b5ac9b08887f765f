from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authcore.app.repositories.session_repository import ISessionRepository
from authcore.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        """
        Get session by refresh token digest.

        Revoked and expired sessions are returned too - the use case checks
        them so it can report the precise error. Bulk revocations bypass the
        identity map, so the row is always re-read.
        """
        stmt = (
            select(Session)
            .where(Session.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_account_id(self, account_id: UUID) -> List[Session]:
        """Get all sessions for an account"""
        stmt = (
            select(Session)
            .where(Session.account_id == account_id)
            .order_by(Session.created_at)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def revoke(
        self,
        token_hash: str,
        now: datetime,
        replaced_by_token_hash: Optional[str] = None,
    ) -> bool:
        """Revoke a session; the revoked_at IS NULL guard makes it a compare-and-set"""
        stmt = (
            update(Session)
            .where(Session.token_hash == token_hash, Session.revoked_at.is_(None))
            .values(revoked_at=now, replaced_by_token_hash=replaced_by_token_hash)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_all_by_account_id(self, account_id: UUID, now: datetime) -> int:
        """Revoke all unrevoked sessions for an account"""
        stmt = (
            update(Session)
            .where(Session.account_id == account_id, Session.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_by_account_id(self, account_id: UUID) -> int:
        """Delete all sessions for an account"""
        stmt = (
            delete(Session)
            .where(Session.account_id == account_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
