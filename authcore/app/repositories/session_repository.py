from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from authcore.domain.entities import Session


class ISessionRepository(ABC):
    """Session (refresh token) repository interface - application layer"""

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        """Get session by refresh token digest"""
        pass

    @abstractmethod
    async def get_by_account_id(self, account_id: UUID) -> List[Session]:
        """Get all sessions for an account"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def revoke(
        self,
        token_hash: str,
        now: datetime,
        replaced_by_token_hash: Optional[str] = None,
    ) -> bool:
        """
        Revoke a session if it is not revoked yet.

        Returns True only for the call that performed the revocation, so
        concurrent callers racing on one token see exactly one winner.
        """
        pass

    @abstractmethod
    async def revoke_all_by_account_id(self, account_id: UUID, now: datetime) -> int:
        """Revoke all unrevoked sessions for an account. Returns count of revoked sessions."""
        pass

    @abstractmethod
    async def delete_by_account_id(self, account_id: UUID) -> int:
        """Delete all sessions for an account. Returns count."""
        pass
