"""
Session Entity

Stores refresh tokens for authentication.
"""

import hashlib
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authcore.domain.base import utc_now
from authcore.domain.exceptions import InvalidInputError, SessionAlreadyRevokedError


class Session(SQLModel, table=True):
    """
    Session entity - one refresh token issued to one account.

    Business Rules:
    - Refresh tokens are stored as SHA-256 digests, never in clear
    - Active iff not revoked and not yet expired
    - Revocation is terminal; revoking twice raises
    - Rotation revokes the old session and points it at its successor
      through replaced_by_token_hash
    - ip_address / user_agent are informational only
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    account_id: UUID = Field(
        foreign_key="accounts.id", nullable=False, index=True, ondelete="CASCADE"
    )

    token_hash: str = Field(unique=True, index=True, max_length=64)  # SHA-256 hex
    replaced_by_token_hash: Optional[str] = Field(default=None, max_length=64)

    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_account_revoked", "account_id", "revoked_at"),
    )

    @staticmethod
    def hash_token(refresh_token: str) -> str:
        """Digest under which a refresh secret is stored and looked up"""
        return hashlib.sha256(refresh_token.encode()).hexdigest()

    @classmethod
    def create(
        cls,
        account_id: UUID,
        refresh_token: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Session":
        """
        Factory for a new active session holding the digest of refresh_token.

        Raises:
            InvalidInputError: missing account, empty token, or expires_at
                not after the creation time
        """
        if account_id is None:
            raise InvalidInputError("Session must belong to an account")
        if not refresh_token:
            raise InvalidInputError("Refresh token must not be empty")

        now = now or utc_now()
        if expires_at <= now:
            raise InvalidInputError("Session expiry must be in the future")

        return cls(
            account_id=account_id,
            token_hash=cls.hash_token(refresh_token),
            ip_address=ip_address or None,
            user_agent=user_agent or None,
            created_at=now,
            expires_at=expires_at,
        )

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        return now >= self.expires_at

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return not self.is_revoked and not self.is_expired(now)

    def revoke(
        self,
        replaced_by_token_hash: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Mark the session revoked, optionally recording its rotation successor.

        Raises:
            SessionAlreadyRevokedError: the session was revoked before
        """
        if self.revoked_at is not None:
            raise SessionAlreadyRevokedError(f"Session {self.id} is already revoked")
        self.revoked_at = now or utc_now()
        self.replaced_by_token_hash = replaced_by_token_hash
