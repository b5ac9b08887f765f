from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from authcore.domain.entities import Account, AccountRole


class AccessTokenClaims(BaseModel):
    """Verified content of an access token"""

    account_id: UUID
    username: str
    role: AccountRole
    issued_at: datetime
    expires_at: datetime


class ITokenSigner(ABC):
    """Access token issuance/verification and refresh secret generation"""

    @property
    @abstractmethod
    def expires_in_seconds(self) -> int:
        """Lifetime of issued access tokens"""
        pass

    @abstractmethod
    def issue_access_token(self, account: Account, now: Optional[datetime] = None) -> str:
        """Sign a short-lived access token for the account (stateless, never persisted)"""
        pass

    @abstractmethod
    def issue_refresh_secret(self) -> str:
        """Fresh high-entropy opaque refresh secret"""
        pass

    @abstractmethod
    def verify_access_token(self, token: str) -> Optional[AccessTokenClaims]:
        """Verified claims, or None for any invalid/expired/malformed token. Never raises."""
        pass
