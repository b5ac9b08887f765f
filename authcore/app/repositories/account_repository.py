from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from authcore.domain.entities import Account


class IAccountRepository(ABC):
    """Account repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get account by ID"""
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[Account]:
        """Get account by username"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email (normalized before lookup)"""
        pass

    @abstractmethod
    async def list_all(self) -> List[Account]:
        """List all accounts, oldest first"""
        pass

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Create a new account"""
        pass

    @abstractmethod
    async def update(self, account: Account) -> Account:
        """Update existing account"""
        pass

    @abstractmethod
    async def delete(self, account_id: UUID) -> bool:
        """Delete an account. Returns True if it existed."""
        pass

    @abstractmethod
    async def username_exists(self, username: str) -> bool:
        """Check whether a username is taken"""
        pass

    @abstractmethod
    async def email_exists(self, email: str) -> bool:
        """Check whether a (normalized) email is taken"""
        pass

    @abstractmethod
    async def register_failed_login(
        self,
        account_id: UUID,
        max_attempts: int,
        lockout_until: datetime,
        now: datetime,
    ) -> Optional[Account]:
        """
        Atomically count one failed login.

        Increments failed_login_attempts in a single write; when the new count
        reaches max_attempts and no lockout is running, sets lockout_until.
        Returns the account as stored after the write, or None if missing.
        """
        pass
