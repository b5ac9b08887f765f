"""
In-memory repositories.

Reference implementation of the store contracts, used by unit tests and for
embedding the service without a database. All repositories of one
InMemoryStore share a single asyncio.Lock, so every call is atomic with
respect to every other call; writes apply immediately (no rollback).
"""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from authcore.app.repositories.account_repository import IAccountRepository
from authcore.app.repositories.errors import DuplicateAccountError, RepositoryError
from authcore.app.repositories.session_repository import ISessionRepository
from authcore.domain.entities import Account, Session, normalize_email
from authcore.domain.exceptions import SessionAlreadyRevokedError


class InMemoryStore:
    """Shared state behind the in-memory repositories"""

    def __init__(self):
        self.accounts: Dict[UUID, Account] = {}
        self.sessions: Dict[str, Session] = {}  # keyed by token_hash
        self.lock = asyncio.Lock()


class InMemoryAccountRepository(IAccountRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        async with self.store.lock:
            return self.store.accounts.get(account_id)

    async def get_by_username(self, username: str) -> Optional[Account]:
        username = username.strip()
        async with self.store.lock:
            return next(
                (a for a in self.store.accounts.values() if a.username == username),
                None,
            )

    async def get_by_email(self, email: str) -> Optional[Account]:
        email = normalize_email(email)
        async with self.store.lock:
            return next(
                (a for a in self.store.accounts.values() if a.email == email), None
            )

    async def list_all(self) -> List[Account]:
        async with self.store.lock:
            return sorted(
                self.store.accounts.values(), key=lambda a: (a.created_at, a.username)
            )

    async def create(self, account: Account) -> Account:
        async with self.store.lock:
            for existing in self.store.accounts.values():
                if existing.username == account.username:
                    raise DuplicateAccountError("username")
                if existing.email == account.email:
                    raise DuplicateAccountError("email")
            self.store.accounts[account.id] = account
            return account

    async def update(self, account: Account) -> Account:
        async with self.store.lock:
            if account.id not in self.store.accounts:
                raise RepositoryError(f"account {account.id} does not exist")
            for existing in self.store.accounts.values():
                if existing.id != account.id and existing.email == account.email:
                    raise DuplicateAccountError("email")
            self.store.accounts[account.id] = account
            return account

    async def delete(self, account_id: UUID) -> bool:
        async with self.store.lock:
            return self.store.accounts.pop(account_id, None) is not None

    async def username_exists(self, username: str) -> bool:
        return await self.get_by_username(username) is not None

    async def email_exists(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def register_failed_login(
        self,
        account_id: UUID,
        max_attempts: int,
        lockout_until: datetime,
        now: datetime,
    ) -> Optional[Account]:
        async with self.store.lock:
            account = self.store.accounts.get(account_id)
            if account is None:
                return None
            account.register_failed_login(max_attempts, lockout_until - now, now)
            return account


class InMemorySessionRepository(ISessionRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        async with self.store.lock:
            return self.store.sessions.get(token_hash)

    async def get_by_account_id(self, account_id: UUID) -> List[Session]:
        async with self.store.lock:
            return sorted(
                (s for s in self.store.sessions.values() if s.account_id == account_id),
                key=lambda s: s.created_at,
            )

    async def create(self, session: Session) -> Session:
        async with self.store.lock:
            if session.token_hash in self.store.sessions:
                raise RepositoryError("refresh token already exists")
            self.store.sessions[session.token_hash] = session
            return session

    async def revoke(
        self,
        token_hash: str,
        now: datetime,
        replaced_by_token_hash: Optional[str] = None,
    ) -> bool:
        async with self.store.lock:
            session = self.store.sessions.get(token_hash)
            if session is None:
                return False
            try:
                session.revoke(replaced_by_token_hash, now)
            except SessionAlreadyRevokedError:
                return False
            return True

    async def revoke_all_by_account_id(self, account_id: UUID, now: datetime) -> int:
        async with self.store.lock:
            count = 0
            for session in self.store.sessions.values():
                if session.account_id == account_id and not session.is_revoked:
                    session.revoke(now=now)
                    count += 1
            return count

    async def delete_by_account_id(self, account_id: UUID) -> int:
        async with self.store.lock:
            doomed = [
                token_hash
                for token_hash, session in self.store.sessions.items()
                if session.account_id == account_id
            ]
            for token_hash in doomed:
                del self.store.sessions[token_hash]
            return len(doomed)
