from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from authcore.adapter.repositories.account_repository import AccountRepository
from authcore.adapter.repositories.in_memory import (
    InMemoryAccountRepository,
    InMemorySessionRepository,
    InMemoryStore,
)
from authcore.adapter.repositories.session_repository import SessionRepository
from authcore.app.repositories.errors import RepositoryError
from authcore.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy implementation of UnitOfWork pattern"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aenter__(self):
        # Initialize all repositories with the session
        self.accounts = AccountRepository(self.session)
        self.sessions = SessionRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.rollback()
        if exc is not None and isinstance(exc, SQLAlchemyError):
            raise RepositoryError(f"{type(exc).__name__} during unit of work") from exc
        return False

    async def commit(self):
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise RepositoryError(f"{type(exc).__name__} on commit") from exc

    async def rollback(self):
        await self.session.rollback()


class InMemoryUnitOfWork(UnitOfWork):
    """UnitOfWork over an InMemoryStore; writes are visible immediately"""

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store or InMemoryStore()
        self.committed = False

    async def __aenter__(self):
        self.accounts = InMemoryAccountRepository(self.store)
        self.sessions = InMemorySessionRepository(self.store)
        self.committed = False
        return self

    async def __aexit__(self, *args):
        return False

    async def commit(self):
        self.committed = True

    async def rollback(self):
        pass
