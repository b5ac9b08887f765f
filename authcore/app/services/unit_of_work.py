from abc import ABC, abstractmethod

from authcore.app.repositories.account_repository import IAccountRepository
from authcore.app.repositories.session_repository import ISessionRepository


class UnitOfWork(ABC):
    """
    Abstract UnitOfWork - defines repository access and transaction management.

    Leaving the ``async with`` block without ``commit()`` rolls back.
    Persistence faults surface as RepositoryError.
    """

    # Repository properties (initialized in __aenter__)
    accounts: IAccountRepository
    sessions: ISessionRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
