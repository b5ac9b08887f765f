from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from authcore.adapter.repositories.in_memory import InMemoryStore
from authcore.adapter.services.bcrypt_password_hasher import BcryptPasswordHasher
from authcore.adapter.services.jwt_token_signer import JwtTokenSigner
from authcore.adapter.services.unit_of_work import InMemoryUnitOfWork
from authcore.app.services.auth_service import AuthService
from authcore.app.services.auth_settings import AuthSettings
from authcore.domain.entities import Account, AccountRole

PASSWORD = "SecurePass123!"


class FakeClock:
    """Controllable time source; call it to read, advance() to move forward"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def settings():
    return AuthSettings(
        jwt_secret="unit-test-secret",
        jwt_issuer="authcore",
        jwt_audience="authcore-clients",
    )


@pytest.fixture(scope="session")
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def signer(settings):
    return JwtTokenSigner(settings)


@pytest.fixture(scope="session")
def password_hash(hasher):
    return hasher.hash(PASSWORD)


@pytest.fixture
def make_account(password_hash, clock):
    def _make(username="alice", role=AccountRole.employee, **overrides):
        account = Account.create(
            username=username,
            email=f"{username}@example.com",
            password_hash=password_hash,
            role=role,
            now=clock(),
        )
        for field, value in overrides.items():
            setattr(account, field, value)
        return account

    return _make


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.accounts = MagicMock()
    uow.accounts.get_by_id = AsyncMock(return_value=None)
    uow.accounts.get_by_username = AsyncMock(return_value=None)
    uow.accounts.get_by_email = AsyncMock(return_value=None)
    uow.accounts.list_all = AsyncMock(return_value=[])
    uow.accounts.create = AsyncMock(side_effect=lambda account: account)
    uow.accounts.update = AsyncMock(side_effect=lambda account: account)
    uow.accounts.delete = AsyncMock(return_value=True)
    uow.accounts.username_exists = AsyncMock(return_value=False)
    uow.accounts.email_exists = AsyncMock(return_value=False)
    uow.accounts.register_failed_login = AsyncMock()

    uow.sessions = MagicMock()
    uow.sessions.get_by_token_hash = AsyncMock(return_value=None)
    uow.sessions.get_by_account_id = AsyncMock(return_value=[])
    uow.sessions.create = AsyncMock(side_effect=lambda session: session)
    uow.sessions.revoke = AsyncMock(return_value=True)
    uow.sessions.revoke_all_by_account_id = AsyncMock(return_value=0)
    uow.sessions.delete_by_account_id = AsyncMock(return_value=0)
    return uow


@pytest.fixture
def store():
    return InMemoryStore()


@pytest_asyncio.fixture
async def seeded_store(store, make_account):
    """In-memory store holding alice (Employee) and root (Admin)"""
    uow = InMemoryUnitOfWork(store)
    async with uow:
        await uow.accounts.create(make_account("alice"))
        await uow.accounts.create(make_account("root", role=AccountRole.admin))
        await uow.commit()
    return store


@pytest.fixture
def auth_service(seeded_store, hasher, signer, settings, clock):
    return AuthService(InMemoryUnitOfWork(seeded_store), hasher, signer, settings, clock)


@pytest.fixture
def make_service(hasher, signer, clock):
    """Build an AuthService over a store with non-default settings"""

    def _make(store, settings):
        return AuthService(
            InMemoryUnitOfWork(store), hasher, JwtTokenSigner(settings), settings, clock
        )

    return _make
