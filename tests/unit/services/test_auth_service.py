import asyncio

import pytest

from authcore.adapter.repositories.in_memory import (
    InMemoryAccountRepository,
    InMemorySessionRepository,
)
from authcore.adapter.services.unit_of_work import InMemoryUnitOfWork
from authcore.app.repositories.errors import RepositoryError
from authcore.app.services.auth_service import AuthService
from authcore.app.use_cases.auth import ErrorCode
from authcore.domain.entities import Session

PASSWORD = "SecurePass123!"
NEW_PASSWORD = "EvenBetter456?"


async def _account(service, username="alice"):
    async with service.uow:
        return await service.uow.accounts.get_by_username(username)


@pytest.mark.asyncio
async def test_lockout_scenario(auth_service, clock):
    """Four misses count down, the fifth locks, the right password is refused until expiry"""
    remaining = []
    for _ in range(4):
        result = await auth_service.login("alice", "WrongPass123!")
        assert result.error.code == ErrorCode.INVALID_CREDENTIALS
        remaining.append(result.error.details["remaining_attempts"])

    assert remaining == [4, 3, 2, 1]

    fifth = await auth_service.login("alice", "WrongPass123!")
    assert fifth.error.code == ErrorCode.ACCOUNT_LOCKED
    assert "lockout_until" in fifth.error.details

    sixth = await auth_service.login("alice", PASSWORD)
    assert sixth.error.code == ErrorCode.ACCOUNT_LOCKED

    clock.advance(minutes=29)
    assert (await auth_service.login("alice", PASSWORD)).error.code == ErrorCode.ACCOUNT_LOCKED

    clock.advance(minutes=1)
    result = await auth_service.login("alice", PASSWORD)

    assert result.is_ok()
    account = await _account(auth_service)
    assert account.failed_login_attempts == 0
    assert account.lockout_until is None


@pytest.mark.asyncio
async def test_successful_login_resets_counter(auth_service):
    await auth_service.login("alice", "WrongPass123!")
    await auth_service.login("alice", "WrongPass123!")

    assert (await auth_service.login("alice", PASSWORD)).is_ok()

    result = await auth_service.login("alice", "WrongPass123!")
    assert result.error.details == {"remaining_attempts": 4}


@pytest.mark.asyncio
async def test_unknown_user_and_disabled_user(auth_service):
    unknown = await auth_service.login("mallory", PASSWORD)
    assert unknown.error.code == ErrorCode.INVALID_CREDENTIALS

    account = await _account(auth_service)
    account.deactivate()
    disabled = await auth_service.login("alice", PASSWORD)
    assert disabled.error.code == ErrorCode.ACCOUNT_DISABLED


@pytest.mark.asyncio
async def test_refresh_rotation_and_replay(auth_service, seeded_store):
    login = await auth_service.login("alice", PASSWORD, "10.0.0.1", "pytest")
    original = login.value.refresh_token

    rotated = await auth_service.refresh(original)
    assert rotated.is_ok()
    assert rotated.value.refresh_token != original

    replay = await auth_service.refresh(original)
    assert replay.error.code == ErrorCode.TOKEN_REVOKED

    # The successor still works and the chain is recorded
    assert (await auth_service.refresh(rotated.value.refresh_token)).is_ok()
    revoked = [s for s in seeded_store.sessions.values() if s.is_revoked]
    assert len(revoked) == 2
    assert all(s.replaced_by_token_hash for s in revoked)


@pytest.mark.asyncio
async def test_refresh_errors(auth_service, clock):
    assert (await auth_service.refresh("")).error.code == ErrorCode.VALIDATION_ERROR
    assert (await auth_service.refresh("never-issued")).error.code == ErrorCode.INVALID_TOKEN

    login = await auth_service.login("alice", PASSWORD)
    clock.advance(days=7)

    expired = await auth_service.refresh(login.value.refresh_token)
    assert expired.error.code == ErrorCode.TOKEN_EXPIRED


@pytest.mark.asyncio
async def test_remember_me_session_outlives_default(auth_service, clock):
    login = await auth_service.login("alice", PASSWORD, remember_me=True)
    clock.advance(days=10)

    assert (await auth_service.refresh(login.value.refresh_token)).is_ok()


@pytest.mark.asyncio
async def test_logout_is_idempotent(auth_service):
    login = await auth_service.login("alice", PASSWORD)
    token = login.value.refresh_token

    assert (await auth_service.revoke(token)).is_ok()
    assert (await auth_service.revoke(token)).is_ok()
    assert (await auth_service.revoke("never-issued")).is_ok()
    assert (await auth_service.refresh(token)).error.code == ErrorCode.TOKEN_REVOKED


@pytest.mark.asyncio
async def test_change_password_revokes_every_session(auth_service):
    first = await auth_service.login("alice", PASSWORD)
    second = await auth_service.login("alice", PASSWORD)
    account_id = first.value.account.id

    result = await auth_service.change_password(account_id, PASSWORD, NEW_PASSWORD)

    assert result.is_ok()
    for login in (first, second):
        refreshed = await auth_service.refresh(login.value.refresh_token)
        assert refreshed.error.code == ErrorCode.TOKEN_REVOKED
    assert (await auth_service.login("alice", PASSWORD)).error.code == ErrorCode.INVALID_CREDENTIALS
    assert (await auth_service.login("alice", NEW_PASSWORD)).is_ok()


@pytest.mark.asyncio
async def test_get_current_user(auth_service):
    login = await auth_service.login("alice", PASSWORD)

    result = await auth_service.get_current_user(login.value.account.id)

    assert result.value.username == "alice"
    assert result.value.role == "Employee"


@pytest.mark.asyncio
async def test_register_then_login(auth_service):
    registered = await auth_service.register("bob", "bob@example.com", PASSWORD, "Manager")
    duplicate = await auth_service.register("bob", "other@example.com", PASSWORD, "Manager")
    duplicate_email = await auth_service.register("bobby", "BOB@example.com", PASSWORD, "Manager")

    assert registered.value.role == "Manager"
    assert duplicate.error.code == ErrorCode.USERNAME_TAKEN
    assert duplicate_email.error.code == ErrorCode.EMAIL_TAKEN
    assert (await auth_service.login("bob", PASSWORD)).value.account.role == "Manager"


class _YieldingAccountRepository(InMemoryAccountRepository):
    async def register_failed_login(self, *args, **kwargs):
        await asyncio.sleep(0)
        return await super().register_failed_login(*args, **kwargs)


class _YieldingSessionRepository(InMemorySessionRepository):
    async def revoke(self, *args, **kwargs):
        await asyncio.sleep(0)
        return await super().revoke(*args, **kwargs)


class InterleavingUnitOfWork(InMemoryUnitOfWork):
    """Suspends before each atomic write, so every concurrent caller reads first"""

    async def __aenter__(self):
        await super().__aenter__()
        self.accounts = _YieldingAccountRepository(self.store)
        self.sessions = _YieldingSessionRepository(self.store)
        return self


@pytest.fixture
def interleaving_service(seeded_store, hasher, signer, settings, clock):
    return AuthService(InterleavingUnitOfWork(seeded_store), hasher, signer, settings, clock)


@pytest.mark.asyncio
async def test_concurrent_failed_logins_are_all_counted(interleaving_service):
    results = await asyncio.gather(
        *(interleaving_service.login("alice", "WrongPass123!") for _ in range(5))
    )

    account = await _account(interleaving_service)
    assert account.failed_login_attempts == 5
    assert account.lockout_until is not None

    codes = [r.error.code for r in results]
    assert codes.count(ErrorCode.ACCOUNT_LOCKED) == 1
    assert sorted(
        r.error.details["remaining_attempts"]
        for r in results
        if r.error.code == ErrorCode.INVALID_CREDENTIALS
    ) == [1, 2, 3, 4]


@pytest.mark.asyncio
async def test_concurrent_refresh_has_one_winner(interleaving_service, seeded_store):
    login = await interleaving_service.login("alice", PASSWORD)
    token = login.value.refresh_token

    results = await asyncio.gather(*(interleaving_service.refresh(token) for _ in range(5)))

    winners = [r for r in results if r.is_ok()]
    assert len(winners) == 1
    assert [r.error.code for r in results if r.is_err()] == [ErrorCode.TOKEN_REVOKED] * 4
    # original + exactly one child
    assert len(seeded_store.sessions) == 2
    original = seeded_store.sessions[Session.hash_token(token)]
    assert original.replaced_by_token_hash == Session.hash_token(winners[0].value.refresh_token)


@pytest.mark.asyncio
async def test_reuse_detection_revokes_the_family(seeded_store, settings, make_service):
    service = make_service(seeded_store, settings.model_copy(update={"reuse_detection": True}))
    login = await service.login("alice", PASSWORD)
    original = login.value.refresh_token
    rotated = await service.refresh(original)

    replay = await service.refresh(original)

    assert replay.error.code == ErrorCode.TOKEN_REVOKED
    follow_up = await service.refresh(rotated.value.refresh_token)
    assert follow_up.error.code == ErrorCode.TOKEN_REVOKED


@pytest.mark.asyncio
async def test_persistence_failure_is_classified(mock_uow, hasher, signer, settings, clock):
    mock_uow.accounts.get_by_username.side_effect = RepositoryError("disk I/O error")
    service = AuthService(mock_uow, hasher, signer, settings, clock)

    result = await service.login("alice", PASSWORD)

    assert result.error.code == ErrorCode.PERSISTENCE_ERROR
    assert "disk I/O error" not in result.error.message
