from http.cookies import SimpleCookie

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from authcore.adapter.services.bcrypt_password_hasher import BcryptPasswordHasher
from authcore.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authcore.depends import get_password_hasher, get_unit_of_work
from authcore.domain.entities import Account, AccountRole

PASSWORD = "SecurePass123!"

# Minimum bcrypt cost keeps the suite fast
test_hasher = BcryptPasswordHasher(rounds=4)


def _refresh_cookie(response):
    for header in response.headers.get_list("set-cookie"):
        cookie = SimpleCookie(header)
        if "refresh_token" in cookie:
            return cookie["refresh_token"]
    return None


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def accounts(db_session):
    """Seed root (Admin), alice (Employee) and carol (disabled Manager); maps username to id"""
    seeded = {
        username: Account.create(
            username, f"{username}@example.com", test_hasher.hash(PASSWORD), role
        )
        for username, role in (
            ("root", AccountRole.admin),
            ("alice", AccountRole.employee),
            ("carol", AccountRole.manager),
        )
    }
    seeded["carol"].deactivate()
    db_session.add_all(seeded.values())
    await db_session.commit()
    # Plain ids: ORM instances expire when a request rolls its unit of work back
    return {username: account.id for username, account in seeded.items()}


@pytest_asyncio.fixture
async def client(db_session, accounts):
    from httpx import ASGITransport
    from authcore.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_password_hasher] = lambda: test_hasher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(client, username):
    response = await client.post(
        "/auth/login", json={"username": username, "password": PASSWORD}
    )
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def login():
    return _login


@pytest_asyncio.fixture
async def admin_headers(client):
    response = await _login(client, "root")
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def alice_headers(client):
    response = await _login(client, "alice")
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def refresh_cookie():
    """Read the refresh token morsel from a response's Set-Cookie headers"""
    return _refresh_cookie
