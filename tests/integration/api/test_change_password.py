import pytest
from httpx import AsyncClient

PASSWORD = "SecurePass123!"
NEW_PASSWORD = "EvenBetter456?"


@pytest.mark.asyncio
async def test_change_password_signs_out_everywhere(client: AsyncClient, login, refresh_cookie):
    first = await login(client, "alice")
    second = await login(client, "alice")
    headers = {"Authorization": f"Bearer {first.json()['access_token']}"}

    response = await client.post(
        "/auth/change-password",
        json={"current_password": PASSWORD, "new_password": NEW_PASSWORD},
        headers=headers,
    )

    assert response.status_code == 200
    for login_response in (first, second):
        old = refresh_cookie(login_response).value
        refresh = await client.post("/auth/refresh", json={"refresh_token": old})
        assert refresh.status_code == 401
        assert refresh.json()["error"]["code"] == "TOKEN_REVOKED"

    relogin = await client.post(
        "/auth/login", json={"username": "alice", "password": NEW_PASSWORD}
    )
    assert relogin.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client: AsyncClient, alice_headers):
    response = await client.post(
        "/auth/change-password",
        json={"current_password": "WrongPass123!", "new_password": NEW_PASSWORD},
        headers=alice_headers,
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_change_password_policy(client: AsyncClient, alice_headers):
    response = await client.post(
        "/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "weak"},
        headers=alice_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_change_password_requires_token(client: AsyncClient):
    response = await client.post(
        "/auth/change-password",
        json={"current_password": PASSWORD, "new_password": NEW_PASSWORD},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"
