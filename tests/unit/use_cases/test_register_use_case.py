from uuid import uuid4

import pytest

from authcore.app.repositories.errors import DuplicateAccountError
from authcore.app.use_cases.auth import ErrorCode, RegisterCommand, RegisterUseCase
from authcore.domain.entities import AccountRole


def _command(**overrides) -> RegisterCommand:
    data = dict(
        username="bob.smith",
        email="Bob@Example.com",
        password="SecurePass123!",
        role="Manager",
    )
    data.update(overrides)
    return RegisterCommand(**data)


@pytest.mark.asyncio
async def test_register_creates_active_account(mock_uow, hasher, clock):
    employee_id = uuid4()

    result = await RegisterUseCase(mock_uow, hasher, clock).execute(
        _command(employee_id=employee_id)
    )

    assert result.is_ok()
    view = result.value
    assert view.username == "bob.smith"
    assert view.email == "bob@example.com"
    assert view.role == "Manager"
    assert view.is_active is True
    assert view.employee_id == employee_id
    assert not hasattr(view, "password_hash")

    account = mock_uow.accounts.create.call_args.args[0]
    assert account.role == AccountRole.manager
    assert hasher.verify("SecurePass123!", account.password_hash)
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"username": "ab"},
        {"username": "has space"},
        {"email": "not-an-email"},
        {"password": "weakpass"},
        {"role": "Owner"},
    ],
)
async def test_register_validation(mock_uow, hasher, overrides):
    result = await RegisterUseCase(mock_uow, hasher).execute(_command(**overrides))

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    mock_uow.accounts.create.assert_not_called()


@pytest.mark.asyncio
async def test_register_duplicate_username(mock_uow, hasher):
    mock_uow.accounts.username_exists.return_value = True

    result = await RegisterUseCase(mock_uow, hasher).execute(_command())

    assert result.error.code == ErrorCode.USERNAME_TAKEN


@pytest.mark.asyncio
async def test_register_duplicate_email(mock_uow, hasher):
    mock_uow.accounts.email_exists.return_value = True

    result = await RegisterUseCase(mock_uow, hasher).execute(_command())

    assert result.error.code == ErrorCode.EMAIL_TAKEN
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, code",
    [("username", ErrorCode.USERNAME_TAKEN), ("email", ErrorCode.EMAIL_TAKEN)],
)
async def test_register_losing_insert_race(mock_uow, hasher, field, code):
    # Both existence checks pass; a concurrent registration wins the insert
    mock_uow.accounts.create.side_effect = DuplicateAccountError(field)

    result = await RegisterUseCase(mock_uow, hasher).execute(_command())

    assert result.error.code == code
    mock_uow.commit.assert_not_called()
