"""
Register Use Case

Administrative creation of a new account.
"""

import logging

from authcore.app.repositories.errors import DuplicateAccountError
from authcore.app.services.password_hasher import IPasswordHasher
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import Clock, utc_now
from authcore.domain.entities import Account, AccountRole
from authcore.libs.result import Error, Result, Return
from .dtos import AccountView, RegisterCommand
from .errors import ErrorCode
from .password_policy import validate_email, validate_password, validate_username

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Register Use Case

    Command/Response Pattern:
    - Input: RegisterCommand (issued by an administrator)
    - Output: Result[AccountView]

    Business Logic:
    1. Validate username, email, password complexity and role
    2. Reject taken usernames and emails
    3. Hash password with bcrypt
    4. Create an active, unlocked Account
    """

    def __init__(self, uow: UnitOfWork, hasher: IPasswordHasher, clock: Clock = utc_now):
        self.uow = uow
        self.hasher = hasher
        self.clock = clock

    async def execute(self, command: RegisterCommand) -> Result[AccountView]:
        for check in (
            validate_username(command.username),
            validate_email(command.email),
            validate_password(command.password),
        ):
            if check.is_err():
                return Return.err(check.error)

        try:
            role = AccountRole.parse(command.role)
        except ValueError as exc:
            return Return.err(Error(ErrorCode.VALIDATION_ERROR, str(exc)))

        async with self.uow:
            if await self.uow.accounts.username_exists(command.username):
                return Return.err(_taken("username"))

            if await self.uow.accounts.email_exists(command.email):
                return Return.err(_taken("email"))

            account = Account.create(
                username=command.username,
                email=command.email,
                password_hash=self.hasher.hash(command.password),
                role=role,
                employee_id=command.employee_id,
                now=self.clock(),
            )
            try:
                account = await self.uow.accounts.create(account)
                await self.uow.commit()
            except DuplicateAccountError as exc:
                # Lost a race with a concurrent registration
                logger.warning(f"Registration of {command.username} collided on {exc.field}")
                return Return.err(_taken(exc.field))

            logger.info(f"Registered account {account.id} with role {role.value}")
            return Return.ok(AccountView.from_account(account))


def _taken(field: str) -> Error:
    if field == "username":
        return Error(ErrorCode.USERNAME_TAKEN, "Username is already in use")
    return Error(ErrorCode.EMAIL_TAKEN, "Email is already in use")
