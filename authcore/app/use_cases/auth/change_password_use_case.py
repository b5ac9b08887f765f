"""
Change Password Use Case

Replaces an account's password and signs it out everywhere.
"""

import logging
from uuid import UUID

from authcore.app.services.password_hasher import IPasswordHasher
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.domain.base import Clock, utc_now
from authcore.libs.result import Error, Result, Return
from .errors import ErrorCode
from .password_policy import validate_password

logger = logging.getLogger(__name__)


class ChangePasswordUseCase:
    """
    Use case for changing the password of an authenticated account.

    Business Rules:
    - Current password must match the stored hash
    - New password must meet complexity requirements and differ from the current one
    - Password is hashed with bcrypt
    - All sessions of the account are revoked, forcing re-authentication
    """

    def __init__(self, uow: UnitOfWork, hasher: IPasswordHasher, clock: Clock = utc_now):
        self.uow = uow
        self.hasher = hasher
        self.clock = clock

    async def execute(
        self, account_id: UUID, current_password: str, new_password: str
    ) -> Result[None]:
        """
        Execute change password use case.

        Errors (checked in this order):
            - NOT_FOUND: Account does not exist
            - INVALID_CREDENTIALS: Current password is wrong
            - VALIDATION_ERROR: New password fails the policy or equals the current one
        """
        async with self.uow:
            now = self.clock()
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error(ErrorCode.NOT_FOUND, "Account not found"))

            if not current_password or not self.hasher.verify(
                current_password, account.password_hash
            ):
                return Return.err(
                    Error(ErrorCode.INVALID_CREDENTIALS, "Current password is incorrect")
                )

            password_validation = validate_password(new_password)
            if password_validation.is_err():
                return Return.err(password_validation.error)

            if new_password == current_password:
                return Return.err(
                    Error(
                        ErrorCode.VALIDATION_ERROR,
                        "New password must be different from the current password",
                    )
                )

            account.update_password(self.hasher.hash(new_password), now)
            await self.uow.accounts.update(account)

            revoked_count = await self.uow.sessions.revoke_all_by_account_id(account.id, now)

            await self.uow.commit()

            logger.info(
                f"Account {account.id} changed password; revoked {revoked_count} session(s)"
            )
            return Return.ok(None)
