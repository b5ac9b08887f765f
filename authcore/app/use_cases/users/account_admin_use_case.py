"""
Account Administration Use Case

Administrative management of existing accounts.
"""

import logging
from typing import List
from uuid import UUID

from authcore.app.repositories.errors import DuplicateAccountError
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth.dtos import AccountView, UpdateAccountCommand
from authcore.app.use_cases.auth.errors import ErrorCode
from authcore.app.use_cases.auth.password_policy import validate_email
from authcore.domain.base import Clock, utc_now
from authcore.domain.entities import AccountRole, normalize_email
from authcore.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


def _not_found() -> Error:
    return Error(ErrorCode.NOT_FOUND, "Account not found")


class AccountAdminUseCase:
    """
    Use case for administering accounts.

    Business Rules:
    - Email stays unique across accounts
    - Deactivating an account revokes all of its sessions
    - Deleting an account removes its sessions first
    - Unlocking clears the lockout and the failed-attempt counter
    """

    def __init__(self, uow: UnitOfWork, clock: Clock = utc_now):
        self.uow = uow
        self.clock = clock

    async def list_accounts(self) -> Result[List[AccountView]]:
        async with self.uow:
            accounts = await self.uow.accounts.list_all()
            return Return.ok([AccountView.from_account(a) for a in accounts])

    async def get_account(self, account_id: UUID) -> Result[AccountView]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(_not_found())
            return Return.ok(AccountView.from_account(account))

    async def update_account(
        self, account_id: UUID, command: UpdateAccountCommand
    ) -> Result[AccountView]:
        """
        Replace email, role, active flag and employee link of an account.

        Errors:
            - NOT_FOUND: Account does not exist
            - VALIDATION_ERROR: Invalid email or role
            - EMAIL_TAKEN: Email belongs to another account
        """
        email_validation = validate_email(command.email)
        if email_validation.is_err():
            return Return.err(email_validation.error)

        try:
            role = AccountRole.parse(command.role)
        except ValueError as exc:
            return Return.err(Error(ErrorCode.VALIDATION_ERROR, str(exc)))

        async with self.uow:
            now = self.clock()
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(_not_found())

            if normalize_email(command.email) != account.email:
                holder = await self.uow.accounts.get_by_email(command.email)
                if holder is not None and holder.id != account.id:
                    return Return.err(
                        Error(ErrorCode.EMAIL_TAKEN, "Email is already in use")
                    )
                account.update_email(command.email, now)

            if role != account.role:
                account.update_role(role, now)

            if command.employee_id != account.employee_id:
                account.associate_with_employee(command.employee_id, now)

            deactivated = account.is_active and not command.is_active
            if command.is_active:
                account.activate(now)
            else:
                account.deactivate(now)

            try:
                account = await self.uow.accounts.update(account)
            except DuplicateAccountError:
                return Return.err(Error(ErrorCode.EMAIL_TAKEN, "Email is already in use"))

            if deactivated:
                revoked = await self.uow.sessions.revoke_all_by_account_id(account.id, now)
                logger.info(
                    f"Account {account.id} deactivated; revoked {revoked} session(s)"
                )

            await self.uow.commit()
            return Return.ok(AccountView.from_account(account))

    async def delete_account(self, account_id: UUID) -> Result[None]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(_not_found())

            removed = await self.uow.sessions.delete_by_account_id(account_id)
            await self.uow.accounts.delete(account_id)
            await self.uow.commit()

            logger.info(f"Account {account_id} deleted with {removed} session(s)")
            return Return.ok(None)

    async def unlock_account(self, account_id: UUID) -> Result[AccountView]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(_not_found())

            account.unlock(self.clock())
            account = await self.uow.accounts.update(account)
            await self.uow.commit()

            logger.info(f"Account {account_id} unlocked by administrator")
            return Return.ok(AccountView.from_account(account))

    async def revoke_sessions(self, account_id: UUID) -> Result[int]:
        """Revoke every active session of an account. Returns the revoked count."""
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(_not_found())

            count = await self.uow.sessions.revoke_all_by_account_id(account_id, self.clock())
            await self.uow.commit()

            logger.info(f"Revoked {count} session(s) of account {account_id}")
            return Return.ok(count)
