from uuid import UUID

from authcore.app.services.unit_of_work import UnitOfWork
from authcore.libs.result import Error, Result, Return
from .dtos import AccountView
from .errors import ErrorCode


class GetCurrentAccountUseCase:
    """Read the public view of the authenticated account. No state changes."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, account_id: UUID) -> Result[AccountView]:
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None:
                return Return.err(Error(ErrorCode.NOT_FOUND, "Account not found"))
            return Return.ok(AccountView.from_account(account))
