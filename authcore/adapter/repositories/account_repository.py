from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, case, delete, func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from authcore.app.repositories.account_repository import IAccountRepository
from authcore.app.repositories.errors import DuplicateAccountError
from authcore.domain.entities import Account, normalize_email


class AccountRepository(IAccountRepository):
    """Account repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, account_id: UUID) -> Optional[Account]:
        """Get account by ID"""
        stmt = select(Account).where(Account.id == account_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_username(self, username: str) -> Optional[Account]:
        """Get account by username"""
        stmt = select(Account).where(Account.username == username.strip())
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by normalized email"""
        stmt = select(Account).where(Account.email == normalize_email(email))
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_all(self) -> List[Account]:
        """List all accounts, oldest first"""
        stmt = select(Account).order_by(Account.created_at, Account.username)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, account: Account) -> Account:
        """Create a new account"""
        self.session.add(account)
        await self._flush()
        await self.session.refresh(account)
        return account

    async def update(self, account: Account) -> Account:
        """Update existing account"""
        self.session.add(account)
        await self._flush()
        await self.session.refresh(account)
        return account

    async def _flush(self):
        """Flush pending writes, naming the unique column a collision hit"""
        try:
            await self.session.flush()
        except IntegrityError as exc:
            message = str(exc.orig).lower()
            for field in ("username", "email"):
                if field in message:
                    raise DuplicateAccountError(field) from exc
            raise

    async def delete(self, account_id: UUID) -> bool:
        """Delete an account by ID"""
        stmt = delete(Account).where(Account.id == account_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def username_exists(self, username: str) -> bool:
        stmt = select(func.count()).select_from(Account).where(
            Account.username == username.strip()
        )
        result = await self.session.exec(stmt)
        return result.one() > 0

    async def email_exists(self, email: str) -> bool:
        stmt = select(func.count()).select_from(Account).where(
            Account.email == normalize_email(email)
        )
        result = await self.session.exec(stmt)
        return result.one() > 0

    async def register_failed_login(
        self,
        account_id: UUID,
        max_attempts: int,
        lockout_until: datetime,
        now: datetime,
    ) -> Optional[Account]:
        """
        Count a failed login with one UPDATE statement.

        SET expressions see the pre-update row, so concurrent failures each
        add exactly one and only the write that crosses the threshold while
        no lockout is running sets lockout_until.
        """
        new_count = Account.failed_login_attempts + 1
        lock_not_running = or_(
            Account.lockout_until.is_(None), Account.lockout_until <= now
        )
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(
                failed_login_attempts=new_count,
                lockout_until=case(
                    (and_(new_count >= max_attempts, lock_not_running), lockout_until),
                    else_=Account.lockout_until,
                ),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        await self.session.flush()

        reload = (
            select(Account)
            .where(Account.id == account_id)
            .execution_options(populate_existing=True)
        )
        reloaded = await self.session.exec(reload)
        return reloaded.one_or_none()
