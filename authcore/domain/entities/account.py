"""
Account Entity

An authenticating principal: credentials, role and lockout state.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from authcore.domain.base import utc_now
from authcore.domain.exceptions import InvalidInputError
from .enums import AccountRole


def normalize_email(email: str) -> str:
    return email.strip().lower()


class Account(SQLModel, table=True):
    """
    Account entity - credentials, authorization role and lockout state.

    Business Rules:
    - Username and normalized email are unique
    - Password stored as bcrypt hash (work factor embedded in the hash)
    - Role is always one of Admin, Manager, Employee
    - Login is blocked only while lockout_until is in the future
    - Clearing lockout_until always resets failed_login_attempts to 0
    - State changes go through the transition methods below, which keep
      updated_at current
    """

    __tablename__ = "accounts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    role: AccountRole = Field(default=AccountRole.employee)
    is_active: bool = Field(default=True)

    # Lockout state
    failed_login_attempts: int = Field(default=0, ge=0)
    lockout_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Opaque reference to the employee profile record (not resolved here)
    employee_id: Optional[UUID] = Field(default=None, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utc_now, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_account_lockout_until", "lockout_until"),)

    @classmethod
    def create(
        cls,
        username: str,
        email: str,
        password_hash: str,
        role: AccountRole | str,
        employee_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> "Account":
        """
        Factory for a new, active, unlocked account.

        Raises:
            InvalidInputError: empty username/email/hash or unknown role
        """
        if not username or not username.strip():
            raise InvalidInputError("Username must not be empty")
        if not email or not email.strip():
            raise InvalidInputError("Email must not be empty")
        if not password_hash or not password_hash.strip():
            raise InvalidInputError("Password hash must not be empty")

        now = now or utc_now()
        return cls(
            username=username.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            role=_coerce_role(role),
            is_active=True,
            failed_login_attempts=0,
            lockout_until=None,
            employee_id=employee_id,
            created_at=now,
            updated_at=now,
        )

    def is_locked_out(self, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        return self.lockout_until is not None and self.lockout_until > now

    def has_expired_lockout(self, now: Optional[datetime] = None) -> bool:
        now = now or utc_now()
        return self.lockout_until is not None and self.lockout_until <= now

    def register_failed_login(
        self,
        max_attempts: int,
        lockout_duration: timedelta,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Count one failed login and lock once the threshold is reached.

        A lockout that is still running is not extended.

        Returns:
            True if the account is locked after this attempt
        """
        now = now or utc_now()
        self.failed_login_attempts += 1
        self.updated_at = now
        if self.failed_login_attempts >= max_attempts and not self.is_locked_out(now):
            self.lockout_until = now + lockout_duration
        return self.is_locked_out(now)

    def remaining_attempts(self, max_attempts: int) -> int:
        return max(max_attempts - self.failed_login_attempts, 0)

    def reset_failed_login_attempts(self, now: Optional[datetime] = None) -> None:
        self.failed_login_attempts = 0
        self.lockout_until = None
        self.updated_at = now or utc_now()

    def clear_expired_lockout(self, now: Optional[datetime] = None) -> bool:
        """Drop an elapsed lockout (and its counter). Returns True if anything changed."""
        now = now or utc_now()
        if not self.has_expired_lockout(now):
            return False
        self.reset_failed_login_attempts(now)
        return True

    def lock(self, duration: timedelta, now: Optional[datetime] = None) -> None:
        now = now or utc_now()
        self.lockout_until = now + duration
        self.updated_at = now

    def unlock(self, now: Optional[datetime] = None) -> None:
        self.reset_failed_login_attempts(now)

    def update_password(self, new_password_hash: str, now: Optional[datetime] = None) -> None:
        if not new_password_hash or not new_password_hash.strip():
            raise InvalidInputError("Password hash must not be empty")
        self.password_hash = new_password_hash
        self.updated_at = now or utc_now()

    def update_role(self, role: AccountRole | str, now: Optional[datetime] = None) -> None:
        self.role = _coerce_role(role)
        self.updated_at = now or utc_now()

    def update_email(self, email: str, now: Optional[datetime] = None) -> None:
        if not email or not email.strip():
            raise InvalidInputError("Email must not be empty")
        self.email = normalize_email(email)
        self.updated_at = now or utc_now()

    def activate(self, now: Optional[datetime] = None) -> None:
        self.is_active = True
        self.updated_at = now or utc_now()

    def deactivate(self, now: Optional[datetime] = None) -> None:
        self.is_active = False
        self.updated_at = now or utc_now()

    def associate_with_employee(
        self, employee_id: Optional[UUID], now: Optional[datetime] = None
    ) -> None:
        self.employee_id = employee_id
        self.updated_at = now or utc_now()


def _coerce_role(role: AccountRole | str) -> AccountRole:
    if isinstance(role, AccountRole):
        return role
    try:
        return AccountRole.parse(role)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc
