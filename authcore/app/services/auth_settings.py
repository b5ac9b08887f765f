from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field


class AuthSettings(BaseModel):
    """
    Authentication policy, built once at startup and passed in explicitly.

    The core never reads process configuration itself.
    """

    jwt_secret: str = Field(..., min_length=1)
    jwt_algorithm: str = "HS256"
    jwt_issuer: Optional[str] = None
    jwt_audience: Optional[str] = None

    access_token_minutes: int = Field(default=15, gt=0)
    refresh_token_days: int = Field(default=7, gt=0)
    max_failed_attempts: int = Field(default=5, gt=0)
    lockout_minutes: int = Field(default=30, gt=0)

    # Revoke every session of an account when a revoked refresh token is replayed
    reuse_detection: bool = False

    @property
    def lockout_duration(self) -> timedelta:
        return timedelta(minutes=self.lockout_minutes)

    def refresh_lifetime(self, remember_me: bool = False) -> timedelta:
        days = self.refresh_token_days * 2 if remember_me else self.refresh_token_days
        return timedelta(days=days)

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        return cls(
            jwt_secret=config.JWT_SECRET,
            jwt_algorithm=config.JWT_ALGORITHM,
            jwt_issuer=config.JWT_ISSUER or None,
            jwt_audience=config.JWT_AUDIENCE or None,
            access_token_minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES,
            refresh_token_days=config.REFRESH_TOKEN_EXPIRE_DAYS,
            max_failed_attempts=config.MAX_FAILED_LOGIN_ATTEMPTS,
            lockout_minutes=config.LOCKOUT_MINUTES,
            reuse_detection=config.REUSE_DETECTION,
        )
