import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from pydantic import ValidationError

from authcore.app.services.auth_settings import AuthSettings
from authcore.app.services.token_signer import AccessTokenClaims, ITokenSigner
from authcore.domain.entities import Account

logger = logging.getLogger(__name__)

# 32 bytes -> 256 bits of entropy
REFRESH_SECRET_BYTES = 32


class JwtTokenSigner(ITokenSigner):
    """JWT (python-jose) access tokens; refresh secrets from the secrets module"""

    def __init__(self, settings: AuthSettings):
        self.settings = settings

    @property
    def expires_in_seconds(self) -> int:
        return self.settings.access_token_minutes * 60

    def issue_access_token(self, account: Account, now: Optional[datetime] = None) -> str:
        """
        Generate JWT access token

        Args:
            account: Account the token is issued to
            now: Issue time (naive UTC or aware); defaults to the current time

        Returns:
            JWT token string carrying sub, username, role, iat, exp
            (and iss/aud when configured)
        """
        now = _as_aware(now) if now else datetime.now(UTC)
        payload = {
            "sub": str(account.id),
            "username": account.username,
            "role": account.role.value,
            "iat": now,
            "exp": now + timedelta(minutes=self.settings.access_token_minutes),
        }
        if self.settings.jwt_issuer:
            payload["iss"] = self.settings.jwt_issuer
        if self.settings.jwt_audience:
            payload["aud"] = self.settings.jwt_audience
        return jwt.encode(
            payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm
        )

    def issue_refresh_secret(self) -> str:
        return secrets.token_urlsafe(REFRESH_SECRET_BYTES)

    def verify_access_token(self, token: str) -> Optional[AccessTokenClaims]:
        """
        Verify and decode JWT token

        Args:
            token: JWT token string

        Returns:
            AccessTokenClaims, or None if the token is invalid, expired,
            issued for another issuer/audience, or malformed
        """
        if not token or not isinstance(token, str):
            return None

        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                audience=self.settings.jwt_audience,
                issuer=self.settings.jwt_issuer,
            )
            return AccessTokenClaims(
                account_id=payload["sub"],
                username=payload["username"],
                role=payload["role"],
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (JWTError, KeyError, TypeError, ValueError, ValidationError) as exc:
            logger.debug(f"Access token rejected: {type(exc).__name__}")
            return None


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
