from functools import lru_cache
from typing import Optional

from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from authcore.adapter.services.bcrypt_password_hasher import BcryptPasswordHasher
from authcore.adapter.services.jwt_token_signer import JwtTokenSigner
from authcore.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authcore.api.error import ClientError
from authcore.app.services.auth_service import AuthService
from authcore.app.services.auth_settings import AuthSettings
from authcore.app.services.password_hasher import IPasswordHasher
from authcore.app.services.token_signer import AccessTokenClaims, ITokenSigner
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth import ErrorCode
from authcore.domain.entities import AccountRole
from authcore.libs.result import Error

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_auth_settings() -> AuthSettings:
    return AuthSettings.from_config(ApplicationConfig)


@lru_cache
def get_password_hasher() -> IPasswordHasher:
    return BcryptPasswordHasher(rounds=ApplicationConfig.BCRYPT_ROUNDS)


@lru_cache
def get_token_signer() -> ITokenSigner:
    return JwtTokenSigner(get_auth_settings())


async def get_auth_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: IPasswordHasher = Depends(get_password_hasher),
    signer: ITokenSigner = Depends(get_token_signer),
    settings: AuthSettings = Depends(get_auth_settings),
) -> AuthService:
    return AuthService(uow, hasher, signer, settings)


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    signer: ITokenSigner = Depends(get_token_signer),
) -> AccessTokenClaims:
    """
    Dependency to extract and verify the access token from the Authorization header.

    Returns:
        Verified claims carrying account_id, username and role

    Raises:
        ClientError: 401 if the header is missing or the token is invalid or expired
    """
    claims = signer.verify_access_token(credentials.credentials) if credentials else None

    if claims is None:
        raise ClientError(
            Error(ErrorCode.INVALID_TOKEN, "Invalid or expired access token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return claims


async def require_admin(
    claims: AccessTokenClaims = Depends(get_current_account),
) -> AccessTokenClaims:
    if claims.role != AccountRole.admin:
        raise ClientError(
            Error(ErrorCode.FORBIDDEN, "Administrator role required"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return claims
