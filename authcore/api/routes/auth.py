from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from authcore.api.error import raise_for_error
from authcore.app.services.auth_service import AuthService
from authcore.app.services.token_signer import AccessTokenClaims
from authcore.app.use_cases.auth import AccountView, LoginResult
from authcore.depends import get_auth_service, get_current_account, require_admin
from authcore.domain.base import utc_now

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _cookie_path() -> str:
    return f"{ApplicationConfig.API_PREFIX}/auth"


def _set_refresh_cookie(response: Response, result: LoginResult) -> None:
    max_age = int((result.refresh_token_expires_at - utc_now()).total_seconds())
    response.set_cookie(
        key=ApplicationConfig.REFRESH_COOKIE_NAME,
        value=result.refresh_token,
        max_age=max(max_age, 0),
        path=_cookie_path(),
        httponly=True,
        secure=ApplicationConfig.REFRESH_COOKIE_SECURE,
        samesite="strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=ApplicationConfig.REFRESH_COOKIE_NAME,
        path=_cookie_path(),
        httponly=True,
        secure=ApplicationConfig.REFRESH_COOKIE_SECURE,
        samesite="strict",
    )


def _client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    username: str = Field(..., description="Account username")
    password: str = Field(..., description="Account password")
    remember_me: bool = Field(False, description="Issue a longer-lived refresh session")


class LoginResponse(BaseModel):
    """Login/refresh response payload; the refresh token travels in a cookie"""

    access_token: str
    token_type: str
    expires_in: int
    account: AccountView


def _login_response(response: Response, result: LoginResult) -> LoginResponse:
    _set_refresh_cookie(response, result)
    return LoginResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in,
        account=result.account,
    )


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    """
    Account Login

    Verifies credentials, returns a bearer access token and sets the
    refresh token cookie.

    Raises:
        - 400 Bad Request: Missing username or password
        - 401 Unauthorized: Invalid credentials
        - 403 Forbidden: Account disabled
        - 423 Locked: Too many failed attempts
        - 503 Service Unavailable: Storage failure
    """
    ip_address, user_agent = _client_info(request)
    result = await service.login(
        body.username, body.password, ip_address, user_agent, body.remember_me
    )

    if result.is_err():
        raise_for_error(result.error)

    return _login_response(response, result.value)


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    Optional: the refresh token cookie is used when absent.
    """

    refresh_token: Optional[str] = Field(None, description="Refresh token")


def _refresh_token_from(request: Request, body: Optional[RefreshRequest]) -> str:
    if body is not None and body.refresh_token:
        return body.refresh_token
    return request.cookies.get(ApplicationConfig.REFRESH_COOKIE_NAME, "")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Refresh Access Token

    Rotates the refresh token: the presented one is revoked and a new one
    is set in the cookie.

    Raises:
        - 400 Bad Request: No refresh token presented
        - 401 Unauthorized: Unknown, expired or revoked refresh token
        - 403 Forbidden: Account disabled
    """
    ip_address, user_agent = _client_info(request)
    result = await service.refresh(_refresh_token_from(request, body), ip_address, user_agent)

    if result.is_err():
        raise_for_error(result.error)

    return _login_response(response, result.value)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Logout

    Revokes the refresh token and clears the cookie. Always succeeds for
    unknown, expired or already revoked tokens.
    """
    result = await service.revoke(_refresh_token_from(request, body))

    if result.is_err():
        raise_for_error(result.error)

    _clear_refresh_cookie(response)
    return {"status": "logged_out"}


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


@router.post("/change-password", status_code=status.HTTP_200_OK)
async def change_password(
    body: ChangePasswordRequest,
    response: Response,
    claims: AccessTokenClaims = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """
    Change Password

    Replaces the password of the authenticated account and revokes all of
    its sessions.

    Raises:
        - 400 Bad Request: New password fails the password policy
        - 401 Unauthorized: Missing/invalid access token or wrong current password
        - 404 Not Found: Account no longer exists
    """
    result = await service.change_password(
        claims.account_id, body.current_password, body.new_password
    )

    if result.is_err():
        raise_for_error(result.error)

    _clear_refresh_cookie(response)
    return {"status": "password_changed"}


@router.get("/me", status_code=status.HTTP_200_OK, response_model=AccountView)
async def get_me(
    claims: AccessTokenClaims = Depends(get_current_account),
    service: AuthService = Depends(get_auth_service),
):
    """Current account, resolved from the access token"""
    result = await service.get_current_user(claims.account_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RegisterRequest(BaseModel):
    """Administrative registration payload"""

    username: str = Field(..., description="Unique username (3-50 chars)")
    email: str = Field(..., description="Unique email address")
    password: str = Field(..., description="Initial password")
    role: str = Field(..., description="Admin, Manager or Employee")
    employee_id: Optional[UUID] = Field(None, description="Linked employee profile")


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AccountView,
    dependencies=[Depends(require_admin)],
)
async def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """
    Register Account (Admin)

    Raises:
        - 400 Bad Request: Invalid username, email, password or role
        - 401 Unauthorized / 403 Forbidden: Caller is not an authenticated admin
        - 409 Conflict: USERNAME_TAKEN or EMAIL_TAKEN
    """
    result = await service.register(
        body.username, body.email, body.password, body.role, body.employee_id
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
