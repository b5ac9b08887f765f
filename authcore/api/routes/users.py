"""
Account Administration Routes

All endpoints require an access token carrying the Admin role.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from authcore.api.error import raise_for_error
from authcore.app.services.unit_of_work import UnitOfWork
from authcore.app.use_cases.auth import AccountView, UpdateAccountCommand
from authcore.app.use_cases.users import AccountAdminUseCase
from authcore.depends import get_unit_of_work, require_admin

router = APIRouter(
    prefix="/users", tags=["Users"], dependencies=[Depends(require_admin)]
)


class UpdateAccountRequest(BaseModel):
    email: str = Field(..., description="Account email")
    role: str = Field(..., description="Admin, Manager or Employee")
    is_active: bool = Field(..., description="Whether the account may log in")
    employee_id: Optional[UUID] = Field(None, description="Linked employee profile")


class RevokeSessionsResponse(BaseModel):
    account_id: UUID
    revoked_count: int


@router.get("", status_code=status.HTTP_200_OK, response_model=List[AccountView])
async def list_accounts(uow: UnitOfWork = Depends(get_unit_of_work)):
    result = await AccountAdminUseCase(uow).list_accounts()

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{account_id}", status_code=status.HTTP_200_OK, response_model=AccountView)
async def get_account(account_id: UUID, uow: UnitOfWork = Depends(get_unit_of_work)):
    result = await AccountAdminUseCase(uow).get_account(account_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put("/{account_id}", status_code=status.HTTP_200_OK, response_model=AccountView)
async def update_account(
    account_id: UUID,
    body: UpdateAccountRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Update Account

    Raises:
        - 400 Bad Request: Invalid email or role
        - 404 Not Found: Account does not exist
        - 409 Conflict: Email belongs to another account
    """
    command = UpdateAccountCommand(
        email=body.email,
        role=body.role,
        is_active=body.is_active,
        employee_id=body.employee_id,
    )
    result = await AccountAdminUseCase(uow).update_account(account_id, command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(account_id: UUID, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Delete an account together with its sessions"""
    result = await AccountAdminUseCase(uow).delete_account(account_id)

    if result.is_err():
        raise_for_error(result.error)


@router.post(
    "/{account_id}/unlock", status_code=status.HTTP_200_OK, response_model=AccountView
)
async def unlock_account(account_id: UUID, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Clear an account's lockout and failed-attempt counter"""
    result = await AccountAdminUseCase(uow).unlock_account(account_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{account_id}/revoke-sessions",
    status_code=status.HTTP_200_OK,
    response_model=RevokeSessionsResponse,
)
async def revoke_sessions(account_id: UUID, uow: UnitOfWork = Depends(get_unit_of_work)):
    """Force logout of an account on every device"""
    result = await AccountAdminUseCase(uow).revoke_sessions(account_id)

    if result.is_err():
        raise_for_error(result.error)

    return RevokeSessionsResponse(account_id=account_id, revoked_count=result.value)
