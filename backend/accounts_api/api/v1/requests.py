"""Employee requests: anyone signed in files their own, admins review and decide."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_api.api.deps import AdminAccount, CurrentAccount
from accounts_api.db.session import get_db
from accounts_api.schemas.account import MessageOut
from accounts_api.schemas.request import RequestCreate, RequestOut, RequestUpdate
from accounts_api.services import organization, requests

router = APIRouter(prefix="/requests", tags=["requests"])


@router.post(
    "",
    response_model=RequestOut,
    status_code=201,
    responses={400: {"description": "No employee record or invalid items"}},
)
async def create_request(
    session: Annotated[AsyncSession, Depends(get_db)],
    requester: CurrentAccount,
    body: RequestCreate,
):
    return await requests.create_request(session, body, requester.account_id)


@router.get("", response_model=list[RequestOut])
async def list_requests(
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
):
    return await requests.list_requests(session)


@router.get("/employee/{employee_id}", response_model=list[RequestOut])
async def list_for_employee(
    employee_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    requester: CurrentAccount,
):
    await organization.check_employee_access(session, employee_id, requester)
    return await requests.list_requests_for_employee(session, employee_id)


@router.get("/{request_id}", response_model=RequestOut, responses={404: {"description": "Not found"}})
async def get_request(
    request_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    requester: CurrentAccount,
):
    request = await requests.get_request(session, request_id)
    await organization.check_employee_access(session, request.employee_id, requester)
    return request


@router.put("/{request_id}", response_model=RequestOut)
async def update_request(
    request_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    requester: AdminAccount,
    body: RequestUpdate,
):
    return await requests.update_request(session, request_id, body, approver_id=requester.account_id)


@router.delete("/{request_id}", response_model=MessageOut)
async def delete_request(
    request_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
) -> MessageOut:
    await requests.delete_request(session, request_id)
    return MessageOut(message="Request deleted")
