"""Departments: read for any signed-in account, write for admins."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_api.api.deps import AdminAccount, CurrentAccount
from accounts_api.db.session import get_db
from accounts_api.schemas.account import MessageOut
from accounts_api.schemas.organization import DepartmentCreate, DepartmentOut, DepartmentUpdate
from accounts_api.services import organization

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=list[DepartmentOut])
async def list_departments(
    session: Annotated[AsyncSession, Depends(get_db)],
    _: CurrentAccount,
) -> list[DepartmentOut]:
    return await organization.list_departments(session)


@router.get("/{department_id}", response_model=DepartmentOut, responses={404: {"description": "Not found"}})
async def get_department(
    department_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: CurrentAccount,
) -> DepartmentOut:
    return await organization.department_details(session, department_id)


@router.post("", response_model=DepartmentOut, status_code=201)
async def create_department(
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: DepartmentCreate,
) -> DepartmentOut:
    return await organization.create_department(session, body)


@router.put("/{department_id}", response_model=DepartmentOut)
async def update_department(
    department_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: DepartmentUpdate,
) -> DepartmentOut:
    return await organization.update_department(session, department_id, body)


@router.delete("/{department_id}", response_model=MessageOut)
async def delete_department(
    department_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
) -> MessageOut:
    await organization.delete_department(session, department_id)
    return MessageOut(message="Department deleted")
