"""Employees and their department transfers."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_api.api.deps import AdminAccount, CurrentAccount
from accounts_api.db.session import get_db
from accounts_api.schemas.account import MessageOut
from accounts_api.schemas.organization import EmployeeCreate, EmployeeOut, EmployeeUpdate, TransferBody
from accounts_api.services import organization

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=list[EmployeeOut])
async def list_employees(
    session: Annotated[AsyncSession, Depends(get_db)],
    _: CurrentAccount,
):
    return await organization.list_employees(session)


@router.get("/{employee_id}", response_model=EmployeeOut, responses={404: {"description": "Not found"}})
async def get_employee(
    employee_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: CurrentAccount,
):
    return await organization.get_employee(session, employee_id)


@router.post("", response_model=EmployeeOut, status_code=201)
async def create_employee(
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: EmployeeCreate,
):
    return await organization.create_employee(session, body)


@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(
    employee_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: EmployeeUpdate,
):
    return await organization.update_employee(session, employee_id, body)


@router.delete("/{employee_id}", response_model=MessageOut)
async def delete_employee(
    employee_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
) -> MessageOut:
    await organization.delete_employee(session, employee_id)
    return MessageOut(message="Employee deleted")


@router.post("/{employee_id}/transfer", response_model=EmployeeOut, summary="Move employee to another department")
async def transfer_employee(
    employee_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: TransferBody,
):
    return await organization.transfer_employee(session, employee_id, body.department_id)
