"""HR workflows (onboarding, transfers, approvals) attached to employees."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_api.api.deps import AdminAccount, CurrentAccount
from accounts_api.db.session import get_db
from accounts_api.schemas.organization import WorkflowCreate, WorkflowOut, WorkflowStatusBody
from accounts_api.services import organization

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("", response_model=WorkflowOut, status_code=201)
async def create_workflow(
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: WorkflowCreate,
):
    return await organization.create_workflow(session, body)


@router.get("/employee/{employee_id}", response_model=list[WorkflowOut])
async def list_for_employee(
    employee_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    requester: CurrentAccount,
):
    await organization.check_employee_access(session, employee_id, requester)
    return await organization.list_workflows_for_employee(session, employee_id)


@router.put("/{workflow_id}/status", response_model=WorkflowOut)
async def update_status(
    workflow_id: int,
    session: Annotated[AsyncSession, Depends(get_db)],
    _: AdminAccount,
    body: WorkflowStatusBody,
):
    return await organization.update_workflow_status(session, workflow_id, body.status)
