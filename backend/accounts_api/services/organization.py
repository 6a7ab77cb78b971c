"""Departments, employees and HR workflows."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_api.core.errors import NotFound, Unauthorized, ValidationError
from accounts_api.db.base import utcnow
from accounts_api.models.account import Account
from accounts_api.models.department import Department
from accounts_api.models.employee import Employee
from accounts_api.models.workflow import Workflow
from accounts_api.services.authorization import AuthContext
from accounts_api.schemas.organization import (
    DepartmentCreate,
    DepartmentOut,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeUpdate,
    WorkflowCreate,
)

logger = logging.getLogger(__name__)

TRANSFER_WORKFLOW_TYPE = "Department Transfer"


async def _employee_counts(session: AsyncSession) -> dict[int, int]:
    r = await session.execute(
        select(Employee.department_id, func.count(Employee.id))
        .where(Employee.department_id.is_not(None))
        .group_by(Employee.department_id)
    )
    return {dept_id: count for dept_id, count in r.all()}


def _department_out(dept: Department, counts: dict[int, int]) -> DepartmentOut:
    return DepartmentOut(
        id=dept.id,
        name=dept.name,
        description=dept.description,
        employee_count=counts.get(dept.id, 0),
        created_at=dept.created_at,
    )


async def get_department(session: AsyncSession, department_id: int) -> Department:
    dept = await session.get(Department, department_id)
    if dept is None:
        raise NotFound("Department not found")
    return dept


async def _ensure_department_name_free(session: AsyncSession, name: str, exclude_id: int | None = None) -> None:
    q = select(Department.id).where(Department.name == name)
    if exclude_id is not None:
        q = q.where(Department.id != exclude_id)
    if (await session.execute(q)).first() is not None:
        raise ValidationError(f'Department "{name}" already exists')


async def list_departments(session: AsyncSession) -> list[DepartmentOut]:
    r = await session.execute(select(Department).order_by(Department.name))
    counts = await _employee_counts(session)
    return [_department_out(d, counts) for d in r.scalars().all()]


async def department_details(session: AsyncSession, department_id: int) -> DepartmentOut:
    dept = await get_department(session, department_id)
    return _department_out(dept, await _employee_counts(session))


async def create_department(session: AsyncSession, body: DepartmentCreate) -> DepartmentOut:
    await _ensure_department_name_free(session, body.name)
    dept = Department(name=body.name, description=body.description, created_at=utcnow())
    session.add(dept)
    await session.flush()
    return _department_out(dept, {})


async def update_department(session: AsyncSession, department_id: int, body: DepartmentUpdate) -> DepartmentOut:
    dept = await get_department(session, department_id)
    if body.name is not None and body.name != dept.name:
        await _ensure_department_name_free(session, body.name, exclude_id=dept.id)
        dept.name = body.name
    if body.description is not None:
        dept.description = body.description
    dept.updated_at = utcnow()
    await session.flush()
    return _department_out(dept, await _employee_counts(session))


async def delete_department(session: AsyncSession, department_id: int) -> None:
    dept = await get_department(session, department_id)
    await session.delete(dept)
    await session.flush()


async def get_employee(session: AsyncSession, employee_id: int) -> Employee:
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise NotFound("Employee not found")
    return employee


async def check_employee_access(session: AsyncSession, employee_id: int, requester: AuthContext) -> Employee:
    """Admins see every employee's records; anyone else only the employee linked to their own account."""
    employee = await get_employee(session, employee_id)
    if not requester.is_admin and employee.account_id != requester.account_id:
        raise Unauthorized()
    return employee


async def find_employee_by_account(session: AsyncSession, account_id: int) -> Employee | None:
    r = await session.execute(select(Employee).where(Employee.account_id == account_id))
    return r.scalar_one_or_none()


async def _check_employee_refs(
    session: AsyncSession,
    *,
    employee_code: str | None,
    account_id: int | None,
    department_id: int | None,
    exclude_id: int | None = None,
) -> None:
    if employee_code is not None:
        q = select(Employee.id).where(Employee.employee_id == employee_code)
        if exclude_id is not None:
            q = q.where(Employee.id != exclude_id)
        if (await session.execute(q)).first() is not None:
            raise ValidationError(f'Employee ID "{employee_code}" already exists')
    if account_id is not None:
        if await session.get(Account, account_id) is None:
            raise NotFound("Account not found")
        existing = await find_employee_by_account(session, account_id)
        if existing is not None and existing.id != exclude_id:
            raise ValidationError("Account is already linked to an employee")
    if department_id is not None:
        await get_department(session, department_id)


async def list_employees(session: AsyncSession) -> list[Employee]:
    r = await session.execute(select(Employee).order_by(Employee.id))
    return list(r.scalars().all())


async def create_employee(session: AsyncSession, body: EmployeeCreate) -> Employee:
    await _check_employee_refs(
        session,
        employee_code=body.employee_id,
        account_id=body.account_id,
        department_id=body.department_id,
    )
    employee = Employee(**body.model_dump(), created_at=utcnow())
    session.add(employee)
    await session.flush()
    return employee


async def update_employee(session: AsyncSession, employee_id: int, body: EmployeeUpdate) -> Employee:
    employee = await get_employee(session, employee_id)
    changes = body.model_dump(exclude_unset=True)
    await _check_employee_refs(
        session,
        employee_code=changes.get("employee_id"),
        account_id=changes.get("account_id"),
        department_id=changes.get("department_id"),
        exclude_id=employee.id,
    )
    for key, value in changes.items():
        setattr(employee, key, value)
    employee.updated_at = utcnow()
    await session.flush()
    return employee


async def delete_employee(session: AsyncSession, employee_id: int) -> None:
    employee = await get_employee(session, employee_id)
    await session.delete(employee)
    await session.flush()


async def transfer_employee(session: AsyncSession, employee_id: int, department_id: int) -> Employee:
    """Move an employee to another department and record the move as a workflow."""
    employee = await get_employee(session, employee_id)
    target = await get_department(session, department_id)
    previous_id = employee.department_id
    employee.department_id = target.id
    employee.updated_at = utcnow()
    session.add(
        Workflow(
            employee_id=employee.id,
            type=TRANSFER_WORKFLOW_TYPE,
            details={"from_department_id": previous_id, "to_department_id": target.id},
            status="Pending",
            created_at=utcnow(),
        )
    )
    await session.flush()
    logger.info("Employee %s transferred from department %s to %s", employee.id, previous_id, target.id)
    return employee


async def create_workflow(session: AsyncSession, body: WorkflowCreate) -> Workflow:
    await get_employee(session, body.employee_id)
    workflow = Workflow(
        employee_id=body.employee_id,
        type=body.type,
        details=body.details,
        status="Pending",
        created_at=utcnow(),
    )
    session.add(workflow)
    await session.flush()
    return workflow


async def list_workflows_for_employee(session: AsyncSession, employee_id: int) -> list[Workflow]:
    await get_employee(session, employee_id)
    r = await session.execute(
        select(Workflow).where(Workflow.employee_id == employee_id).order_by(Workflow.created_at.desc())
    )
    return list(r.scalars().all())


async def update_workflow_status(session: AsyncSession, workflow_id: int, status: str) -> Workflow:
    workflow = await session.get(Workflow, workflow_id)
    if workflow is None:
        raise NotFound("Workflow not found")
    workflow.status = status
    workflow.updated_at = utcnow()
    await session.flush()
    return workflow
