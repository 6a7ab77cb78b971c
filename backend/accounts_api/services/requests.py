"""Employee requests and their items."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from accounts_api.core.errors import NotFound, ValidationError
from accounts_api.db.base import utcnow
from accounts_api.models.request import Request, RequestItem
from accounts_api.schemas.request import RequestCreate, RequestItemIn, RequestUpdate
from accounts_api.services.organization import find_employee_by_account, get_employee

logger = logging.getLogger(__name__)

DECIDED_STATUSES = ("Approved", "Rejected")


def _validate_items(items: list[RequestItemIn]) -> None:
    if not items:
        raise ValidationError("At least one request item is required")
    for index, item in enumerate(items, start=1):
        if not item.name.strip():
            raise ValidationError(f"Request item {index} name is required")
        if item.quantity < 1:
            raise ValidationError(f"Request item {index} quantity must be at least 1")


def _build_items(items: list[RequestItemIn]) -> list[RequestItem]:
    return [
        RequestItem(name=item.name.strip(), quantity=item.quantity, description=item.description or "")
        for item in items
    ]


async def get_request(session: AsyncSession, request_id: int) -> Request:
    r = await session.execute(
        select(Request).options(selectinload(Request.items)).where(Request.id == request_id)
    )
    request = r.scalar_one_or_none()
    if request is None:
        raise NotFound("Request not found")
    return request


async def create_request(session: AsyncSession, body: RequestCreate, account_id: int) -> Request:
    """Create a request for ``body.employee_id`` or, when omitted, for the requester's own employee record."""
    if body.employee_id is not None:
        employee = await get_employee(session, body.employee_id)
    else:
        employee = await find_employee_by_account(session, account_id)
        if employee is None:
            raise ValidationError("User is not registered as an employee")
    _validate_items(body.request_items)

    now = utcnow()
    request = Request(
        employee_id=employee.id,
        type=body.type,
        description=body.description or "",
        status="Pending",
        created_at=now,
        items=_build_items(body.request_items),
    )
    session.add(request)
    await session.flush()
    logger.info("Request %s created for employee %s with %d items", request.id, employee.id, len(request.items))
    return request


async def list_requests(session: AsyncSession) -> list[Request]:
    r = await session.execute(
        select(Request).options(selectinload(Request.items)).order_by(Request.created_at.desc(), Request.id.desc())
    )
    return list(r.scalars().all())


async def list_requests_for_employee(session: AsyncSession, employee_id: int) -> list[Request]:
    await get_employee(session, employee_id)
    r = await session.execute(
        select(Request)
        .options(selectinload(Request.items))
        .where(Request.employee_id == employee_id)
        .order_by(Request.created_at.desc(), Request.id.desc())
    )
    return list(r.scalars().all())


async def update_request(session: AsyncSession, request_id: int, body: RequestUpdate, approver_id: int) -> Request:
    """Apply a partial update. Moving to Approved/Rejected records ``approver_id``; items are replaced wholesale."""
    request = await get_request(session, request_id)
    if body.type is not None:
        request.type = body.type
    if body.description is not None:
        request.description = body.description
    if body.status is not None and body.status != request.status:
        request.status = body.status
        if body.status in DECIDED_STATUSES:
            request.approver_id = approver_id
    if body.request_items is not None:
        _validate_items(body.request_items)
        request.items = _build_items(body.request_items)
    request.updated_at = utcnow()
    await session.flush()
    return request


async def delete_request(session: AsyncSession, request_id: int) -> None:
    request = await get_request(session, request_id)
    await session.delete(request)
    await session.flush()
