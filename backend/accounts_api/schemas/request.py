"""Pydantic schemas for employee requests."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RequestItemIn(BaseModel):
    name: str = ""
    quantity: int = 1
    description: str = ""


class RequestCreate(BaseModel):
    """Body for creating a request. Items are checked by the service (at least one, quantity >= 1)."""

    type: str = Field(min_length=1, max_length=50)
    description: str = ""
    employee_id: int | None = None
    request_items: list[RequestItemIn] = Field(default_factory=list)


class RequestUpdate(BaseModel):
    type: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = None
    status: Literal["Pending", "Approved", "Rejected"] | None = None
    request_items: list[RequestItemIn] | None = None


class RequestItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    quantity: int
    description: str


class RequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    type: str
    description: str
    status: str
    approver_id: int | None
    created_at: datetime
    updated_at: datetime | None
    items: list[RequestItemOut]
