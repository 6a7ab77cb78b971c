"""Pydantic schemas for departments, employees and workflows."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

WorkflowStatus = Literal["Pending", "Approved", "Rejected"]


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class DepartmentUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None


class DepartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    employee_count: int = 0
    created_at: datetime


class EmployeeCreate(BaseModel):
    employee_id: str = Field(min_length=1, max_length=50)
    account_id: int | None = None
    department_id: int | None = None
    position: str = Field(min_length=1, max_length=100)
    hire_date: date | None = None
    status: Literal["Active", "Inactive"] = "Active"


class EmployeeUpdate(BaseModel):
    employee_id: str | None = Field(None, min_length=1, max_length=50)
    account_id: int | None = None
    department_id: int | None = None
    position: str | None = Field(None, min_length=1, max_length=100)
    hire_date: date | None = None
    status: Literal["Active", "Inactive"] | None = None


class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: str
    account_id: int | None
    department_id: int | None
    position: str
    hire_date: date | None
    status: str
    created_at: datetime


class TransferBody(BaseModel):
    department_id: int


class WorkflowCreate(BaseModel):
    employee_id: int
    type: str = Field(min_length=1, max_length=50)
    details: dict | None = None


class WorkflowStatusBody(BaseModel):
    status: WorkflowStatus


class WorkflowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    type: str
    details: dict | None
    status: str
    created_at: datetime
