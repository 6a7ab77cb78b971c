"""Pydantic schemas for account API bodies and responses."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from accounts_api.models.account import Account, Role, is_verified

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def _check_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("email must be a valid email address")
    return value


def _check_passwords_match(password: str | None, confirm_password: str | None) -> None:
    if password and password != confirm_password:
        raise ValueError("confirm_password must match password")


class AccountOut(BaseModel):
    """Basic details: the non-sensitive account fields safe to return to clients."""

    id: int
    title: str
    first_name: str
    last_name: str
    email: str
    role: str
    created: datetime
    updated: datetime | None
    is_verified: bool
    is_active: bool


def basic_details(account: Account) -> AccountOut:
    return AccountOut(
        id=account.id,
        title=account.title,
        first_name=account.first_name,
        last_name=account.last_name,
        email=account.email,
        role=account.role,
        created=account.created_at,
        updated=account.updated_at,
        is_verified=is_verified(account),
        is_active=account.is_active,
    )


class AuthenticatedOut(AccountOut):
    jwt_token: str


class AuthenticateBody(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class RegisterBody(BaseModel):
    title: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str
    accept_terms: bool

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @model_validator(mode="after")
    def check_fields(self) -> "RegisterBody":
        _check_passwords_match(self.password, self.confirm_password)
        if self.accept_terms is not True:
            raise ValueError("accept_terms must be true")
        return self


class TokenBody(BaseModel):
    token: str = Field(min_length=1)


class RevokeTokenBody(BaseModel):
    token: str | None = None


class EmailBody(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class ResetPasswordBody(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str

    @model_validator(mode="after")
    def check_fields(self) -> "ResetPasswordBody":
        _check_passwords_match(self.password, self.confirm_password)
        return self


class AccountCreateBody(BaseModel):
    """Admin-created account: verified immediately, role explicit."""

    title: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str
    role: Role

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @model_validator(mode="after")
    def check_fields(self) -> "AccountCreateBody":
        _check_passwords_match(self.password, self.confirm_password)
        return self


class AccountUpdateBody(BaseModel):
    """Partial update; empty strings are treated as "not supplied"."""

    title: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    password: str | None = None
    confirm_password: str | None = None
    role: Role | None = None

    @field_validator("title", "first_name", "last_name", "email", "password", "confirm_password", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _check_email(v) if v is not None else None

    @model_validator(mode="after")
    def check_fields(self) -> "AccountUpdateBody":
        if self.password is not None:
            if len(self.password) < MIN_PASSWORD_LENGTH:
                raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
            _check_passwords_match(self.password, self.confirm_password)
        return self


class AccountStatusBody(BaseModel):
    is_active: bool


class MessageOut(BaseModel):
    message: str
