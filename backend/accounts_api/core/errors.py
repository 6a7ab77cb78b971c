"""Service-layer error taxonomy.

Every failure the account and token services can report is one of the
``ErrorCode`` members below. Each code has exactly one exception class; the
class carries the default HTTP status used by the exception handler in
``accounts_api.main``. Callers may override the status for a single raise
(the authorization gate reports a bad access token as 401, while a bad
refresh or reset token is a 400).

Security-sensitive paths reuse one generic message per code so
that responses never reveal which underlying check failed.
"""

from __future__ import annotations

import enum


class ErrorCode(str, enum.Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DEACTIVATED = "account_deactivated"
    INVALID_TOKEN = "invalid_token"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"


class ServiceError(Exception):
    status_code: int = 400
    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    default_message: str = "Request could not be processed"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        detail: dict | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class InvalidCredentials(ServiceError):
    """Unknown email, unverified account, or wrong password. Always the same message."""

    status_code = 400
    code = ErrorCode.INVALID_CREDENTIALS
    default_message = "Email or password is incorrect"


class AccountDeactivated(ServiceError):
    status_code = 403
    code = ErrorCode.ACCOUNT_DEACTIVATED
    default_message = "Your account has been deactivated. Please contact an administrator."


class InvalidToken(ServiceError):
    """Token absent, expired, revoked, or never issued. Always the same message."""

    status_code = 400
    code = ErrorCode.INVALID_TOKEN
    default_message = "Invalid token"


class Unauthenticated(ServiceError):
    status_code = 401
    code = ErrorCode.UNAUTHENTICATED
    default_message = "Unauthenticated"


class Unauthorized(ServiceError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(ServiceError):
    status_code = 403
    code = ErrorCode.FORBIDDEN
    default_message = "Forbidden - Insufficient permissions"


class NotFound(ServiceError):
    status_code = 404
    code = ErrorCode.NOT_FOUND
    default_message = "Not found"


class ValidationError(ServiceError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation error"
