"""Accounts: authenticate, refresh/revoke tokens, sign-up verification, password reset, admin CRUD."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from accounts_api.api.deps import (
    AdminAccount,
    CurrentAccount,
    client_ip,
    get_account_service,
    get_session_manager,
)
from accounts_api.config import settings
from accounts_api.core.errors import Unauthorized, ValidationError
from accounts_api.schemas.account import (
    AccountCreateBody,
    AccountOut,
    AccountStatusBody,
    AccountUpdateBody,
    AuthenticateBody,
    AuthenticatedOut,
    EmailBody,
    MessageOut,
    RegisterBody,
    ResetPasswordBody,
    RevokeTokenBody,
    TokenBody,
    basic_details,
)
from accounts_api.services.accounts import AccountService
from accounts_api.services.authorization import AuthContext
from accounts_api.services.sessions import IssuedTokens, SessionManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/accounts", tags=["accounts"])

Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Accounts = Annotated[AccountService, Depends(get_account_service)]


def _set_token_cookie(response: Response, token: str) -> None:
    """HTTP-only, SameSite=strict refresh cookie living as long as the token itself."""
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="strict",
        path="/",
    )


def _authenticated(response: Response, issued: IssuedTokens) -> AuthenticatedOut:
    _set_token_cookie(response, issued.refresh_token)
    return AuthenticatedOut(**basic_details(issued.account).model_dump(), jwt_token=issued.access_token)


def _require_self_or_admin(requester: AuthContext, account_id: int) -> None:
    if requester.account_id != account_id and not requester.is_admin:
        raise Unauthorized()


@router.post(
    "/authenticate",
    response_model=AuthenticatedOut,
    summary="Login with email and password",
    responses={
        400: {"description": "Email or password is incorrect"},
        403: {"description": "Account deactivated"},
    },
)
async def authenticate(
    request: Request,
    response: Response,
    sessions: Sessions,
    body: AuthenticateBody,
) -> AuthenticatedOut:
    issued = await sessions.authenticate(body.email, body.password, client_ip(request))
    return _authenticated(response, issued)


@router.post(
    "/refresh-token",
    response_model=AuthenticatedOut,
    summary="Exchange the refresh-token cookie for new access and refresh tokens",
    responses={400: {"description": "Refresh token missing, invalid, revoked or expired"}},
)
async def refresh_token(request: Request, response: Response, sessions: Sessions) -> AuthenticatedOut:
    token = request.cookies.get(settings.refresh_cookie_name)
    if not token:
        raise ValidationError("Refresh token is required")
    issued = await sessions.rotate(token, client_ip(request))
    return _authenticated(response, issued)


@router.post(
    "/revoke-token",
    response_model=MessageOut,
    summary="Revoke a refresh token (own tokens, or any token for admins)",
    responses={
        400: {"description": "Token missing or invalid"},
        401: {"description": "Not authenticated or not the token owner"},
    },
)
async def revoke_token(
    request: Request,
    sessions: Sessions,
    requester: CurrentAccount,
    body: RevokeTokenBody | None = None,
) -> MessageOut:
    token = (body.token if body else None) or request.cookies.get(settings.refresh_cookie_name)
    if not token:
        raise ValidationError("Token is required")
    await sessions.revoke(token, client_ip(request), requester)
    return MessageOut(message="Token revoked")


@router.post("/register", response_model=MessageOut, summary="Register a new account")
async def register(request: Request, accounts: Accounts, body: RegisterBody) -> MessageOut:
    await accounts.register(body, request.headers.get("origin"))
    return MessageOut(message="Registration successful, please check your email for verification instructions")


@router.post(
    "/verify-email",
    response_model=MessageOut,
    summary="Verify email with the token sent at registration",
    responses={400: {"description": "Verification failed"}},
)
async def verify_email(accounts: Accounts, body: TokenBody) -> MessageOut:
    await accounts.verify_email(body.token)
    return MessageOut(message="Verification successful, you can now login")


@router.post("/forgot-password", response_model=MessageOut, summary="Email a password reset token")
async def forgot_password(request: Request, accounts: Accounts, body: EmailBody) -> MessageOut:
    await accounts.forgot_password(body.email, request.headers.get("origin"))
    return MessageOut(message="Please check your email for password reset instructions")


@router.post(
    "/validate-reset-token",
    response_model=MessageOut,
    summary="Check that a password reset token is valid",
    responses={400: {"description": "Invalid token"}},
)
async def validate_reset_token(accounts: Accounts, body: TokenBody) -> MessageOut:
    await accounts.validate_reset_token(body.token)
    return MessageOut(message="Token is valid")


@router.post(
    "/reset-password",
    response_model=MessageOut,
    summary="Set a new password using a reset token",
    responses={400: {"description": "Invalid token"}},
)
async def reset_password(accounts: Accounts, body: ResetPasswordBody) -> MessageOut:
    await accounts.reset_password(body.token, body.password)
    return MessageOut(message="Password reset successful, you can now login")


@router.get("", response_model=list[AccountOut], summary="List accounts (admin)")
async def get_all(accounts: Accounts, _: AdminAccount) -> list[AccountOut]:
    return await accounts.get_all()


@router.get(
    "/{account_id}",
    response_model=AccountOut,
    summary="Get an account (own account, or any for admins)",
    responses={401: {"description": "Not authenticated or not allowed"}, 404: {"description": "Not found"}},
)
async def get_by_id(account_id: int, accounts: Accounts, requester: CurrentAccount) -> AccountOut:
    _require_self_or_admin(requester, account_id)
    return await accounts.get_by_id(account_id)


@router.post("", response_model=AccountOut, status_code=201, summary="Create a verified account (admin)")
async def create(accounts: Accounts, _: AdminAccount, body: AccountCreateBody) -> AccountOut:
    return await accounts.create(body)


@router.put(
    "/{account_id}",
    response_model=AccountOut,
    summary="Update an account (own account, or any for admins)",
)
async def update(
    account_id: int,
    accounts: Accounts,
    requester: CurrentAccount,
    body: AccountUpdateBody,
) -> AccountOut:
    _require_self_or_admin(requester, account_id)
    return await accounts.update(account_id, body, can_change_role=requester.is_admin)


@router.delete(
    "/{account_id}",
    response_model=MessageOut,
    summary="Delete an account (own account, or any for admins)",
)
async def delete(account_id: int, accounts: Accounts, requester: CurrentAccount) -> MessageOut:
    _require_self_or_admin(requester, account_id)
    await accounts.delete(account_id)
    return MessageOut(message="Account deleted successfully")


@router.put(
    "/{account_id}/status",
    response_model=AccountOut,
    summary="Activate or deactivate a non-admin account (admin)",
    responses={403: {"description": "Administrator accounts cannot be deactivated"}},
)
async def update_status(
    account_id: int,
    accounts: Accounts,
    requester: AdminAccount,
    body: AccountStatusBody,
) -> AccountOut:
    if requester.account_id == account_id:
        raise ValidationError("You cannot change your own account status")
    return await accounts.update_status(account_id, body.is_active)
