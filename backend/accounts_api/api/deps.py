"""FastAPI dependencies: store and services per request, client IP, authorization gate."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from accounts_api.db.session import get_db
from accounts_api.models.account import Role
from accounts_api.services.accounts import AccountService
from accounts_api.services.authorization import AuthContext, authorize_request
from accounts_api.services.email import EmailSender
from accounts_api.services.sessions import SessionManager
from accounts_api.services.store import CredentialStore


def get_store(session: Annotated[AsyncSession, Depends(get_db)]) -> CredentialStore:
    return CredentialStore(session)


@lru_cache
def get_email_sender() -> EmailSender:
    return EmailSender.from_settings()


def get_session_manager(store: Annotated[CredentialStore, Depends(get_store)]) -> SessionManager:
    return SessionManager(store)


def get_account_service(
    store: Annotated[CredentialStore, Depends(get_store)],
    email_sender: Annotated[EmailSender, Depends(get_email_sender)],
) -> AccountService:
    return AccountService(store, email_sender)


def client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _bearer_token(request: Request) -> str | None:
    """Access token from the Authorization header, falling back to the ?token= query parameter."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.query_params.get("token") or None


def authorize(*roles: Role):
    """Dependency factory: ``Depends(authorize())`` for any signed-in account, ``authorize(Role.ADMIN)`` for admins."""

    async def dependency(
        request: Request,
        store: Annotated[CredentialStore, Depends(get_store)],
    ) -> AuthContext:
        return await authorize_request(store, _bearer_token(request), roles)

    return dependency


CurrentAccount = Annotated[AuthContext, Depends(authorize())]
AdminAccount = Annotated[AuthContext, Depends(authorize(Role.ADMIN))]
