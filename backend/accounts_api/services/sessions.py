"""Refresh-token chain manager: the only code that rotates or revokes refresh tokens.

Token states::

    Active --rotate/revoke--> Revoked   (terminal)
    Active --time----------> Expired   (terminal, derived from expires_at)

Rotation revokes the presented token with ``replaced_by_token`` pointing at
its successor, so every chain can be followed forward for auditing. A
revoked, expired, unknown or already-rotated token all fail with the same
``InvalidToken``; a replayed token is indistinguishable from garbage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from accounts_api.core.auth import verify_password
from accounts_api.core.errors import AccountDeactivated, InvalidCredentials, InvalidToken, Unauthorized
from accounts_api.db.base import utcnow
from accounts_api.models.account import Account, is_admin, is_verified
from accounts_api.models.refresh_token import RefreshToken, is_active
from accounts_api.services.authorization import AuthContext
from accounts_api.services.store import CredentialStore
from accounts_api.services.tokens import issue_access_token, issue_refresh_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedTokens:
    account: Account
    access_token: str
    refresh_token: str


class SessionManager:
    def __init__(self, store: CredentialStore) -> None:
        self.store = store

    async def authenticate(self, email: str, password: str, ip_address: str | None) -> IssuedTokens:
        account = await self.store.find_by_email(email, with_hash=True)
        if (
            account is None
            or not is_verified(account)
            or not verify_password(password, account.password_hash)
        ):
            logger.info("Authentication failed from ip=%s", ip_address)
            raise InvalidCredentials()
        if not is_admin(account) and not account.is_active:
            logger.info("Authentication refused for deactivated account_id=%s", account.id)
            raise AccountDeactivated()

        refresh = issue_refresh_token(account, ip_address)
        await self.store.insert_refresh_token(refresh)
        logger.info("Account %s authenticated from ip=%s", account.id, ip_address)
        return IssuedTokens(account, issue_access_token(account), refresh.token)

    async def _get_active_token(self, token: str | None) -> RefreshToken:
        if not token:
            raise InvalidToken()
        row = await self.store.find_refresh_token_by_string(token)
        if row is None or not is_active(row):
            raise InvalidToken()
        return row

    async def rotate(self, token: str | None, ip_address: str | None) -> IssuedTokens:
        """Exchange an active refresh token for a new one; the old one is revoked in the same transaction."""
        old = await self._get_active_token(token)
        account = await self.store.find_by_id(old.account_id)
        if account is None:
            raise InvalidToken()

        new = issue_refresh_token(account, ip_address)
        now = utcnow()
        swapped = await self.store.revoke_refresh_token_if_active(
            old.token, ip_address=ip_address, replaced_by_token=new.token, now=now
        )
        if not swapped:
            # Another request rotated or revoked it between our read and this write
            logger.warning("Refresh token for account %s lost a rotation race", account.id)
            raise InvalidToken()
        old.revoked_at = now
        old.revoked_by_ip = ip_address
        old.replaced_by_token = new.token
        await self.store.insert_refresh_token(new)
        logger.info("Rotated refresh token for account %s from ip=%s", account.id, ip_address)
        return IssuedTokens(account, issue_access_token(account), new.token)

    async def revoke(self, token: str | None, ip_address: str | None, requester: AuthContext) -> None:
        """Terminate a session. Owners may revoke their own tokens, Admins any token."""
        if not token:
            raise InvalidToken()
        if not requester.owns_token(token) and not requester.is_admin:
            raise Unauthorized()
        row = await self._get_active_token(token)
        if not await self.store.revoke_refresh_token_if_active(row.token, ip_address=ip_address):
            raise InvalidToken()
        await self.store.session.refresh(row)
        logger.info(
            "Account %s revoked a refresh token of account %s from ip=%s",
            requester.account_id,
            row.account_id,
            ip_address,
        )
