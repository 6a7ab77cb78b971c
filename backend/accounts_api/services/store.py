"""Credential store: accounts and refresh tokens behind one injected AsyncSession.

The store never commits. The session's owner (``get_db`` for HTTP requests)
commits or rolls back, so everything a service does in one call lands in one
transaction.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from accounts_api.db.base import utcnow
from accounts_api.models.account import Account
from accounts_api.models.refresh_token import RefreshToken


class CredentialStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # accounts

    async def count_accounts(self) -> int:
        r = await self.session.execute(select(func.count()).select_from(Account))
        return int(r.scalar_one())

    async def list_accounts(self) -> list[Account]:
        r = await self.session.execute(select(Account).order_by(Account.id))
        return list(r.scalars().all())

    async def find_by_email(self, email: str, *, with_hash: bool = False) -> Account | None:
        q = select(Account).where(Account.email == email)
        if with_hash:
            q = q.options(undefer(Account.password_hash))
        r = await self.session.execute(q)
        return r.scalar_one_or_none()

    async def find_by_id(self, account_id: int) -> Account | None:
        r = await self.session.execute(select(Account).where(Account.id == account_id))
        return r.scalar_one_or_none()

    async def find_by_verification_token(self, token: str) -> Account | None:
        r = await self.session.execute(select(Account).where(Account.verification_token == token))
        return r.scalar_one_or_none()

    async def find_by_reset_token(self, token: str, now: datetime | None = None) -> Account | None:
        """Only returns the account while the reset token is unexpired."""
        r = await self.session.execute(
            select(Account).where(
                Account.reset_token == token,
                Account.reset_token_expires > (now or utcnow()),
            )
        )
        return r.scalar_one_or_none()

    async def insert(self, account: Account) -> Account:
        self.session.add(account)
        await self.session.flush()
        return account

    async def update(self, account: Account) -> Account:
        account.updated_at = utcnow()
        await self.session.flush()
        return account

    async def delete(self, account: Account) -> None:
        await self.session.delete(account)
        await self.session.flush()

    async def find_with_token_strings(self, account_id: int) -> tuple[Account | None, frozenset[str]]:
        """Account plus every refresh token string ever issued to it, in a single SELECT."""
        r = await self.session.execute(
            select(Account, RefreshToken.token)
            .outerjoin(RefreshToken, RefreshToken.account_id == Account.id)
            .where(Account.id == account_id)
        )
        rows = r.all()
        if not rows:
            return None, frozenset()
        return rows[0][0], frozenset(tok for _, tok in rows if tok is not None)

    # refresh tokens

    async def find_refresh_tokens_by_account(self, account_id: int) -> list[RefreshToken]:
        r = await self.session.execute(
            select(RefreshToken)
            .where(RefreshToken.account_id == account_id)
            .order_by(RefreshToken.id)
        )
        return list(r.scalars().all())

    async def find_refresh_token_by_string(self, token: str) -> RefreshToken | None:
        r = await self.session.execute(select(RefreshToken).where(RefreshToken.token == token))
        return r.scalar_one_or_none()

    async def insert_refresh_token(self, token: RefreshToken) -> RefreshToken:
        self.session.add(token)
        await self.session.flush()
        return token

    async def update_refresh_token(self, token: RefreshToken) -> RefreshToken:
        await self.session.flush()
        return token

    async def revoke_refresh_token_if_active(
        self,
        token: str,
        *,
        ip_address: str | None,
        replaced_by_token: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Compare-and-set revocation. Returns False when the row was no longer active.

        The WHERE clause re-checks "not revoked and not expired" inside the UPDATE,
        so of two transactions racing on the same token only one matches a row.
        """
        now = now or utcnow()
        r = await self.session.execute(
            update(RefreshToken)
            .where(
                RefreshToken.token == token,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .values(revoked_at=now, revoked_by_ip=ip_address, replaced_by_token=replaced_by_token)
            .execution_options(synchronize_session=False)
        )
        return r.rowcount == 1
