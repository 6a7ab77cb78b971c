"""Account lifecycle: registration, email verification, password reset, administration.

Registration and forgot-password never reveal whether an email is on file:
both return the same result either way and only the email that goes out
differs (or nothing is sent).
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from accounts_api.config import settings
from accounts_api.core.auth import hash_password, random_token_string
from accounts_api.core.errors import Forbidden, InvalidToken, NotFound, ValidationError
from accounts_api.db.base import utcnow
from accounts_api.models.account import Account, Role, is_admin
from accounts_api.schemas.account import (
    AccountCreateBody,
    AccountOut,
    AccountUpdateBody,
    RegisterBody,
    basic_details,
)
from accounts_api.services.email import (
    EmailSender,
    send_already_registered_email,
    send_password_reset_email,
    send_verification_email,
)
from accounts_api.services.store import CredentialStore

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(self, store: CredentialStore, email_sender: EmailSender) -> None:
        self.store = store
        self.email_sender = email_sender

    async def _get_account(self, account_id: int) -> Account:
        account = await self.store.find_by_id(account_id)
        if account is None:
            raise NotFound("Account not found")
        return account

    async def register(self, params: RegisterBody, origin: str | None) -> AccountOut | None:
        """Create an unverified account and email its verification token.

        Returns None (after emailing an "already registered" notice) when the
        email is taken. The first account ever created becomes Admin.
        """
        if await self.store.find_by_email(params.email) is not None:
            logger.info("Registration for an existing email; sending notice instead")
            await send_already_registered_email(self.email_sender, params.email, origin)
            return None

        # Unlocked check: two simultaneous first registrations can both become Admin
        is_first = await self.store.count_accounts() == 0
        account = Account(
            title=params.title,
            first_name=params.first_name,
            last_name=params.last_name,
            email=params.email,
            password_hash=hash_password(params.password),
            role=Role.ADMIN.value if is_first else Role.USER.value,
            verification_token=random_token_string(),
            is_active=True,
            created_at=utcnow(),
        )
        try:
            await self.store.insert(account)
        except IntegrityError as e:
            logger.warning("Register IntegrityError: %s", e)
            raise ValidationError("Email already registered") from e
        logger.info("Registered account %s with role %s", account.id, account.role)

        await send_verification_email(self.email_sender, account.email, account.verification_token, origin)
        return basic_details(account)

    async def verify_email(self, token: str) -> None:
        account = await self.store.find_by_verification_token(token)
        if account is None:
            raise InvalidToken("Verification failed")
        account.verified_at = utcnow()
        account.verification_token = None
        await self.store.update(account)
        logger.info("Account %s verified", account.id)

    async def forgot_password(self, email: str, origin: str | None) -> None:
        account = await self.store.find_by_email(email)
        if account is None:
            return
        account.reset_token = random_token_string()
        account.reset_token_expires = utcnow() + timedelta(hours=settings.reset_token_expire_hours)
        await self.store.update(account)
        await send_password_reset_email(self.email_sender, account.email, account.reset_token, origin)

    async def validate_reset_token(self, token: str) -> Account:
        account = await self.store.find_by_reset_token(token)
        if account is None:
            raise InvalidToken()
        return account

    async def reset_password(self, token: str, password: str) -> None:
        account = await self.validate_reset_token(token)
        account.password_hash = hash_password(password)
        account.password_reset_at = utcnow()
        account.reset_token = None
        account.reset_token_expires = None
        await self.store.update(account)
        logger.info("Password reset for account %s", account.id)

    async def get_all(self) -> list[AccountOut]:
        return [basic_details(a) for a in await self.store.list_accounts()]

    async def get_by_id(self, account_id: int) -> AccountOut:
        return basic_details(await self._get_account(account_id))

    async def create(self, params: AccountCreateBody) -> AccountOut:
        if await self.store.find_by_email(params.email) is not None:
            raise ValidationError(f'Email "{params.email}" is already registered')
        now = utcnow()
        account = Account(
            title=params.title,
            first_name=params.first_name,
            last_name=params.last_name,
            email=params.email,
            password_hash=hash_password(params.password),
            role=params.role.value,
            is_active=True,
            verified_at=now,
            created_at=now,
        )
        await self.store.insert(account)
        logger.info("Admin created account %s with role %s", account.id, account.role)
        return basic_details(account)

    async def update(
        self,
        account_id: int,
        params: AccountUpdateBody,
        *,
        can_change_role: bool = False,
    ) -> AccountOut:
        account = await self._get_account(account_id)
        if params.role is not None and params.role.value != account.role and not can_change_role:
            raise Forbidden("Only administrators can change roles")
        if (
            params.email
            and params.email != account.email
            and await self.store.find_by_email(params.email) is not None
        ):
            raise ValidationError(f'Email "{params.email}" is already registered')

        for field in ("title", "first_name", "last_name", "email"):
            value = getattr(params, field)
            if value is not None:
                setattr(account, field, value)
        if params.role is not None:
            account.role = params.role.value
        if params.password:
            account.password_hash = hash_password(params.password)
        await self.store.update(account)
        return basic_details(account)

    async def delete(self, account_id: int) -> None:
        account = await self._get_account(account_id)
        await self.store.delete(account)
        logger.info("Deleted account %s", account_id)

    async def update_status(self, account_id: int, is_active: bool) -> AccountOut:
        account = await self._get_account(account_id)
        if is_admin(account):
            raise Forbidden("Cannot change status of administrator accounts")
        account.is_active = is_active
        await self.store.update(account)
        logger.info("Account %s is_active=%s", account_id, is_active)
        return basic_details(account)
