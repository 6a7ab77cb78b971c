"""Authorization gate: verify an access token, then re-read the account on every call.

Nothing is cached between requests. A role change, a deactivation or a
deleted account takes effect on the very next request even though the
access token itself stays valid until it expires.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from jose import JWTError

from accounts_api.core.auth import decode_token
from accounts_api.core.errors import AccountDeactivated, Forbidden, InvalidToken, Unauthenticated
from accounts_api.models.account import Role
from accounts_api.services.store import CredentialStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    account_id: int
    role: str
    token_strings: frozenset[str] = field(default_factory=frozenset, repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def owns_token(self, token: str) -> bool:
        """True for any refresh token ever issued to this account, active or not."""
        return token in self.token_strings


def _subject_id(access_token: str) -> int:
    try:
        payload = decode_token(access_token)
    except JWTError:
        raise InvalidToken(status_code=401)
    if payload.get("typ", "access") != "access":
        raise InvalidToken(status_code=401)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidToken(status_code=401)


async def authorize_request(
    store: CredentialStore,
    access_token: str | None,
    required_roles: Iterable[Role | str] = (),
) -> AuthContext:
    """Authenticate ``access_token`` and enforce ``required_roles`` (empty = any signed-in account)."""
    if not access_token:
        raise Unauthenticated()
    account_id = _subject_id(access_token)

    account, token_strings = await store.find_with_token_strings(account_id)
    if account is None:
        logger.info("Authorization failed: account %s no longer exists", account_id)
        raise Unauthenticated("Unauthorized - Account not found")
    if account.role != Role.ADMIN.value and not account.is_active:
        raise AccountDeactivated()

    roles = {r.value if isinstance(r, Role) else r for r in required_roles}
    if roles and account.role not in roles:
        logger.info(
            "Authorization refused: account %s has role %s, needs one of %s",
            account.id,
            account.role,
            sorted(roles),
        )
        raise Forbidden(detail={"required_roles": sorted(roles), "role": account.role})

    return AuthContext(account_id=account.id, role=account.role, token_strings=token_strings)
