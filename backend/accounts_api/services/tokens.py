"""Token issuer: signed access tokens and unsaved refresh-token rows."""

from datetime import timedelta

from accounts_api.config import settings
from accounts_api.core.auth import create_access_token, random_token_string
from accounts_api.db.base import utcnow
from accounts_api.models.account import Account
from accounts_api.models.refresh_token import RefreshToken


def issue_access_token(account: Account) -> str:
    """JWT with sub = account id, valid for ``access_token_expire_minutes`` (15 by default)."""
    return create_access_token(account.id)


def issue_refresh_token(account: Account, ip_address: str | None) -> RefreshToken:
    """Build a new refresh-token row. Not persisted: the caller stages and saves it."""
    now = utcnow()
    return RefreshToken(
        account_id=account.id,
        token=random_token_string(),
        created_at=now,
        expires_at=now + timedelta(days=settings.refresh_token_expire_days),
        created_by_ip=ip_address,
    )
