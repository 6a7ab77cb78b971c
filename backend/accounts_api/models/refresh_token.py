"""Refresh tokens: one row per issued token, linked forward through replaced_by_token."""

from __future__ import annotations

from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accounts_api.db.base import Base, as_utc, utcnow


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    replaced_by_token: Mapped[str | None] = mapped_column(String(128), nullable=True)

    account: Mapped["Account"] = relationship("Account", back_populates="refresh_tokens")


def is_expired(token: RefreshToken, now: datetime | None = None) -> bool:
    return (now or utcnow()) >= as_utc(token.expires_at)


def is_active(token: RefreshToken, now: datetime | None = None) -> bool:
    return token.revoked_at is None and not is_expired(token, now)
