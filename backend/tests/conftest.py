"""Pytest configuration and shared fixtures for API and service tests."""

import os
import tempfile

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test DB before app imports so config/engine use it
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), f"accounts_api_test_{os.getpid()}.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB_PATH}")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("RATE_LIMIT", "100000/minute")
os.environ.setdefault("SMTP_HOST", "")

from accounts_api.api.deps import get_email_sender
from accounts_api.core.auth import create_access_token, hash_password
from accounts_api.db.base import Base, utcnow
from accounts_api.db.session import async_session_maker, engine
from accounts_api.main import app
from accounts_api.models.account import Account, Role
from accounts_api.services.email import EmailSender

import accounts_api.models  # noqa: F401

pytest_plugins = ["pytest_asyncio"]

PASSWORD = "password123"


class RecordingEmailSender(EmailSender):
    """Collects outgoing mail instead of talking to SMTP."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[dict] = []

    async def send(self, to: str, subject: str, html_body: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html_body})
        return True


@pytest_asyncio.fixture(scope="session")
async def ensure_db():
    """Create tables once per test session."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()
    if os.path.exists(_TEST_DB_PATH):
        os.remove(_TEST_DB_PATH)


async def _clear_all():
    """Delete all rows in reverse dependency order so tests start clean."""
    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(table.delete())


@pytest_asyncio.fixture
async def clean_db(ensure_db):
    await _clear_all()
    yield


@pytest.fixture
def email_sender():
    sender = RecordingEmailSender()
    app.dependency_overrides[get_email_sender] = lambda: sender
    yield sender
    app.dependency_overrides.pop(get_email_sender, None)


@pytest_asyncio.fixture
async def client(clean_db, email_sender):
    """Yield AsyncClient against a clean DB, with outgoing email recorded."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def session(clean_db):
    async with async_session_maker() as s:
        yield s


async def create_account(
    email: str,
    *,
    password: str = PASSWORD,
    role: Role = Role.USER,
    verified: bool = True,
    is_active: bool = True,
) -> int:
    """Insert an account directly (committed) and return its id."""
    async with async_session_maker() as s:
        account = Account(
            title="Mr",
            first_name="Test",
            last_name=email.split("@")[0],
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            is_active=is_active,
            verified_at=utcnow() if verified else None,
            verification_token=None if verified else f"verify-{email}",
            created_at=utcnow(),
        )
        s.add(account)
        await s.commit()
        return account.id


@pytest_asyncio.fixture
async def admin(clean_db):
    """Return (account_id, access_token) for a verified admin."""
    account_id = await create_account("admin@test.com", role=Role.ADMIN)
    return account_id, create_access_token(account_id)


@pytest_asyncio.fixture
async def user(clean_db):
    """Return (account_id, access_token) for a verified, active user."""
    account_id = await create_account("user@test.com")
    return account_id, create_access_token(account_id)


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {admin[1]}"}


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {user[1]}"}


def refresh_cookie(resp) -> str:
    """Refresh token string from a response's Set-Cookie header."""
    header = resp.headers["set-cookie"]
    return header.split(";", 1)[0].split("=", 1)[1]
