"""Tests for /accounts endpoints: authenticate, refresh cookie, revoke, sign-up, admin CRUD."""

import pytest
from httpx import AsyncClient

from accounts_api.config import settings
from accounts_api.models.account import Role

from conftest import PASSWORD, create_account, refresh_cookie


def _cookie(token: str) -> dict:
    return {"Cookie": f"{settings.refresh_cookie_name}={token}"}


async def _authenticate(client: AsyncClient, email: str, password: str = PASSWORD):
    return await client.post(
        "/api/v1/accounts/authenticate",
        json={"email": email, "password": password},
    )


@pytest.mark.asyncio
async def test_authenticate_sets_cookie_and_returns_details(client: AsyncClient):
    await create_account("a@test.com")
    resp = await _authenticate(client, "a@test.com")
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "a@test.com"
    assert data["jwt_token"]
    assert data["is_verified"] is True
    assert "password_hash" not in data
    assert "refresh_tokens" not in data

    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith(f"{settings.refresh_cookie_name}=")
    assert "HttpOnly" in set_cookie
    assert "samesite=strict" in set_cookie.lower()
    assert "Max-Age=604800" in set_cookie


@pytest.mark.asyncio
async def test_authenticate_wrong_password(client: AsyncClient):
    await create_account("a@test.com")
    resp = await _authenticate(client, "a@test.com", "wrong")
    assert resp.status_code == 400
    assert resp.json() == {"message": "Email or password is incorrect", "code": "invalid_credentials"}


@pytest.mark.asyncio
async def test_authenticate_deactivated(client: AsyncClient):
    await create_account("off@test.com", is_active=False)
    resp = await _authenticate(client, "off@test.com")
    assert resp.status_code == 403
    assert resp.json()["code"] == "account_deactivated"


@pytest.mark.asyncio
async def test_refresh_token_rotates_cookie(client: AsyncClient):
    await create_account("a@test.com")
    first = refresh_cookie(await _authenticate(client, "a@test.com"))
    client.cookies.clear()

    resp = await client.post("/api/v1/accounts/refresh-token", headers=_cookie(first))
    assert resp.status_code == 200
    assert resp.json()["jwt_token"]
    second = refresh_cookie(resp)
    assert second != first

    replay = await client.post("/api/v1/accounts/refresh-token", headers=_cookie(first))
    assert replay.status_code == 400
    assert replay.json()["code"] == "invalid_token"

    resp = await client.post("/api/v1/accounts/refresh-token", headers=_cookie(second))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_refresh_token_without_cookie(client: AsyncClient):
    client.cookies.clear()
    resp = await client.post("/api/v1/accounts/refresh-token")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_revoke_own_token_then_refresh_fails(client: AsyncClient):
    await create_account("a@test.com")
    resp = await _authenticate(client, "a@test.com")
    token, jwt_token = refresh_cookie(resp), resp.json()["jwt_token"]
    client.cookies.clear()

    resp = await client.post(
        "/api/v1/accounts/revoke-token",
        json={"token": token},
        headers={"Authorization": f"Bearer {jwt_token}"},
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Token revoked"

    resp = await client.post("/api/v1/accounts/refresh-token", headers=_cookie(token))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_revoke_other_users_token(client: AsyncClient, user_headers: dict, admin_headers: dict):
    await create_account("victim@test.com")
    token = refresh_cookie(await _authenticate(client, "victim@test.com"))
    client.cookies.clear()

    resp = await client.post("/api/v1/accounts/revoke-token", json={"token": token}, headers=user_headers)
    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthorized"

    resp = await client.post("/api/v1/accounts/revoke-token", json={"token": token}, headers=admin_headers)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_revoke_requires_authentication(client: AsyncClient):
    resp = await client.post("/api/v1/accounts/revoke-token", json={"token": "abc"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_register_verify_and_login(client: AsyncClient, email_sender):
    body = {
        "title": "Ms",
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@test.com",
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "accept_terms": True,
    }
    resp = await client.post("/api/v1/accounts/register", json=body)
    assert resp.status_code == 200
    assert len(email_sender.sent) == 1

    # Same response for an email that is already registered
    again = await client.post("/api/v1/accounts/register", json=body)
    assert again.status_code == 200
    assert again.json() == resp.json()
    assert "Already Registered" in email_sender.sent[1]["subject"]

    assert (await _authenticate(client, "jane@test.com")).status_code == 400

    html = email_sender.sent[0]["html"]
    token = html.split("<code>")[-1].split("</code>")[0]
    resp = await client.post("/api/v1/accounts/verify-email", json={"token": token})
    assert resp.status_code == 200

    resp = await _authenticate(client, "jane@test.com")
    assert resp.status_code == 200
    assert resp.json()["role"] == Role.ADMIN.value


@pytest.mark.asyncio
async def test_register_validation(client: AsyncClient):
    resp = await client.post(
        "/api/v1/accounts/register",
        json={
            "title": "Ms",
            "first_name": "Jane",
            "last_name": "Doe",
            "email": "jane@test.com",
            "password": PASSWORD,
            "confirm_password": "different",
            "accept_terms": True,
        },
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_verify_email_bad_token(client: AsyncClient):
    resp = await client.post("/api/v1/accounts/verify-email", json={"token": "nope"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Verification failed"


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client: AsyncClient, email_sender):
    await create_account("a@test.com")
    resp = await client.post("/api/v1/accounts/forgot-password", json={"email": "a@test.com"})
    assert resp.status_code == 200
    missing = await client.post("/api/v1/accounts/forgot-password", json={"email": "nobody@test.com"})
    assert missing.json() == resp.json()
    assert len(email_sender.sent) == 1

    html = email_sender.sent[0]["html"]
    token = html.split("<code>")[-1].split("</code>")[0]
    resp = await client.post("/api/v1/accounts/validate-reset-token", json={"token": token})
    assert resp.status_code == 200

    resp = await client.post(
        "/api/v1/accounts/reset-password",
        json={"token": token, "password": "new-password", "confirm_password": "new-password"},
    )
    assert resp.status_code == 200
    assert (await _authenticate(client, "a@test.com", "new-password")).status_code == 200

    resp = await client.post("/api/v1/accounts/validate-reset-token", json={"token": token})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_get_all_admin_only(client: AsyncClient, user_headers: dict, admin_headers: dict):
    resp = await client.get("/api/v1/accounts", headers=user_headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"

    resp = await client.get("/api/v1/accounts", headers=admin_headers)
    assert resp.status_code == 200
    assert {a["email"] for a in resp.json()} == {"user@test.com", "admin@test.com"}


@pytest.mark.asyncio
async def test_get_by_id_self_or_admin(client: AsyncClient, user, admin, user_headers: dict):
    user_id, _ = user
    admin_id, admin_token = admin
    assert (await client.get(f"/api/v1/accounts/{user_id}", headers=user_headers)).status_code == 200
    resp = await client.get(f"/api/v1/accounts/{admin_id}", headers=user_headers)
    assert resp.status_code == 401
    resp = await client.get(
        f"/api/v1/accounts/{user_id}", headers={"Authorization": f"Bearer {admin_token}"}
    )
    assert resp.status_code == 200
    assert resp.json()["email"] == "user@test.com"


@pytest.mark.asyncio
async def test_user_cannot_promote_self(client: AsyncClient, user, user_headers: dict):
    user_id, _ = user
    resp = await client.put(f"/api/v1/accounts/{user_id}", json={"role": "Admin"}, headers=user_headers)
    assert resp.status_code == 403
    resp = await client.put(f"/api/v1/accounts/{user_id}", json={"first_name": "Renamed"}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Renamed"


@pytest.mark.asyncio
async def test_admin_create_and_delete(client: AsyncClient, admin_headers: dict):
    resp = await client.post(
        "/api/v1/accounts",
        json={
            "title": "Mr",
            "first_name": "New",
            "last_name": "Hire",
            "email": "hire@test.com",
            "password": PASSWORD,
            "confirm_password": PASSWORD,
            "role": "User",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201
    new_id = resp.json()["id"]
    assert resp.json()["is_verified"] is True

    resp = await client.delete(f"/api/v1/accounts/{new_id}", headers=admin_headers)
    assert resp.status_code == 200
    resp = await client.get(f"/api/v1/accounts/{new_id}", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_deactivation_blocks_existing_access_token(
    client: AsyncClient, user, admin, user_headers: dict, admin_headers: dict
):
    user_id, _ = user
    admin_id, _ = admin
    resp = await client.put(
        f"/api/v1/accounts/{user_id}/status", json={"is_active": False}, headers=admin_headers
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    resp = await client.get(f"/api/v1/accounts/{user_id}", headers=user_headers)
    assert resp.status_code == 403
    assert resp.json()["code"] == "account_deactivated"

    resp = await client.put(
        f"/api/v1/accounts/{admin_id}/status", json={"is_active": False}, headers=admin_headers
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_token_query_parameter_accepted(client: AsyncClient, user):
    user_id, token = user
    resp = await client.get(f"/api/v1/accounts/{user_id}", params={"token": token})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
