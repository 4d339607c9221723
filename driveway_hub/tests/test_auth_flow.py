"""
Integration tests for the authentication flow.

Register -> Login -> Me -> Logout, plus the Tesla connect endpoints.
"""

import pytest

from driveway_hub.app.core.config import settings
from driveway_hub.app.core.jwt import decode_access_token
from driveway_hub.app.core.token_revocation import are_user_tokens_revoked, revoke_all_user_tokens
from driveway_hub.app.models.enums import UserRole

from conftest import auth_headers, make_user

TOKEN_PATH = "/oauth2/v3/token"


async def test_register_then_me(client):
    response = await client.post("/api/auth/register", json={
        "email": "new.host@example.com",
        "first_name": "Nia",
        "last_name": "Host",
        "role": "host",
    })
    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "host"
    assert body["user"]["tesla_connected"] is False

    payload = decode_access_token(body["token"])
    assert payload["sub"] == "new.host@example.com"
    assert payload["role"] == "host"
    assert payload["user_id"] == body["user"]["id"]

    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert response.status_code == 200
    assert response.json()["email"] == "new.host@example.com"


async def test_register_duplicate_email(client, driver):
    response = await client.post("/api/auth/register", json={"email": driver.email})
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


async def test_register_rejects_admin_and_bad_email(client):
    response = await client.post("/api/auth/register", json={"email": "boss@example.com", "role": "admin"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"

    response = await client.post("/api/auth/register", json={"email": "not-an-email"})
    assert response.status_code == 400


async def test_login_existing_user(client, host):
    response = await client.post("/api/auth/login", json={"email": host.email})
    assert response.status_code == 200
    assert response.json()["user"]["id"] == host.id
    assert response.json()["user"]["role"] == "host"


async def test_login_auto_signup_creates_driver(client):
    response = await client.post("/api/auth/login", json={"email": "walk.in@example.com"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "driver"


async def test_login_unknown_email_without_auto_signup(client, mocker):
    mocker.patch.object(settings, "demo_login_auto_signup", False)
    response = await client.post("/api/auth/login", json={"email": "walk.in@example.com"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


async def test_inactive_user(client, db_session):
    user = await make_user(db_session, "gone@example.com", is_active=False)

    response = await client.post("/api/auth/login", json={"email": user.email})
    assert response.status_code == 403

    response = await client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 403


@pytest.mark.parametrize("header", [
    {},
    {"Authorization": "Bearer not-a-jwt"},
    {"Authorization": "Basic abc"},
])
async def test_me_requires_valid_token(client, header):
    response = await client.get("/api/auth/me", headers=header)
    assert response.status_code in (401, 403)


async def test_logout_revokes_token(client, driver, redis_client):
    headers = auth_headers(driver)

    response = await client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert any(key.startswith("blacklist:token:") for key in redis_client.store)


async def test_deleted_user_token_rejected(client, db_session):
    user = await make_user(db_session, "temp@example.com", UserRole.HOST)
    headers = auth_headers(user)
    await db_session.delete(user)
    await db_session.commit()

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401


# --- Tesla connect ---

async def test_tesla_connect_flow(client, tesla_api, driver):
    headers = auth_headers(driver)

    response = await client.get("/api/auth/tesla", headers=headers)
    assert response.status_code == 200
    auth_url = response.json()["auth_url"]
    assert "code_challenge_method=S256" in auth_url
    state = auth_url.split("state=")[1].split("&")[0]

    tesla_api.add("POST", TOKEN_PATH, json_body={
        "access_token": "a", "refresh_token": "r", "expires_in": 3600, "scope": "openid",
    })
    tesla_api.add("GET", "/api/1/vehicles", json_body={"response": [
        {"id": 11, "vehicle_id": 1100, "vin": "5YJ3E1EA7KF317000", "display_name": "Red"},
    ]})

    response = await client.post("/api/auth/tesla/callback", headers=headers, json={"code": "xyz", "state": state})
    assert response.status_code == 200
    assert response.json() == {"connected": True, "vehicles_synced": 1}

    me = (await client.get("/api/auth/me", headers=headers)).json()
    assert me["tesla_connected"] is True

    vehicles = (await client.get("/api/users/vehicles", headers=headers)).json()
    assert [(v["tesla_id"], v["model"]) for v in vehicles] == [("11", "Model 3")]


async def test_tesla_callback_vehicle_sync_failure_keeps_tokens(client, tesla_api, driver):
    headers = auth_headers(driver)
    auth_url = (await client.get("/api/auth/tesla", headers=headers)).json()["auth_url"]
    state = auth_url.split("state=")[1].split("&")[0]
    tesla_api.add("POST", TOKEN_PATH, json_body={"access_token": "a", "refresh_token": "r", "expires_in": 3600})
    tesla_api.add("GET", "/api/1/vehicles", status_code=503, text="upstream down")

    response = await client.post("/api/auth/tesla/callback", headers=headers, json={"code": "xyz", "state": state})

    assert response.json() == {"connected": True, "vehicles_synced": 0}


async def test_tesla_callback_with_foreign_state(client, db_session, driver):
    other = await make_user(db_session, "other@example.com")
    other_url = (await client.get("/api/auth/tesla", headers=auth_headers(other))).json()["auth_url"]
    state = other_url.split("state=")[1].split("&")[0]

    response = await client.post(
        "/api/auth/tesla/callback", headers=auth_headers(driver), json={"code": "xyz", "state": state}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_OAUTH_STATE"


async def test_tesla_token_error_hides_provider_text_outside_development(client, tesla_api, driver, mocker):
    headers = auth_headers(driver)
    auth_url = (await client.get("/api/auth/tesla", headers=headers)).json()["auth_url"]
    state = auth_url.split("state=")[1].split("&")[0]
    tesla_api.add("POST", TOKEN_PATH, status_code=400, text="invalid_grant: code expired")

    mocker.patch.object(settings, "environment", "development")
    response = await client.post("/api/auth/tesla/callback", headers=headers, json={"code": "x", "state": state})
    assert response.status_code == 500
    assert response.json()["code"] == "TESLA_API_ERROR"
    assert response.json()["details"]["error"] == "invalid_grant: code expired"

    auth_url = (await client.get("/api/auth/tesla", headers=headers)).json()["auth_url"]
    state = auth_url.split("state=")[1].split("&")[0]
    mocker.patch.object(settings, "environment", "production")
    response = await client.post("/api/auth/tesla/callback", headers=headers, json={"code": "x", "state": state})
    assert response.status_code == 500
    assert "error" not in response.json()["details"]


async def test_logout_all_revokes_every_device(client, driver):
    phone = auth_headers(driver)
    laptop = auth_headers(driver)

    response = await client.post("/api/auth/logout-all", headers=phone)
    assert response.status_code == 200

    assert (await client.get("/api/auth/me", headers=phone)).status_code == 401
    assert (await client.get("/api/auth/me", headers=laptop)).status_code == 401

    # Signing in again afterwards works
    token = (await client.post("/api/auth/login", json={"email": driver.email})).json()["token"]
    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


async def test_user_wide_revocation_cutoff(redis_client):
    assert not await are_user_tokens_revoked(redis_client, 7, 1000.0)

    assert await revoke_all_user_tokens(redis_client, 7, now=1000.5)

    assert await are_user_tokens_revoked(redis_client, 7, 1000.0)
    assert await are_user_tokens_revoked(redis_client, 7, None)
    assert not await are_user_tokens_revoked(redis_client, 7, 1000.6)
    assert not await are_user_tokens_revoked(redis_client, 8, 1000.0)
