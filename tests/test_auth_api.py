import pytest
from sqlalchemy import update

from app.models.user import User
from tests.conftest import DEFAULT_PASSWORD

API = "/api/v1/auth"


def _registration(email="jane@example.com", **overrides):
    payload = {
        "email": email,
        "password": "Passw0rd",
        "firstName": "Jane",
        "lastName": "Doe",
        "phone": "+91 98765 43210",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_register_returns_token_and_user(client):
    r = await client.post(f"{API}/register", json=_registration(email="Jane@Example.COM"))
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["data"]["token"]
    user = body["data"]["user"]
    assert user["email"] == "jane@example.com"
    assert user["role"] == "customer"
    assert "hashedPassword" not in user and "hashed_password" not in user


@pytest.mark.asyncio
async def test_register_duplicate_email_is_conflict(client):
    await client.post(f"{API}/register", json=_registration())
    r = await client.post(f"{API}/register", json=_registration(email="JANE@example.com"))
    assert r.status_code == 409
    assert r.json()["success"] is False
    assert r.json()["message"] == "User already exists with this email"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"password": "short"},
        {"password": "alllowercase1"},
        {"firstName": " J "},
        {"email": "not-an-email"},
        {"phone": "call me"},
    ],
)
async def test_register_validation(client, overrides):
    r = await client.post(f"{API}/register", json=_registration(**overrides))
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["errors"]


@pytest.mark.asyncio
async def test_register_technician(client):
    r = await client.post(
        f"{API}/register-technician",
        json=_registration(email="tech@example.com", skills=["smartphones", " laptops ", ""]),
    )
    assert r.status_code == 201
    user = r.json()["data"]["user"]
    assert user["role"] == "technician"
    assert user["skills"] == ["smartphones", "laptops"]
    assert user["isVerified"] is False
    assert user["rating"] == 0.0


@pytest.mark.asyncio
async def test_login(client, make_user):
    await make_user(email="login@example.com")

    r = await client.post(f"{API}/login", json={"email": "LOGIN@example.com", "password": DEFAULT_PASSWORD})
    assert r.status_code == 200
    token = r.json()["data"]["token"]

    r = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["data"]["email"] == "login@example.com"


@pytest.mark.asyncio
async def test_login_failures_look_the_same(client, make_user):
    await make_user(email="known@example.com")

    wrong_password = await client.post(f"{API}/login", json={"email": "known@example.com", "password": "Nope1234"})
    unknown_email = await client.post(f"{API}/login", json={"email": "ghost@example.com", "password": "Nope1234"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json()["message"] == unknown_email.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_login_deactivated_account(client, make_user, session_factory):
    user = await make_user(email="gone@example.com")
    async with session_factory() as session:
        await session.execute(update(User).where(User.id == user.id).values(is_active=False))
        await session.commit()

    r = await client.post(f"{API}/login", json={"email": "gone@example.com", "password": DEFAULT_PASSWORD})
    assert r.status_code == 401
    assert r.json()["message"] == "Account is deactivated"


@pytest.mark.asyncio
async def test_me_requires_token(client):
    r = await client.get(f"{API}/me")
    assert r.status_code == 401
    assert r.json()["message"] == "Access token is required"
    assert r.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_rejects_malformed_header(client, make_user):
    user = await make_user()
    r = await client.get(f"{API}/me", headers={"Authorization": f"Token {user.token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid authorization header format. Expected: Bearer <token>"


@pytest.mark.asyncio
async def test_me_rejects_garbage_token(client):
    r = await client.get(f"{API}/me", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401
    assert r.json()["error_code"] == "TOKEN_MALFORMED"


@pytest.mark.asyncio
async def test_token_outliving_account_is_forbidden(client, make_user, session_factory):
    user = await make_user()
    async with session_factory() as session:
        await session.execute(update(User).where(User.id == user.id).values(is_active=False))
        await session.commit()

    r = await client.get(f"{API}/me", headers=user.headers)
    assert r.status_code == 403
    assert r.json()["error_code"] == "ACCOUNT_DEACTIVATED"


@pytest.mark.asyncio
async def test_logout_is_acknowledged(client, make_user):
    user = await make_user()
    r = await client.post(f"{API}/logout", headers=user.headers)
    assert r.status_code == 200
    assert r.json()["success"] is True


@pytest.mark.asyncio
async def test_update_profile(client, make_user):
    user = await make_user()
    r = await client.put(f"{API}/profile", headers=user.headers, json={"firstName": "  Priya ", "phone": "9876543210"})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["firstName"] == "Priya"
    assert data["phone"] == "9876543210"
    assert data["lastName"] == user.last_name

    r = await client.put(f"{API}/profile", headers=user.headers, json={"lastName": "X"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_change_password(client, make_user):
    user = await make_user(email="pw@example.com")

    r = await client.post(
        f"{API}/change-password",
        headers=user.headers,
        json={"currentPassword": "Wrong123", "newPassword": "Another1"},
    )
    assert r.status_code == 401

    r = await client.post(
        f"{API}/change-password",
        headers=user.headers,
        json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "Another1"},
    )
    assert r.status_code == 200

    r = await client.post(f"{API}/login", json={"email": "pw@example.com", "password": "Another1"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_register_is_rate_limited(client):
    for i in range(5):
        r = await client.post(f"{API}/register", json=_registration(email=f"user{i}@example.com"))
        assert r.status_code == 201

    r = await client.post(f"{API}/register", json=_registration(email="user5@example.com"))
    assert r.status_code == 429
    assert r.json()["message"] == "Too many requests. Please try again later."
