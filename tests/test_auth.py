"""Tests for authentication endpoints."""

import pytest
from datetime import timedelta
from app.services.auth import hash_password, verify_password, create_access_token, decode_access_token


def test_password_hashing():
    """Password hashing should be one-way and verifiable."""
    password = "supersecret123"
    hashed = hash_password(password)

    assert hashed != password
    assert verify_password(password, hashed) is True
    assert verify_password("wrongpassword", hashed) is False


def test_expired_token_is_rejected():
    class _Profile:
        id = "00000000-0000-0000-0000-000000000001"
        organization_id = None

    token = create_access_token(_Profile(), expires_delta=timedelta(seconds=-1))
    assert decode_access_token(token) is None


@pytest.mark.asyncio
async def test_login_returns_token(client, org, make_user):
    user = await make_user(org, ["campaign.view"], email="agent@example.com", password="testpass123")

    resp = await client.post("/api/v1/auth/login", json={
        "email": "agent@example.com",
        "password": "testpass123",
    })

    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["user_id"] == str(user.id)
    assert data["organization_id"] == str(org.id)
    assert decode_access_token(data["access_token"])["sub"] == str(user.id)


@pytest.mark.asyncio
async def test_login_wrong_password(client, org, make_user):
    await make_user(org, email="agent@example.com", password="testpass123")

    resp = await client.post("/api/v1/auth/login", json={
        "email": "agent@example.com",
        "password": "nope-nope",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_disabled_user(client, org, make_user):
    await make_user(org, email="gone@example.com", password="testpass123", is_active=False)

    resp = await client.post("/api/v1/auth/login", json={
        "email": "gone@example.com",
        "password": "testpass123",
    })
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_me_lists_permissions(client, org, make_user, auth_headers):
    user = await make_user(org, ["campaign.run", "campaign.view"], role_name="Manager")

    resp = await client.get("/api/v1/auth/me", headers=auth_headers(user))

    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == user.email
    assert data["role"] == "Manager"
    assert data["permissions"] == ["campaign.run", "campaign.view"]


@pytest.mark.asyncio
async def test_protected_route_without_token(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_with_garbage_token(client):
    resp = await client.get("/api/v1/permissions/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_disabled_user_token_forbidden(client, org, make_user, auth_headers):
    user = await make_user(org, ["campaign.view"], is_active=False)

    resp = await client.get("/api/v1/auth/me", headers=auth_headers(user))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
