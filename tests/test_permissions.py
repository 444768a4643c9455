"""Tests for permission resolution and permission-gated routes."""

import uuid
import pytest
from unittest.mock import patch, AsyncMock

from app.models.user import User
from app.services.permissions import (
    AccessScope,
    get_user_permissions,
    has_any_permission,
    has_permission,
    resolve_scope,
)


@pytest.mark.asyncio
async def test_has_permission_from_role(db, org, make_user):
    user = await make_user(org, ["campaign.run"])

    assert await has_permission(db, user.id, "campaign.run") is True
    assert await has_permission(db, user.id, "campaign.delete") is False


@pytest.mark.asyncio
async def test_has_any_permission(db, org, make_user):
    user = await make_user(org, ["edit_own_leads"])

    assert await has_any_permission(db, user.id, ["edit_all_leads", "edit_own_leads"]) is True
    assert await has_any_permission(db, user.id, ["edit_all_leads", "edit_team_leads"]) is False


@pytest.mark.asyncio
async def test_platform_admin_holds_everything(db, org, make_user):
    user = await make_user(org, [], is_platform_admin=True)

    assert await has_permission(db, user.id, "audit.view") is True
    assert await get_user_permissions(db, user.id) == ["*"]


@pytest.mark.asyncio
async def test_missing_profile_is_denied(db):
    assert await has_permission(db, uuid.uuid4(), "campaign.run") is False
    assert await get_user_permissions(db, uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_profile_without_role_is_denied(db, org):
    user = User(email="norole@example.com", hashed_password="x", organization_id=org.id)
    db.add(user)
    await db.commit()

    assert await has_permission(db, user.id, "campaign.view") is False


@pytest.mark.asyncio
async def test_inactive_profile_is_denied(db, org, make_user):
    user = await make_user(org, ["campaign.run"], is_active=False)
    assert await has_permission(db, user.id, "campaign.run") is False


@pytest.mark.asyncio
async def test_lookup_failure_never_raises(db, org, make_user):
    """A database error resolves to False instead of propagating."""
    user = await make_user(org, ["campaign.run"])

    with patch.object(db, "execute", AsyncMock(side_effect=RuntimeError("connection reset"))):
        assert await has_permission(db, user.id, "campaign.run") is False
        assert await get_user_permissions(db, user.id) == []


@pytest.mark.asyncio
async def test_empty_inputs_are_denied(db):
    assert await has_permission(db, None, "campaign.run") is False
    assert await has_permission(db, uuid.uuid4(), "") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("permissions,expected", [
    (["edit_all_leads", "edit_own_leads"], AccessScope.ALL),
    (["edit_team_leads"], AccessScope.TEAM),
    (["edit_own_leads"], AccessScope.OWN),
    (["view_all_leads"], AccessScope.NONE),
])
async def test_resolve_scope(db, org, make_user, permissions, expected):
    user = await make_user(org, permissions)
    scope = await resolve_scope(db, user.id, "edit_all_leads", "edit_team_leads", "edit_own_leads")
    assert scope == expected


@pytest.mark.asyncio
async def test_route_requires_permission(client, org, make_user, auth_headers):
    user = await make_user(org, ["campaign.view"])

    resp = await client.get("/api/v1/audit", headers=auth_headers(user))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_permissions_me(client, org, make_user, auth_headers):
    user = await make_user(org, ["deal.view", "audit.view"])

    resp = await client.get("/api/v1/permissions/me", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["permissions"] == ["audit.view", "deal.view"]
