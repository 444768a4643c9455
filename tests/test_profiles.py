"""Tests for the profile cache and team management."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update

from app.main import app
from app.models.user import User
from app.services import profiles
from app.services.permissions import has_permission
from app.services.profiles import get_profile, update_profile


@pytest.mark.asyncio
async def test_get_profile_is_cached(db, org, make_user):
    user = await make_user(org, full_name="Asha Rao")

    first = await get_profile(db, user.id)
    await db.execute(update(User).where(User.id == user.id).values(full_name="Changed Behind Cache"))
    await db.commit()
    second = await get_profile(db, user.id)

    assert first["full_name"] == "Asha Rao"
    assert second["full_name"] == "Asha Rao"

    refreshed = await get_profile(db, user.id, force_refresh=True)
    assert refreshed["full_name"] == "Changed Behind Cache"


@pytest.mark.asyncio
async def test_update_profile_invalidates(db, org, make_user):
    user = await make_user(org, full_name="Ravi")
    await get_profile(db, user.id)

    await update_profile(db, user.id, org.id, {"full_name": "Ravi Kumar"})

    assert (await get_profile(db, user.id))["full_name"] == "Ravi Kumar"


@pytest.mark.asyncio
async def test_update_profile_rejects_unknown_field(db, org, make_user):
    user = await make_user(org)

    with pytest.raises(ValueError):
        await update_profile(db, user.id, org.id, {"is_platform_admin": True})


@pytest.mark.asyncio
async def test_update_profile_other_org_is_none(db, org, other_org, make_user):
    user = await make_user(org)
    assert await update_profile(db, user.id, other_org.id, {"full_name": "x"}) is None


@pytest.mark.asyncio
async def test_cached_profile_expires(db, org, make_user):
    user = await make_user(org, full_name="Meera")
    await get_profile(db, user.id)
    await db.execute(update(User).where(User.id == user.id).values(full_name="Meera S"))
    await db.commit()

    cached_at, snapshot = profiles._profile_cache[user.id]
    profiles._profile_cache[user.id] = (cached_at - timedelta(seconds=301), snapshot)

    assert (await get_profile(db, user.id))["full_name"] == "Meera S"


@pytest.mark.asyncio
async def test_cache_ttl_setting(db, org, make_user):
    user = await make_user(org, full_name="Kiran")
    with patch("app.core.config.settings.PROFILE_CACHE_TTL_SECONDS", 0):
        await get_profile(db, user.id)
        await db.execute(update(User).where(User.id == user.id).values(full_name="Kiran P"))
        await db.commit()
        assert (await get_profile(db, user.id))["full_name"] == "Kiran P"


@pytest.mark.asyncio
async def test_deactivation_revokes_permissions(client, db, org, make_user, auth_headers):
    admin = await make_user(org, ["team.manage", "team.view"])
    agent = await make_user(org, ["campaign.view"])
    assert await has_permission(db, agent.id, "campaign.view") is True

    resp = await client.post(f"/api/v1/users/{agent.id}/toggle-active", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json()["is_active"] is False
    assert await has_permission(db, agent.id, "campaign.view") is False


@pytest.mark.asyncio
async def test_cannot_deactivate_self(client, org, make_user, auth_headers):
    admin = await make_user(org, ["team.manage"])

    resp = await client.post(f"/api/v1/users/{admin.id}/toggle-active", headers=auth_headers(admin))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_user_rejects_foreign_role(client, db, org, other_org, make_user, auth_headers):
    admin = await make_user(org, ["team.manage"])
    agent = await make_user(org)
    outsider = await make_user(other_org, role_name="Theirs")

    resp = await client.patch(
        f"/api/v1/users/{agent.id}", headers=auth_headers(admin), json={"role_id": str(outsider.role_id)}
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Role not found"


@pytest.mark.asyncio
async def test_list_users_scoped_to_org(client, org, other_org, make_user, auth_headers):
    admin = await make_user(org, ["team.view"])
    await make_user(org)
    await make_user(other_org)

    resp = await client.get("/api/v1/users", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_unexpected_error_is_generic_500(org, make_user, auth_headers):
    user = await make_user(org, ["campaign.view"])
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    with patch("app.services.campaigns.list_campaigns", side_effect=RuntimeError("secret details")):
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.get("/api/v1/campaigns", headers=auth_headers(user))

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal server error"}
    assert "secret" not in resp.text
