"""Tests for property inventory, status transitions and lead links."""

import uuid

import pytest
from sqlalchemy import select

from app.models.audit_log import AuditLog
from app.models.lead import Lead
from app.models.property import Property

EDIT_KEYS = ["property.edit", "property.view"]


def _status_url(prop):
    return f"/api/v1/inventory/properties/{prop.id}/status"


@pytest.mark.asyncio
async def test_reserve_assigns_single_owner(client, db, org, make_user, auth_headers, leads, available_property):
    user = await make_user(org, EDIT_KEYS)
    first, second = leads[0], leads[1]

    resp = await client.patch(_status_url(available_property), headers=auth_headers(user), json={
        "status": "reserved",
        "lead_id": str(first.id),
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["property"]["status"] == "reserved"
    assert data["message"] == "Property status updated successfully"
    assert data["projectMetrics"] == {
        "total_units": 1,
        "available_units": 0,
        "reserved_units": 1,
        "sold_units": 0,
    }

    resp = await client.patch(_status_url(available_property), headers=auth_headers(user), json={
        "status": "sold",
        "lead_id": str(second.id),
    })
    assert resp.status_code == 200
    assert resp.json()["projectMetrics"]["sold_units"] == 1

    owners = (await db.execute(
        select(Lead.id).where(Lead.property_id == available_property.id)
    )).scalars().all()
    assert owners == [second.id]


@pytest.mark.asyncio
async def test_available_clears_every_link(client, db, org, make_user, auth_headers, leads, available_property):
    user = await make_user(org, EDIT_KEYS)
    leads[0].property_id = available_property.id
    available_property.status = "reserved"
    await db.commit()

    resp = await client.patch(_status_url(available_property), headers=auth_headers(user), json={
        "status": "available",
        "lead_id": str(leads[1].id),
    })
    assert resp.status_code == 200

    linked = (await db.execute(
        select(Lead).where(Lead.property_id == available_property.id)
    )).scalars().all()
    assert linked == []
    assert resp.json()["projectMetrics"]["available_units"] == 1


@pytest.mark.asyncio
async def test_invalid_status_is_400(client, org, make_user, auth_headers, available_property):
    user = await make_user(org, EDIT_KEYS)

    resp = await client.patch(_status_url(available_property), headers=auth_headers(user), json={"status": "leased"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid status. Must be: available, reserved, or sold"


@pytest.mark.asyncio
async def test_other_org_property_is_404(client, other_org, make_user, auth_headers, available_property):
    outsider = await make_user(other_org, EDIT_KEYS)

    resp = await client.patch(_status_url(available_property), headers=auth_headers(outsider), json={"status": "sold"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Property not found"


@pytest.mark.asyncio
async def test_other_org_lead_is_404_and_nothing_changes(client, db, org, other_org, make_user, auth_headers, available_property):
    user = await make_user(org, EDIT_KEYS)
    foreign = Lead(organization_id=other_org.id, name="Outsider")
    db.add(foreign)
    await db.commit()

    resp = await client.patch(_status_url(available_property), headers=auth_headers(user), json={
        "status": "reserved",
        "lead_id": str(foreign.id),
    })
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Lead not found"

    await db.refresh(available_property)
    assert available_property.status == "available"


@pytest.mark.asyncio
async def test_unknown_lead_is_404(client, org, make_user, auth_headers, available_property):
    user = await make_user(org, EDIT_KEYS)

    resp = await client.patch(_status_url(available_property), headers=auth_headers(user), json={
        "status": "sold",
        "lead_id": str(uuid.uuid4()),
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_status_change_is_audited(client, db, org, make_user, auth_headers, available_property):
    user = await make_user(org, EDIT_KEYS)

    await client.patch(_status_url(available_property), headers=auth_headers(user), json={"status": "sold"})

    entry = (await db.execute(select(AuditLog))).scalar_one()
    assert entry.action == "property.status_changed"
    assert entry.details["status"] == "sold"


@pytest.mark.asyncio
async def test_status_requires_edit_permission(client, org, make_user, auth_headers, available_property):
    viewer = await make_user(org, ["property.view"])

    resp = await client.patch(_status_url(available_property), headers=auth_headers(viewer), json={"status": "sold"})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_link_and_unlink_property(client, db, org, project, make_user, auth_headers, available_property):
    user = await make_user(org, ["edit_all_leads"])
    lead = Lead(organization_id=org.id, name="Kiran")
    db.add(lead)
    await db.commit()

    resp = await client.post(
        f"/api/v1/leads/{lead.id}/link-property",
        headers=auth_headers(user),
        json={"property_id": str(available_property.id)},
    )
    assert resp.status_code == 200
    assert resp.json()["property_id"] == str(available_property.id)
    assert resp.json()["project_id"] == str(project.id)

    await db.refresh(available_property)
    assert available_property.status == "reserved"

    resp = await client.post(f"/api/v1/leads/{lead.id}/unlink-property", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["property_id"] is None
    assert resp.json()["project_id"] == str(project.id)

    await db.refresh(available_property)
    assert available_property.status == "available"


@pytest.mark.asyncio
async def test_link_moves_ownership(client, db, org, make_user, auth_headers, leads, available_property):
    user = await make_user(org, ["edit_all_leads"])
    leads[0].property_id = available_property.id
    await db.commit()

    resp = await client.post(
        f"/api/v1/leads/{leads[2].id}/link-property",
        headers=auth_headers(user),
        json={"property_id": str(available_property.id)},
    )
    assert resp.status_code == 200

    await db.refresh(leads[0])
    assert leads[0].property_id is None


@pytest.mark.asyncio
async def test_list_properties_filters(client, db, org, project, make_user, auth_headers):
    user = await make_user(org, ["property.view"])
    db.add_all([
        Property(organization_id=org.id, project_id=project.id, title="A-101", status="available", property_type="flat", price=5000000),
        Property(organization_id=org.id, project_id=project.id, title="V-7", status="sold", property_type="villa", price=25000000),
    ])
    await db.commit()

    flats = await client.get("/api/v1/inventory/properties?type=flat", headers=auth_headers(user))
    assert [p["title"] for p in flats.json()] == ["A-101"]

    pricey = await client.get("/api/v1/inventory/properties?min_price=10000000", headers=auth_headers(user))
    assert [p["title"] for p in pricey.json()] == ["V-7"]

    sold = await client.get("/api/v1/inventory/properties?status=sold", headers=auth_headers(user))
    assert len(sold.json()) == 1


@pytest.mark.asyncio
async def test_project_stats_counts_units(client, db, org, project, make_user, auth_headers, leads, campaign):
    user = await make_user(org, ["project.view", "property.edit"])
    await client.post("/api/v1/inventory/properties", headers=auth_headers(user), json={
        "title": "B-202", "project_id": str(project.id),
    })
    await client.post("/api/v1/inventory/properties", headers=auth_headers(user), json={
        "title": "B-203", "project_id": str(project.id), "status": "sold",
    })

    resp = await client.get(f"/api/v1/projects/{project.id}/stats", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json() == {
        "leads": 3,
        "campaigns": 1,
        "properties": 2,
        "total_units": 2,
        "available_units": 1,
        "reserved_units": 0,
        "sold_units": 1,
    }
