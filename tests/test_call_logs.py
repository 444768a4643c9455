"""Tests for call log, deal and audit endpoints."""

import pytest

from app.models.call_log import CallLog
from app.models.campaign import Campaign
from app.models.lead import Lead
from app.models.project import Project
from app.models.property import Property


@pytest.mark.asyncio
async def test_list_and_filter_call_logs(client, db, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, ["call_log.view"])
    db.add_all([
        CallLog(organization_id=org.id, campaign_id=campaign.id, lead_id=leads[0].id, call_status="transferred", transferred=True, duration=40),
        CallLog(organization_id=org.id, campaign_id=campaign.id, lead_id=leads[1].id, call_status="no_answer", duration=20),
    ])
    await db.commit()

    all_logs = await client.get("/api/v1/call-logs", headers=auth_headers(user))
    assert len(all_logs.json()) == 2

    transferred = await client.get("/api/v1/call-logs?transferred=true", headers=auth_headers(user))
    assert [log["lead_id"] for log in transferred.json()] == [str(leads[0].id)]

    stats = (await client.get("/api/v1/call-logs/stats", headers=auth_headers(user))).json()
    assert stats["total_calls"] == 2
    assert stats["transferred"] == 1
    assert stats["by_status"] == {"transferred": 1, "no_answer": 1}
    assert stats["average_duration"] == 30.0
    assert stats["transfer_rate"] == 50.0


@pytest.mark.asyncio
async def test_call_log_metadata_is_exposed(client, db, org, make_user, auth_headers):
    user = await make_user(org, ["call_log.view"])
    log = CallLog(organization_id=org.id, call_sid="call-m", call_metadata={"hangup_cause": "NORMAL_CLEARING"})
    db.add(log)
    await db.commit()

    resp = await client.get(f"/api/v1/call-logs/{log.id}", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["metadata"] == {"hangup_cause": "NORMAL_CLEARING"}


@pytest.mark.asyncio
async def test_other_org_call_log_is_404(client, db, org, other_org, make_user, auth_headers):
    outsider = await make_user(other_org, ["call_log.view"])
    log = CallLog(organization_id=org.id, call_sid="call-x")
    db.add(log)
    await db.commit()

    resp = await client.get(f"/api/v1/call-logs/{log.id}", headers=auth_headers(outsider))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_lead_call_history(client, db, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, ["call_log.view"])
    db.add(CallLog(organization_id=org.id, campaign_id=campaign.id, lead_id=leads[2].id, call_status="called"))
    await db.commit()

    resp = await client.get(f"/api/v1/leads/{leads[2].id}/call-logs", headers=auth_headers(user))
    assert resp.status_code == 200
    assert len(resp.json()) == 1


@pytest.mark.asyncio
async def test_deal_lifecycle(client, org, make_user, auth_headers, leads):
    user = await make_user(org, ["deal.view", "deal.edit"])
    headers = auth_headers(user)

    created = await client.post("/api/v1/deals", headers=headers, json={
        "lead_id": str(leads[0].id),
        "title": "Tower A 1204",
        "amount": "7500000",
    })
    assert created.status_code == 201
    deal_id = created.json()["id"]
    assert created.json()["status"] == "open"

    won = await client.patch(f"/api/v1/deals/{deal_id}", headers=headers, json={"status": "won"})
    assert won.json()["status"] == "won"

    bad = await client.patch(f"/api/v1/deals/{deal_id}", headers=headers, json={"status": "maybe"})
    assert bad.status_code == 400

    deleted = await client.delete(f"/api/v1/deals/{deal_id}", headers=headers)
    assert deleted.status_code == 204
    assert (await client.get(f"/api/v1/deals/{deal_id}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_deal_for_other_org_lead_is_404(client, db, org, other_org, make_user, auth_headers):
    user = await make_user(org, ["deal.edit"])
    foreign = Lead(organization_id=other_org.id, name="Outsider")
    db.add(foreign)
    await db.commit()

    resp = await client.post("/api/v1/deals", headers=auth_headers(user), json={
        "lead_id": str(foreign.id),
        "title": "Sneaky",
    })
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Lead not found"


@pytest.mark.asyncio
async def test_audit_trail_listing(client, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, ["campaign.run", "audit.view"])
    headers = auth_headers(user)
    await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=headers)

    resp = await client.get("/api/v1/audit?action=campaign.calls_simulated", headers=headers)
    assert resp.status_code == 200
    entries = resp.json()
    assert len(entries) == 1
    assert entries[0]["entity_id"] == str(campaign.id)


@pytest.mark.asyncio
async def test_create_and_update_call_log(client, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, ["call_log.edit", "call_log.view"])
    headers = auth_headers(user)

    created = await client.post("/api/v1/call-logs", headers=headers, json={
        "campaign_id": str(campaign.id),
        "lead_id": str(leads[0].id),
        "duration": 95,
        "notes": "Asked for a site visit",
    })
    assert created.status_code == 201
    assert created.json()["organization_id"] == str(org.id)
    assert created.json()["direction"] == "outbound"

    updated = await client.patch(
        f"/api/v1/call-logs/{created.json()['id']}", headers=headers, json={"transcript": "Hi, this is Asha..."}
    )
    assert updated.status_code == 200
    assert updated.json()["transcript"] == "Hi, this is Asha..."
    assert updated.json()["duration"] == 95


@pytest.mark.asyncio
async def test_create_call_log_for_other_org_lead_is_404(client, db, org, other_org, make_user, auth_headers):
    user = await make_user(org, ["call_log.edit"])
    foreign = Lead(organization_id=other_org.id, name="Outsider")
    db.add(foreign)
    await db.commit()

    resp = await client.post("/api/v1/call-logs", headers=auth_headers(user), json={"lead_id": str(foreign.id)})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_call_log_for_other_org_campaign_is_404(client, db, org, other_org, make_user, auth_headers, leads):
    user = await make_user(org, ["call_log.edit"])
    foreign_project = Project(organization_id=other_org.id, name="Their Tower")
    db.add(foreign_project)
    await db.flush()
    foreign = Campaign(organization_id=other_org.id, project_id=foreign_project.id, name="Their Campaign")
    db.add(foreign)
    await db.commit()

    resp = await client.post("/api/v1/call-logs", headers=auth_headers(user), json={
        "lead_id": str(leads[0].id),
        "campaign_id": str(foreign.id),
    })
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Campaign not found"


@pytest.mark.asyncio
async def test_deal_with_other_org_property_is_404(client, db, org, other_org, make_user, auth_headers, leads, available_property):
    user = await make_user(org, ["deal.edit"])
    headers = auth_headers(user)
    foreign = Property(organization_id=other_org.id, title="Their Villa", status="available")
    db.add(foreign)
    await db.commit()

    resp = await client.post("/api/v1/deals", headers=headers, json={
        "lead_id": str(leads[0].id),
        "title": "Villa",
        "property_id": str(foreign.id),
    })
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Property not found"

    created = await client.post("/api/v1/deals", headers=headers, json={
        "lead_id": str(leads[0].id),
        "title": "Unit",
        "property_id": str(available_property.id),
    })
    assert created.status_code == 201

    resp = await client.patch(
        f"/api/v1/deals/{created.json()['id']}", headers=headers, json={"property_id": str(foreign.id)}
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Property not found"
