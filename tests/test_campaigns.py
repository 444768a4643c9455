"""Tests for campaigns and the call-simulation run."""

import random
from collections import Counter
from unittest.mock import patch, AsyncMock

import pytest
from sqlalchemy import select

from app.models.audit_log import AuditLog
from app.models.call_log import CallLog
from app.models.campaign import Campaign
from app.models.lead import Lead
from app.services.audit_service import log_audit
from app.services.campaigns import (
    OUTCOMES,
    TOTAL_WEIGHT,
    MIN_SIMULATED_DURATION,
    MAX_SIMULATED_DURATION,
    pick_outcome,
)

RUN_KEYS = ["campaign.run", "campaign.view"]


def test_outcome_weights_cover_one_hundred():
    assert TOTAL_WEIGHT == 100
    assert [o.status for o in OUTCOMES] == ["called", "transferred", "no_answer", "voicemail"]


def test_pick_outcome_boundaries():
    assert pick_outcome(0).status == "called"
    assert pick_outcome(29.999).status == "called"
    assert pick_outcome(30).status == "transferred"
    assert pick_outcome(54.999).status == "transferred"
    assert pick_outcome(55).status == "no_answer"
    assert pick_outcome(80).status == "voicemail"
    assert pick_outcome(99.999).status == "voicemail"


def test_pick_outcome_exact_distribution():
    """Sweeping the draw range hits each outcome in proportion to its weight."""
    counts = Counter(pick_outcome(draw).status for draw in range(TOTAL_WEIGHT))
    assert counts == {"called": 30, "transferred": 25, "no_answer": 25, "voicemail": 20}


def test_only_transferred_outcome_sets_flag():
    flagged = [o.status for o in OUTCOMES if o.transferred]
    assert flagged == ["transferred"]


def test_seeded_draws_follow_weights():
    rng = random.Random(1234)
    counts = Counter(pick_outcome(rng.random() * TOTAL_WEIGHT).status for _ in range(20000))
    assert abs(counts["called"] / 20000 - 0.30) < 0.02
    assert abs(counts["transferred"] / 20000 - 0.25) < 0.02
    assert abs(counts["no_answer"] / 20000 - 0.25) < 0.02
    assert abs(counts["voicemail"] / 20000 - 0.20) < 0.02


@pytest.mark.asyncio
async def test_simulate_calls(client, db, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, RUN_KEYS)

    # Replay the same seed to know which outcome each lead should get
    expected_rng = random.Random(42)
    expected = []
    for _ in leads:
        expected.append(pick_outcome(expected_rng.random() * TOTAL_WEIGHT))
        expected_rng.randrange(MIN_SIMULATED_DURATION, MAX_SIMULATED_DURATION)
    expected_transferred = sum(1 for o in expected if o.transferred)

    with patch("app.services.campaigns._rng", random.Random(42)):
        resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(user))

    assert resp.status_code == 200
    data = resp.json()
    summary = data["summary"]
    assert summary["totalCalls"] == 3
    assert summary["transferredCalls"] == expected_transferred
    assert summary["conversionRate"] == f"{expected_transferred / 3 * 100:.2f}"
    assert [r["outcome"] for r in summary["results"]] == [o.status for o in expected]
    assert {r["leadName"] for r in summary["results"]} == {"Asha", "Ravi", "Meera"}

    assert data["campaign"]["status"] == "completed"
    assert data["campaign"]["total_calls"] == 3
    assert data["campaign"]["transferred_calls"] == expected_transferred

    logs = (await db.execute(select(CallLog).where(CallLog.campaign_id == campaign.id))).scalars().all()
    assert len(logs) == 3
    for log in logs:
        assert log.direction == "outbound"
        assert log.notes == f"Simulated: {log.call_status}"
        assert log.transferred == (log.call_status == "transferred")
        assert MIN_SIMULATED_DURATION <= log.duration < MAX_SIMULATED_DURATION

    for lead in leads:
        await db.refresh(lead)
        assert lead.last_contacted_at is not None
    assert sum(1 for lead in leads if lead.transferred_to_human) == expected_transferred


@pytest.mark.asyncio
async def test_simulate_accumulates_totals(client, db, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, RUN_KEYS)

    await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(user))
    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(user))

    assert resp.status_code == 200
    assert resp.json()["campaign"]["total_calls"] == 6


@pytest.mark.asyncio
async def test_simulate_writes_audit_entry(client, db, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, RUN_KEYS)

    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(user))
    assert resp.status_code == 200

    entry = (await db.execute(select(AuditLog).where(AuditLog.action == "campaign.calls_simulated"))).scalar_one()
    assert entry.entity_type == "campaign"
    assert entry.entity_id == str(campaign.id)
    assert entry.user_id == user.id
    assert entry.details["total_calls"] == 3


@pytest.mark.asyncio
async def test_simulate_other_org_campaign_is_404(client, db, org, other_org, make_user, auth_headers, campaign, leads):
    outsider = await make_user(other_org, RUN_KEYS)

    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(outsider))
    assert resp.status_code == 404

    count = (await db.execute(select(CallLog))).scalars().all()
    assert count == []


@pytest.mark.asyncio
async def test_simulate_without_leads_is_400(client, db, org, make_user, auth_headers, campaign):
    user = await make_user(org, RUN_KEYS)

    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(user))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No leads found for this campaign's project"

    await db.refresh(campaign)
    assert campaign.status == "draft"


@pytest.mark.asyncio
async def test_simulate_requires_run_permission(client, db, org, make_user, auth_headers, campaign, leads):
    viewer = await make_user(org, ["campaign.view"])

    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(viewer))
    assert resp.status_code == 403

    logs = (await db.execute(select(CallLog))).scalars().all()
    assert logs == []


@pytest.mark.asyncio
async def test_simulate_ignores_leads_from_other_projects(client, db, org, make_user, auth_headers, campaign, leads):
    db.add(Lead(organization_id=org.id, name="No Project"))
    await db.commit()
    user = await make_user(org, RUN_KEYS)

    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=auth_headers(user))
    assert resp.json()["summary"]["totalCalls"] == 3


@pytest.mark.asyncio
async def test_audit_failure_is_swallowed(db, org, make_user):
    user = await make_user(org, RUN_KEYS)

    with patch.object(db, "commit", AsyncMock(side_effect=RuntimeError("disk full"))):
        entry = await log_audit(db, user, "campaign.calls_simulated", "campaign", "abc")

    assert entry is None
    assert (await db.execute(select(AuditLog))).scalars().all() == []


@pytest.mark.asyncio
async def test_create_campaign_draft_or_scheduled(client, org, make_user, auth_headers, project):
    user = await make_user(org, ["campaign.create"])

    draft = await client.post("/api/v1/campaigns", headers=auth_headers(user), json={
        "project_id": str(project.id),
        "name": "Weekend",
    })
    scheduled = await client.post("/api/v1/campaigns", headers=auth_headers(user), json={
        "project_id": str(project.id),
        "name": "Diwali",
        "start_date": "2026-11-01",
    })

    assert draft.status_code == 201
    assert draft.json()["status"] == "draft"
    assert scheduled.json()["status"] == "scheduled"
    assert scheduled.json()["created_by"] == str(user.id)


@pytest.mark.asyncio
async def test_create_campaign_other_org_project_is_404(client, other_org, make_user, auth_headers, project):
    outsider = await make_user(other_org, ["campaign.create"])

    resp = await client.post("/api/v1/campaigns", headers=auth_headers(outsider), json={
        "project_id": str(project.id),
    })
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_project_create_adds_draft_campaign(client, db, org, make_user, auth_headers):
    user = await make_user(org, ["project.create"])

    resp = await client.post("/api/v1/projects", headers=auth_headers(user), json={"name": "Lake View"})
    assert resp.status_code == 201

    campaigns = (await db.execute(select(Campaign).where(Campaign.organization_id == org.id))).scalars().all()
    assert len(campaigns) == 1
    assert campaigns[0].name == "Lake View Campaign"
    assert campaigns[0].status == "draft"
    assert str(campaigns[0].project_id) == resp.json()["id"]


@pytest.mark.asyncio
async def test_progress_and_stats(client, org, make_user, auth_headers, campaign, leads):
    user = await make_user(org, RUN_KEYS)
    headers = auth_headers(user)

    before = await client.get(f"/api/v1/campaigns/{campaign.id}/progress", headers=headers)
    assert before.json() == {"status": "draft", "total": 3, "processed": 0, "percentage": 0}

    run = await client.post(f"/api/v1/campaigns/{campaign.id}/call", headers=headers)
    transferred = run.json()["summary"]["transferredCalls"]

    after = await client.get(f"/api/v1/campaigns/{campaign.id}/progress", headers=headers)
    assert after.json() == {"status": "completed", "total": 3, "processed": 3, "percentage": 100}

    stats = (await client.get(f"/api/v1/campaigns/{campaign.id}/stats", headers=headers)).json()
    assert stats["total_calls"] == 3
    assert stats["transferred"] == transferred
    assert sum(stats["by_status"].values()) == 3
    assert stats["conversion_rate"] == round(transferred / 3 * 100, 2)


@pytest.mark.asyncio
async def test_cancel_campaign(client, org, make_user, auth_headers, campaign):
    user = await make_user(org, ["campaign.edit"])

    resp = await client.post(f"/api/v1/campaigns/{campaign.id}/cancel", headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


@pytest.mark.asyncio
async def test_update_campaign_rejects_unknown_status(client, org, make_user, auth_headers, campaign):
    user = await make_user(org, ["campaign.edit"])

    resp = await client.patch(
        f"/api/v1/campaigns/{campaign.id}", headers=auth_headers(user), json={"status": "paused"}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_campaigns_scoped_to_org(client, org, other_org, make_user, auth_headers, campaign):
    outsider = await make_user(other_org, ["campaign.view"])
    insider = await make_user(org, ["campaign.view"])

    theirs = await client.get("/api/v1/campaigns", headers=auth_headers(outsider))
    ours = await client.get("/api/v1/campaigns", headers=auth_headers(insider))

    assert theirs.json()["total"] == 0
    assert ours.json()["total"] == 1
    assert ours.json()["campaigns"][0]["name"] == "Launch Calls"
