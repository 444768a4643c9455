"""Campaign service: CRUD, reporting and the call-simulation engine.

All functions are organization-scoped; a campaign that exists in another
organization is reported the same way as one that does not exist.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.call_log import CallLog
from app.models.campaign import Campaign
from app.models.lead import Lead

logger = logging.getLogger(__name__)

CAMPAIGN_STATUSES = ("draft", "scheduled", "running", "completed", "cancelled")


@dataclass(frozen=True)
class CallOutcome:
    status: str
    weight: int
    transferred: bool = False


# Order matters: a draw is matched against cumulative weights in this order
OUTCOMES: Tuple[CallOutcome, ...] = (
    CallOutcome("called", 30),
    CallOutcome("transferred", 25, transferred=True),
    CallOutcome("no_answer", 25),
    CallOutcome("voicemail", 20),
)
TOTAL_WEIGHT = sum(outcome.weight for outcome in OUTCOMES)

MIN_SIMULATED_DURATION = 10
MAX_SIMULATED_DURATION = 130  # exclusive

_rng = random.Random()


def pick_outcome(draw: float) -> CallOutcome:
    """Weighted selection: first outcome whose cumulative weight exceeds ``draw``.

    ``draw`` must lie in ``[0, TOTAL_WEIGHT)``.
    """
    cumulative = 0
    for outcome in OUTCOMES:
        cumulative += outcome.weight
        if draw < cumulative:
            return outcome
    return OUTCOMES[-1]


async def get_campaign(db: AsyncSession, organization_id: UUID, campaign_id: UUID) -> Optional[Campaign]:
    result = await db.execute(
        select(Campaign).where(Campaign.id == campaign_id, Campaign.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def list_campaigns(
    db: AsyncSession,
    organization_id: UUID,
    status: Optional[str] = None,
    project_id: Optional[UUID] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Campaign], int]:
    """Return one page of campaigns plus the total count matching the filters."""
    query = select(Campaign).where(Campaign.organization_id == organization_id)
    if status:
        query = query.where(Campaign.status == status)
    if project_id:
        query = query.where(Campaign.project_id == project_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    query = query.order_by(Campaign.created_at.desc()).offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def create_campaign(
    db: AsyncSession,
    organization_id: UUID,
    created_by: Optional[UUID],
    data: Dict[str, Any],
) -> Campaign:
    """Create a campaign; it starts ``scheduled`` when dates are given, else ``draft``."""
    status = "scheduled" if data.get("start_date") or data.get("end_date") else "draft"
    campaign = Campaign(
        organization_id=organization_id,
        created_by=created_by,
        status=status,
        **data,
    )
    db.add(campaign)
    await db.commit()
    await db.refresh(campaign)

    logger.info("Created campaign %s (%s) for org %s", campaign.id, status, organization_id)
    return campaign


async def update_campaign(
    db: AsyncSession,
    organization_id: UUID,
    campaign_id: UUID,
    updates: Dict[str, Any],
) -> Optional[Campaign]:
    campaign = await get_campaign(db, organization_id, campaign_id)
    if not campaign:
        return None

    for field, value in updates.items():
        setattr(campaign, field, value)
    await db.commit()
    await db.refresh(campaign)
    return campaign


async def delete_campaign(db: AsyncSession, organization_id: UUID, campaign_id: UUID) -> bool:
    campaign = await get_campaign(db, organization_id, campaign_id)
    if not campaign:
        return False

    await db.delete(campaign)
    await db.commit()
    logger.info("Deleted campaign %s", campaign_id)
    return True


async def cancel_campaign(db: AsyncSession, organization_id: UUID, campaign_id: UUID) -> Optional[Campaign]:
    return await update_campaign(db, organization_id, campaign_id, {"status": "cancelled"})


async def get_campaign_leads(db: AsyncSession, organization_id: UUID, campaign: Campaign) -> List[Lead]:
    """Leads of the campaign's project within the organization."""
    result = await db.execute(
        select(Lead)
        .where(Lead.organization_id == organization_id, Lead.project_id == campaign.project_id)
        .order_by(Lead.created_at)
    )
    return list(result.scalars().all())


async def get_campaign_stats(db: AsyncSession, campaign: Campaign) -> Dict[str, Any]:
    """Outcome breakdown computed from the campaign's call logs."""
    result = await db.execute(
        select(
            func.count(CallLog.id),
            func.sum(case((CallLog.transferred.is_(True), 1), else_=0)),
            func.avg(CallLog.duration),
        ).where(CallLog.campaign_id == campaign.id)
    )
    total, transferred, avg_duration = result.one()
    total = total or 0
    transferred = int(transferred or 0)

    counts = await db.execute(
        select(CallLog.call_status, func.count(CallLog.id))
        .where(CallLog.campaign_id == campaign.id)
        .group_by(CallLog.call_status)
    )
    by_status = {status: count for status, count in counts.all()}

    return {
        "total_calls": total,
        "transferred": transferred,
        "no_answer": by_status.get("no_answer", 0),
        "failed": by_status.get("failed", 0),
        "by_status": by_status,
        "average_duration": round(float(avg_duration), 1) if avg_duration is not None else 0.0,
        "conversion_rate": round(transferred / total * 100, 2) if total else 0.0,
    }


async def get_campaign_progress(db: AsyncSession, campaign: Campaign) -> Dict[str, Any]:
    """Leads in the campaign's project versus call logs already written."""
    total = (await db.execute(
        select(func.count(Lead.id)).where(
            Lead.organization_id == campaign.organization_id,
            Lead.project_id == campaign.project_id,
        )
    )).scalar() or 0
    processed = (await db.execute(
        select(func.count(CallLog.id)).where(CallLog.campaign_id == campaign.id)
    )).scalar() or 0

    return {
        "status": campaign.status,
        "total": total,
        "processed": processed,
        "percentage": round(processed / total * 100) if total else 0,
    }


async def simulate_campaign_calls(
    db: AsyncSession,
    campaign: Campaign,
    leads: List[Lead],
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Draw an outcome for every lead and persist logs, lead and campaign totals.

    All writes are committed together; on failure nothing is persisted.
    Returns the summary block of the response.
    """
    rng = rng or _rng
    now = datetime.utcnow()
    results = []
    transferred_count = 0

    try:
        for lead in leads:
            outcome = pick_outcome(rng.random() * TOTAL_WEIGHT)

            db.add(CallLog(
                organization_id=campaign.organization_id,
                campaign_id=campaign.id,
                lead_id=lead.id,
                call_status=outcome.status,
                transferred=outcome.transferred,
                duration=rng.randrange(MIN_SIMULATED_DURATION, MAX_SIMULATED_DURATION),
                direction="outbound",
                notes=f"Simulated: {outcome.status}",
            ))

            lead.transferred_to_human = outcome.transferred
            lead.last_contacted_at = now

            if outcome.transferred:
                transferred_count += 1
            results.append({
                "leadId": str(lead.id),
                "leadName": lead.name,
                "outcome": outcome.status,
                "transferred": outcome.transferred,
            })

        campaign.total_calls = (campaign.total_calls or 0) + len(leads)
        campaign.transferred_calls = (campaign.transferred_calls or 0) + transferred_count
        campaign.status = "completed"

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(campaign)

    total = len(leads)
    conversion_rate = f"{(transferred_count / total * 100) if total else 0:.2f}"
    logger.info(
        "Simulated %d calls for campaign %s: %d transferred (%s%%)",
        total, campaign.id, transferred_count, conversion_rate,
    )

    return {
        "totalCalls": total,
        "transferredCalls": transferred_count,
        "conversionRate": conversion_rate,
        "results": results,
    }
