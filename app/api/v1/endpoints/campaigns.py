"""Campaign endpoints, including the call-simulation run."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError, ValidationError
from app.models.user import User
from app.schemas.call_log import CallLogOut
from app.schemas.campaign import (
    CampaignCreate,
    CampaignUpdate,
    CampaignOut,
    CampaignList,
    CampaignProgress,
    CampaignStats,
    SimulationResponse,
)
from app.schemas.lead import LeadOut
from app.services import campaigns as campaign_service
from app.services.audit_service import log_audit
from app.services.call_logs import list_call_logs
from app.services.projects import get_project

router = APIRouter()
logger = logging.getLogger(__name__)


async def _campaign_or_404(db: AsyncSession, user: User, campaign_id: UUID):
    campaign = await campaign_service.get_campaign(db, user.organization_id, campaign_id)
    if not campaign:
        raise NotFoundError("Campaign")
    return campaign


@router.get("", response_model=CampaignList)
async def list_campaigns(
    status: Optional[str] = Query(None),
    project_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_permission("campaign.view")),
    db: AsyncSession = Depends(get_db),
):
    campaigns, total = await campaign_service.list_campaigns(
        db, current_user.organization_id, status=status, project_id=project_id, page=page, limit=limit
    )
    return CampaignList(campaigns=campaigns, total=total, page=page, limit=limit)


@router.post("", response_model=CampaignOut, status_code=201)
async def create_campaign(
    campaign_in: CampaignCreate,
    current_user: User = Depends(require_permission("campaign.create")),
    db: AsyncSession = Depends(get_db),
):
    if not await get_project(db, current_user.organization_id, campaign_in.project_id):
        raise NotFoundError("Project")
    return await campaign_service.create_campaign(
        db, current_user.organization_id, current_user.id, campaign_in.model_dump()
    )


@router.get("/{campaign_id}", response_model=CampaignOut)
async def get_campaign(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.view")),
    db: AsyncSession = Depends(get_db),
):
    return await _campaign_or_404(db, current_user, campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignOut)
async def update_campaign(
    campaign_id: UUID,
    campaign_in: CampaignUpdate,
    current_user: User = Depends(require_permission("campaign.edit")),
    db: AsyncSession = Depends(get_db),
):
    updates = campaign_in.model_dump(exclude_unset=True)
    if updates.get("status") and updates["status"] not in campaign_service.CAMPAIGN_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(campaign_service.CAMPAIGN_STATUSES)}")

    campaign = await campaign_service.update_campaign(db, current_user.organization_id, campaign_id, updates)
    if not campaign:
        raise NotFoundError("Campaign")
    return campaign


@router.delete("/{campaign_id}", status_code=204)
async def delete_campaign(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.delete")),
    db: AsyncSession = Depends(get_db),
):
    if not await campaign_service.delete_campaign(db, current_user.organization_id, campaign_id):
        raise NotFoundError("Campaign")
    await log_audit(db, current_user, "campaign.deleted", "campaign", campaign_id)


@router.post("/{campaign_id}/cancel", response_model=CampaignOut)
async def cancel_campaign(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.edit")),
    db: AsyncSession = Depends(get_db),
):
    campaign = await campaign_service.cancel_campaign(db, current_user.organization_id, campaign_id)
    if not campaign:
        raise NotFoundError("Campaign")
    return campaign


@router.post("/{campaign_id}/call", response_model=SimulationResponse)
async def run_campaign_calls(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.run")),
    db: AsyncSession = Depends(get_db),
):
    """Simulate one call per lead of the campaign's project."""
    campaign = await _campaign_or_404(db, current_user, campaign_id)

    leads = await campaign_service.get_campaign_leads(db, current_user.organization_id, campaign)
    if not leads:
        raise ValidationError("No leads found for this campaign's project")

    summary = await campaign_service.simulate_campaign_calls(db, campaign, leads)
    response = SimulationResponse(campaign=CampaignOut.model_validate(campaign), summary=summary)

    await log_audit(
        db,
        current_user,
        "campaign.calls_simulated",
        "campaign",
        campaign_id,
        {
            "total_calls": summary["totalCalls"],
            "transferred_calls": summary["transferredCalls"],
            "conversion_rate": summary["conversionRate"],
        },
    )
    return response


@router.get("/{campaign_id}/leads", response_model=List[LeadOut])
async def campaign_leads(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.view")),
    db: AsyncSession = Depends(get_db),
):
    campaign = await _campaign_or_404(db, current_user, campaign_id)
    return await campaign_service.get_campaign_leads(db, current_user.organization_id, campaign)


@router.get("/{campaign_id}/logs", response_model=List[CallLogOut])
async def campaign_logs(
    campaign_id: UUID,
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(require_permission("campaign.view")),
    db: AsyncSession = Depends(get_db),
):
    await _campaign_or_404(db, current_user, campaign_id)
    return await list_call_logs(db, current_user.organization_id, campaign_id=campaign_id, limit=limit)


@router.get("/{campaign_id}/progress", response_model=CampaignProgress)
async def campaign_progress(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.view")),
    db: AsyncSession = Depends(get_db),
):
    campaign = await _campaign_or_404(db, current_user, campaign_id)
    return await campaign_service.get_campaign_progress(db, campaign)


@router.get("/{campaign_id}/stats", response_model=CampaignStats)
async def campaign_stats(
    campaign_id: UUID,
    current_user: User = Depends(require_permission("campaign.view")),
    db: AsyncSession = Depends(get_db),
):
    campaign = await _campaign_or_404(db, current_user, campaign_id)
    return await campaign_service.get_campaign_stats(db, campaign)
