"""Lead endpoints.

- GET    /api/v1/leads                      → List visible leads
- POST   /api/v1/leads                      → Create lead
- GET    /api/v1/leads/{id}                 → Lead detail
- PATCH  /api/v1/leads/{id}                 → Update lead
- DELETE /api/v1/leads/{id}                 → Delete lead
- POST   /api/v1/leads/bulk-update          → Same update on many leads
- POST   /api/v1/leads/{id}/link-property   → Attach a property
- POST   /api/v1/leads/{id}/unlink-property → Detach the property
- GET    /api/v1/leads/{id}/call-logs       → Call history of a lead
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_org_user, require_permission
from app.core.errors import ForbiddenError, NotFoundError
from app.models.user import User
from app.schemas.call_log import CallLogOut
from app.schemas.lead import (
    LeadCreate,
    LeadUpdate,
    LeadOut,
    LeadList,
    BulkLeadUpdate,
    BulkUpdateResult,
    LinkProperty,
)
from app.services import leads as lead_service
from app.services.audit_service import log_audit
from app.services.call_logs import get_lead_call_logs
from app.services.permissions import AccessScope, resolve_scope
from app.services.properties import link_property, unlink_property

router = APIRouter()
logger = logging.getLogger(__name__)


async def _lead_scope(db: AsyncSession, user: User, verb: str) -> AccessScope:
    """Resolve view/edit scope on leads; 403 when the caller has none."""
    scope = await resolve_scope(db, user.id, f"{verb}_all_leads", f"{verb}_team_leads", f"{verb}_own_leads")
    if scope == AccessScope.NONE:
        raise ForbiddenError(f"Insufficient permissions. Required: {verb}_all_leads, {verb}_team_leads or {verb}_own_leads")
    return scope


@router.get("", response_model=LeadList)
async def list_leads(
    project_id: Optional[UUID] = Query(None),
    stage_id: Optional[UUID] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_org_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await _lead_scope(db, current_user, "view")
    leads, total = await lead_service.list_leads(
        db,
        current_user.organization_id,
        scope,
        current_user.id,
        project_id=project_id,
        stage_id=stage_id,
        status=status,
        search=search,
        page=page,
        limit=limit,
    )
    return LeadList(leads=leads, total=total, page=page, limit=limit)


@router.post("", response_model=LeadOut, status_code=201)
async def create_lead(
    lead_in: LeadCreate,
    current_user: User = Depends(require_permission("create_leads")),
    db: AsyncSession = Depends(get_db),
):
    return await lead_service.create_lead(db, current_user.organization_id, lead_in.model_dump())


@router.post("/bulk-update", response_model=BulkUpdateResult)
async def bulk_update(
    body: BulkLeadUpdate,
    current_user: User = Depends(get_org_user),
    db: AsyncSession = Depends(get_db),
):
    """Apply ``updates`` to every lead in ``leadIds`` the caller may edit."""
    scope = await _lead_scope(db, current_user, "edit")
    count = await lead_service.bulk_update_leads(
        db,
        current_user.organization_id,
        scope,
        current_user.id,
        body.lead_ids,
        body.updates,
    )

    await log_audit(
        db,
        current_user,
        "lead.bulk_update",
        "lead",
        details={"requested": len(body.lead_ids), "updated": count, "fields": sorted(body.updates)},
    )
    return BulkUpdateResult(count=count)


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(
    lead_id: UUID,
    current_user: User = Depends(get_org_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await _lead_scope(db, current_user, "view")
    lead = await lead_service.get_lead(db, current_user.organization_id, lead_id, scope, current_user.id)
    if not lead:
        raise NotFoundError("Lead")
    return lead


@router.patch("/{lead_id}", response_model=LeadOut)
async def update_lead(
    lead_id: UUID,
    lead_in: LeadUpdate,
    current_user: User = Depends(get_org_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await _lead_scope(db, current_user, "edit")
    lead = await lead_service.update_lead(
        db,
        current_user.organization_id,
        lead_id,
        lead_in.model_dump(exclude_unset=True),
        scope,
        current_user.id,
    )
    if not lead:
        raise NotFoundError("Lead")
    return lead


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: UUID,
    current_user: User = Depends(require_permission("delete_leads")),
    db: AsyncSession = Depends(get_db),
):
    if not await lead_service.delete_lead(db, current_user.organization_id, lead_id):
        raise NotFoundError("Lead")
    await log_audit(db, current_user, "lead.deleted", "lead", lead_id)


@router.post("/{lead_id}/link-property", response_model=LeadOut)
async def link_lead_property(
    lead_id: UUID,
    body: LinkProperty,
    current_user: User = Depends(get_org_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await _lead_scope(db, current_user, "edit")
    if not await lead_service.get_lead(db, current_user.organization_id, lead_id, scope, current_user.id):
        raise NotFoundError("Lead")
    return await link_property(db, current_user.organization_id, lead_id, body.property_id)


@router.post("/{lead_id}/unlink-property", response_model=LeadOut)
async def unlink_lead_property(
    lead_id: UUID,
    current_user: User = Depends(get_org_user),
    db: AsyncSession = Depends(get_db),
):
    scope = await _lead_scope(db, current_user, "edit")
    if not await lead_service.get_lead(db, current_user.organization_id, lead_id, scope, current_user.id):
        raise NotFoundError("Lead")
    return await unlink_property(db, current_user.organization_id, lead_id)


@router.get("/{lead_id}/call-logs", response_model=List[CallLogOut])
async def lead_call_logs(
    lead_id: UUID,
    current_user: User = Depends(require_permission("call_log.view")),
    db: AsyncSession = Depends(get_db),
):
    if not await lead_service.get_lead(db, current_user.organization_id, lead_id):
        raise NotFoundError("Lead")
    return await get_lead_call_logs(db, current_user.organization_id, lead_id)
