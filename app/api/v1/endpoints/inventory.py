"""Property inventory endpoints."""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError
from app.models.user import User
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyOut,
    PropertyStatusUpdate,
    PropertyStatusResult,
)
from app.services import properties as property_service
from app.services.audit_service import log_audit
from app.services.projects import unit_metrics

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/properties", response_model=List[PropertyOut])
async def list_properties(
    project_id: Optional[UUID] = Query(None),
    status: Optional[str] = Query(None),
    property_type: Optional[str] = Query(None, alias="type"),
    min_price: Optional[Decimal] = Query(None),
    max_price: Optional[Decimal] = Query(None),
    current_user: User = Depends(require_permission("property.view")),
    db: AsyncSession = Depends(get_db),
):
    return await property_service.list_properties(
        db,
        current_user.organization_id,
        project_id=project_id,
        status=status,
        property_type=property_type,
        min_price=min_price,
        max_price=max_price,
    )


@router.post("/properties", response_model=PropertyOut, status_code=201)
async def create_property(
    property_in: PropertyCreate,
    current_user: User = Depends(require_permission("property.edit")),
    db: AsyncSession = Depends(get_db),
):
    return await property_service.create_property(db, current_user.organization_id, property_in.model_dump())


@router.get("/properties/{property_id}", response_model=PropertyOut)
async def get_property(
    property_id: UUID,
    current_user: User = Depends(require_permission("property.view")),
    db: AsyncSession = Depends(get_db),
):
    prop = await property_service.get_property(db, current_user.organization_id, property_id)
    if not prop:
        raise NotFoundError("Property")
    return prop


@router.patch("/properties/{property_id}", response_model=PropertyOut)
async def update_property(
    property_id: UUID,
    property_in: PropertyUpdate,
    current_user: User = Depends(require_permission("property.edit")),
    db: AsyncSession = Depends(get_db),
):
    prop = await property_service.update_property(
        db, current_user.organization_id, property_id, property_in.model_dump(exclude_unset=True)
    )
    if not prop:
        raise NotFoundError("Property")
    return prop


@router.delete("/properties/{property_id}", status_code=204)
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(require_permission("property.edit")),
    db: AsyncSession = Depends(get_db),
):
    if not await property_service.delete_property(db, current_user.organization_id, property_id):
        raise NotFoundError("Property")


@router.patch("/properties/{property_id}/status", response_model=PropertyStatusResult)
async def change_property_status(
    property_id: UUID,
    body: PropertyStatusUpdate,
    current_user: User = Depends(require_permission("property.edit")),
    db: AsyncSession = Depends(get_db),
):
    """Set available/reserved/sold and keep lead links and project counters in step."""
    prop, project = await property_service.change_property_status(
        db, current_user.organization_id, property_id, body.status, body.lead_id
    )
    response = PropertyStatusResult(
        property=PropertyOut.model_validate(prop),
        projectMetrics=unit_metrics(project),
        message="Property status updated successfully",
    )

    await log_audit(
        db,
        current_user,
        "property.status_changed",
        "property",
        property_id,
        {"status": body.status, "lead_id": str(body.lead_id) if body.lead_id else None},
    )
    return response
