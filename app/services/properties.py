"""Property inventory service.

A property is linked to at most one lead through ``leads.property_id``.
Every write path that sets a link first clears it from any other lead,
and every status change refreshes the owning project's unit counters.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.models.lead import Lead
from app.models.project import Project
from app.models.property import Property, PropertyStatus
from app.services.projects import recompute_unit_counts

logger = logging.getLogger(__name__)

VALID_STATUSES = tuple(status.value for status in PropertyStatus)


async def get_property(db: AsyncSession, organization_id: UUID, property_id: UUID) -> Optional[Property]:
    result = await db.execute(
        select(Property).where(Property.id == property_id, Property.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def list_properties(
    db: AsyncSession,
    organization_id: UUID,
    project_id: Optional[UUID] = None,
    status: Optional[str] = None,
    property_type: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
) -> List[Property]:
    query = select(Property).where(Property.organization_id == organization_id)
    if project_id:
        query = query.where(Property.project_id == project_id)
    if status:
        query = query.where(Property.status == status)
    if property_type:
        query = query.where(Property.property_type == property_type)
    if min_price is not None:
        query = query.where(Property.price >= min_price)
    if max_price is not None:
        query = query.where(Property.price <= max_price)

    result = await db.execute(query.order_by(Property.created_at.desc()))
    return list(result.scalars().all())


async def _check_project(db: AsyncSession, organization_id: UUID, project_id: Optional[UUID]) -> None:
    if project_id is None:
        return
    result = await db.execute(
        select(Project.id).where(Project.id == project_id, Project.organization_id == organization_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Project")


async def create_property(db: AsyncSession, organization_id: UUID, data: Dict[str, Any]) -> Property:
    await _check_project(db, organization_id, data.get("project_id"))
    if data.get("status", PropertyStatus.AVAILABLE.value) not in VALID_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")

    prop = Property(organization_id=organization_id, **data)
    db.add(prop)
    await db.flush()
    if prop.project_id:
        await recompute_unit_counts(db, prop.project_id)
    await db.commit()
    await db.refresh(prop)

    logger.info("Created property %s in project %s", prop.id, prop.project_id)
    return prop


async def update_property(
    db: AsyncSession,
    organization_id: UUID,
    property_id: UUID,
    updates: Dict[str, Any],
) -> Optional[Property]:
    """Edit property details. Status changes go through ``change_property_status``."""
    prop = await get_property(db, organization_id, property_id)
    if not prop:
        return None

    if "project_id" in updates:
        await _check_project(db, organization_id, updates["project_id"])
    previous_project_id = prop.project_id

    for field, value in updates.items():
        setattr(prop, field, value)
    await db.flush()

    for project_id in {previous_project_id, prop.project_id} - {None}:
        await recompute_unit_counts(db, project_id)
    await db.commit()
    await db.refresh(prop)
    return prop


async def delete_property(db: AsyncSession, organization_id: UUID, property_id: UUID) -> bool:
    prop = await get_property(db, organization_id, property_id)
    if not prop:
        return False

    project_id = prop.project_id
    await db.execute(update(Lead).where(Lead.property_id == property_id).values(property_id=None))
    await db.delete(prop)
    await db.flush()
    if project_id:
        await recompute_unit_counts(db, project_id)
    await db.commit()

    logger.info("Deleted property %s", property_id)
    return True


async def _get_lead(db: AsyncSession, organization_id: UUID, lead_id: UUID) -> Lead:
    result = await db.execute(
        select(Lead).where(Lead.id == lead_id, Lead.organization_id == organization_id)
    )
    lead = result.scalar_one_or_none()
    if not lead:
        raise NotFoundError("Lead")
    return lead


async def _assign_owner(db: AsyncSession, prop: Property, lead: Lead) -> None:
    """Make ``lead`` the only lead pointing at ``prop``."""
    await db.execute(
        update(Lead)
        .where(Lead.property_id == prop.id, Lead.id != lead.id)
        .values(property_id=None)
        .execution_options(synchronize_session="fetch")
    )
    lead.property_id = prop.id


async def change_property_status(
    db: AsyncSession,
    organization_id: UUID,
    property_id: UUID,
    status: str,
    lead_id: Optional[UUID] = None,
) -> Tuple[Property, Optional[Project]]:
    """Move a property to ``status`` and apply the lead-link side effects.

    - reserved/sold with a lead: the lead becomes the single owner
    - available: every lead link is cleared

    Everything is committed in one transaction. Returns the property and
    its project (with fresh unit counters) or None when unassigned.
    """
    if status not in VALID_STATUSES:
        raise ValidationError("Invalid status. Must be: available, reserved, or sold")

    prop = await get_property(db, organization_id, property_id)
    if not prop:
        raise NotFoundError("Property")

    lead = None
    if lead_id and status != PropertyStatus.AVAILABLE.value:
        lead = await _get_lead(db, organization_id, lead_id)

    try:
        prop.status = status
        if status == PropertyStatus.AVAILABLE.value:
            await db.execute(
                update(Lead)
                .where(Lead.property_id == prop.id)
                .values(property_id=None)
                .execution_options(synchronize_session="fetch")
            )
        elif lead is not None:
            await _assign_owner(db, prop, lead)

        project = None
        if prop.project_id:
            project = await recompute_unit_counts(db, prop.project_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(prop)
    if project is not None:
        await db.refresh(project)

    logger.info(
        "Property %s status -> %s (lead=%s, project=%s)",
        property_id, status, lead_id, prop.project_id,
    )
    return prop, project


async def link_property(db: AsyncSession, organization_id: UUID, lead_id: UUID, property_id: UUID) -> Lead:
    """Link a lead to a property, reserving it when it is still available."""
    lead = await _get_lead(db, organization_id, lead_id)
    prop = await get_property(db, organization_id, property_id)
    if not prop:
        raise NotFoundError("Property")

    await _assign_owner(db, prop, lead)
    if prop.project_id:
        lead.project_id = prop.project_id
    if prop.status == PropertyStatus.AVAILABLE.value:
        prop.status = PropertyStatus.RESERVED.value
        if prop.project_id:
            await recompute_unit_counts(db, prop.project_id)
    await db.commit()
    await db.refresh(lead)

    logger.info("Linked lead %s to property %s", lead_id, property_id)
    return lead


async def unlink_property(db: AsyncSession, organization_id: UUID, lead_id: UUID) -> Lead:
    """Clear a lead's property link; a reserved property becomes available again."""
    lead = await _get_lead(db, organization_id, lead_id)
    property_id = lead.property_id
    lead.property_id = None

    if property_id:
        prop = await get_property(db, organization_id, property_id)
        if prop and prop.status == PropertyStatus.RESERVED.value:
            prop.status = PropertyStatus.AVAILABLE.value
            if prop.project_id:
                await recompute_unit_counts(db, prop.project_id)
    await db.commit()
    await db.refresh(lead)

    logger.info("Unlinked lead %s from property %s", lead_id, property_id)
    return lead
