"""Project service.

Creating a project also creates a draft campaign for it. Unit counters on
the project row are derived from its properties and refreshed by
``recompute_unit_counts`` whenever a property changes status.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.campaign import Campaign
from app.models.lead import Lead
from app.models.project import Project
from app.models.property import Property, PropertyStatus

logger = logging.getLogger(__name__)


async def get_project(db: AsyncSession, organization_id: UUID, project_id: UUID) -> Optional[Project]:
    result = await db.execute(
        select(Project).where(Project.id == project_id, Project.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def list_projects(
    db: AsyncSession,
    organization_id: UUID,
    status: Optional[str] = None,
) -> List[Project]:
    query = select(Project).where(Project.organization_id == organization_id)
    if status:
        query = query.where(Project.status == status)
    result = await db.execute(query.order_by(Project.created_at.desc()))
    return list(result.scalars().all())


async def create_project(
    db: AsyncSession,
    organization_id: UUID,
    created_by: Optional[UUID],
    data: Dict[str, Any],
) -> Project:
    """Create a project together with its default draft campaign."""
    project = Project(organization_id=organization_id, created_by=created_by, **data)
    db.add(project)
    await db.flush()

    db.add(Campaign(
        organization_id=organization_id,
        project_id=project.id,
        name=f"{project.name} Campaign",
        status="draft",
        created_by=created_by,
    ))
    await db.commit()
    await db.refresh(project)

    logger.info("Created project %s with draft campaign for org %s", project.id, organization_id)
    return project


async def update_project(
    db: AsyncSession,
    organization_id: UUID,
    project_id: UUID,
    updates: Dict[str, Any],
) -> Optional[Project]:
    project = await get_project(db, organization_id, project_id)
    if not project:
        return None

    for field, value in updates.items():
        setattr(project, field, value)
    await db.commit()
    await db.refresh(project)
    return project


async def delete_project(db: AsyncSession, organization_id: UUID, project_id: UUID) -> bool:
    project = await get_project(db, organization_id, project_id)
    if not project:
        return False

    await db.delete(project)
    await db.commit()
    logger.info("Deleted project %s", project_id)
    return True


async def recompute_unit_counts(db: AsyncSession, project_id: UUID) -> Optional[Project]:
    """Refresh the project's unit counters from its properties.

    Only flushes; the caller owns the commit.
    """
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()
    if not project:
        return None

    await db.flush()
    counts = await db.execute(
        select(Property.status, func.count(Property.id))
        .where(Property.project_id == project_id)
        .group_by(Property.status)
    )
    by_status = {status: count for status, count in counts.all()}

    project.available_units = by_status.get(PropertyStatus.AVAILABLE.value, 0)
    project.reserved_units = by_status.get(PropertyStatus.RESERVED.value, 0)
    project.sold_units = by_status.get(PropertyStatus.SOLD.value, 0)
    project.total_units = sum(by_status.values())
    await db.flush()
    return project


def unit_metrics(project: Optional[Project]) -> Optional[Dict[str, int]]:
    if project is None:
        return None
    return {
        "total_units": project.total_units,
        "available_units": project.available_units,
        "reserved_units": project.reserved_units,
        "sold_units": project.sold_units,
    }


async def get_project_stats(db: AsyncSession, project: Project) -> Dict[str, Any]:
    """Lead, campaign and property counts for one project."""
    leads = (await db.execute(
        select(func.count(Lead.id)).where(Lead.project_id == project.id)
    )).scalar() or 0
    campaigns = (await db.execute(
        select(func.count(Campaign.id)).where(Campaign.project_id == project.id)
    )).scalar() or 0
    properties = (await db.execute(
        select(func.count(Property.id)).where(Property.project_id == project.id)
    )).scalar() or 0

    return {
        "leads": leads,
        "campaigns": campaigns,
        "properties": properties,
        **unit_metrics(project),
    }
