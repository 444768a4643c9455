"""Lead service.

Read and write paths take an ``AccessScope`` resolved once per request by
the endpoint; ``OWN`` narrows every query to leads assigned to the caller.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.models.lead import Lead, LeadStatus, EDITABLE_LEAD_FIELDS
from app.models.project import Project
from app.models.user import User
from app.services.permissions import AccessScope
from app.services.pipelines import get_stage

logger = logging.getLogger(__name__)

UUID_FIELDS = ("stage_id", "project_id", "assigned_to")
LEAD_STATUSES = tuple(status.value for status in LeadStatus)


def _scoped(query, organization_id: UUID, scope: AccessScope, user_id: UUID):
    query = query.where(Lead.organization_id == organization_id)
    if scope == AccessScope.OWN:
        query = query.where(Lead.assigned_to == user_id)
    return query


def _parse_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid UUID for '{field}': {value}")


async def _clean_updates(db: AsyncSession, organization_id: UUID, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Whitelist, coerce and tenant-check lead column updates."""
    unknown = sorted(set(updates) - EDITABLE_LEAD_FIELDS)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

    cleaned = dict(updates)
    for field in UUID_FIELDS:
        if cleaned.get(field) is not None:
            cleaned[field] = _parse_uuid(cleaned[field], field)

    if "status" in cleaned and cleaned["status"] not in LEAD_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(LEAD_STATUSES)}")

    if cleaned.get("stage_id") is not None:
        if not await get_stage(db, organization_id, cleaned["stage_id"]):
            raise NotFoundError("Stage")

    if cleaned.get("project_id") is not None:
        result = await db.execute(
            select(Project.id).where(Project.id == cleaned["project_id"], Project.organization_id == organization_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Project")

    if cleaned.get("assigned_to") is not None:
        result = await db.execute(
            select(User.id).where(User.id == cleaned["assigned_to"], User.organization_id == organization_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("User")

    return cleaned


async def list_leads(
    db: AsyncSession,
    organization_id: UUID,
    scope: AccessScope,
    user_id: UUID,
    project_id: Optional[UUID] = None,
    stage_id: Optional[UUID] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> Tuple[List[Lead], int]:
    """Return one page of visible leads plus the total count."""
    query = _scoped(select(Lead), organization_id, scope, user_id)
    if project_id:
        query = query.where(Lead.project_id == project_id)
    if stage_id:
        query = query.where(Lead.stage_id == stage_id)
    if status:
        query = query.where(Lead.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Lead.name.ilike(pattern),
            Lead.email.ilike(pattern),
            Lead.phone.ilike(pattern),
        ))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

    query = query.order_by(Lead.created_at.desc()).offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_lead(
    db: AsyncSession,
    organization_id: UUID,
    lead_id: UUID,
    scope: AccessScope = AccessScope.ALL,
    user_id: Optional[UUID] = None,
) -> Optional[Lead]:
    query = _scoped(select(Lead), organization_id, scope, user_id).where(Lead.id == lead_id)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def create_lead(db: AsyncSession, organization_id: UUID, data: Dict[str, Any]) -> Lead:
    fields = {key: value for key, value in data.items() if key != "name"}
    cleaned = await _clean_updates(db, organization_id, fields)

    lead = Lead(organization_id=organization_id, name=data["name"], **cleaned)
    db.add(lead)
    await db.commit()
    await db.refresh(lead)

    logger.info("Created lead %s (%s) for org %s", lead.id, lead.name, organization_id)
    return lead


async def update_lead(
    db: AsyncSession,
    organization_id: UUID,
    lead_id: UUID,
    updates: Dict[str, Any],
    scope: AccessScope = AccessScope.ALL,
    user_id: Optional[UUID] = None,
) -> Optional[Lead]:
    lead = await get_lead(db, organization_id, lead_id, scope, user_id)
    if not lead:
        return None

    cleaned = await _clean_updates(db, organization_id, updates)
    for field, value in cleaned.items():
        setattr(lead, field, value)
    await db.commit()
    await db.refresh(lead)
    return lead


async def delete_lead(db: AsyncSession, organization_id: UUID, lead_id: UUID) -> bool:
    lead = await get_lead(db, organization_id, lead_id)
    if not lead:
        return False

    await db.delete(lead)
    await db.commit()
    logger.info("Deleted lead %s", lead_id)
    return True


async def bulk_update_leads(
    db: AsyncSession,
    organization_id: UUID,
    scope: AccessScope,
    user_id: UUID,
    lead_ids: Iterable[Any],
    updates: Dict[str, Any],
) -> int:
    """Apply the same column updates to many leads; returns the number of rows changed.

    With ``OWN`` scope, leads not assigned to the caller are skipped rather
    than rejected.
    """
    ids = [_parse_uuid(lead_id, "leadIds") for lead_id in lead_ids]
    if not ids:
        raise ValidationError("leadIds must be a non-empty list")
    if not updates:
        raise ValidationError("updates must be a non-empty object")

    cleaned = await _clean_updates(db, organization_id, updates)
    cleaned["updated_at"] = datetime.utcnow()

    statement = _scoped(update(Lead), organization_id, scope, user_id).where(Lead.id.in_(ids))
    result = await db.execute(statement.values(**cleaned).execution_options(synchronize_session=False))
    await db.commit()

    logger.info(
        "Bulk updated %d/%d leads for user %s (scope=%s): %s",
        result.rowcount, len(ids), user_id, scope.value, ", ".join(sorted(updates)),
    )
    return result.rowcount
