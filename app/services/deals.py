"""Deal service."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.models.deal import Deal
from app.models.lead import Lead
from app.models.property import Property

logger = logging.getLogger(__name__)

DEAL_STATUSES = ("open", "won", "lost")


async def get_deal(db: AsyncSession, organization_id: UUID, deal_id: UUID) -> Optional[Deal]:
    result = await db.execute(
        select(Deal).where(Deal.id == deal_id, Deal.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def list_deals(
    db: AsyncSession,
    organization_id: UUID,
    status: Optional[str] = None,
    lead_id: Optional[UUID] = None,
) -> List[Deal]:
    query = select(Deal).where(Deal.organization_id == organization_id)
    if status:
        query = query.where(Deal.status == status)
    if lead_id:
        query = query.where(Deal.lead_id == lead_id)
    result = await db.execute(query.order_by(Deal.created_at.desc()))
    return list(result.scalars().all())


async def _check_property(db: AsyncSession, organization_id: UUID, property_id: Optional[UUID]) -> None:
    if property_id is None:
        return
    result = await db.execute(
        select(Property.id).where(Property.id == property_id, Property.organization_id == organization_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Property")


async def create_deal(
    db: AsyncSession,
    organization_id: UUID,
    created_by: Optional[UUID],
    data: Dict[str, Any],
) -> Deal:
    lead = await db.execute(
        select(Lead.id).where(Lead.id == data["lead_id"], Lead.organization_id == organization_id)
    )
    if lead.scalar_one_or_none() is None:
        raise NotFoundError("Lead")
    await _check_property(db, organization_id, data.get("property_id"))

    deal = Deal(organization_id=organization_id, created_by=created_by, **data)
    db.add(deal)
    await db.commit()
    await db.refresh(deal)

    logger.info("Created deal %s for lead %s", deal.id, deal.lead_id)
    return deal


async def update_deal(
    db: AsyncSession,
    organization_id: UUID,
    deal_id: UUID,
    updates: Dict[str, Any],
) -> Optional[Deal]:
    deal = await get_deal(db, organization_id, deal_id)
    if not deal:
        return None

    if "property_id" in updates:
        await _check_property(db, organization_id, updates["property_id"])

    for field, value in updates.items():
        setattr(deal, field, value)
    await db.commit()
    await db.refresh(deal)
    return deal


async def delete_deal(db: AsyncSession, organization_id: UUID, deal_id: UUID) -> bool:
    deal = await get_deal(db, organization_id, deal_id)
    if not deal:
        return False

    await db.delete(deal)
    await db.commit()
    logger.info("Deleted deal %s", deal_id)
    return True
