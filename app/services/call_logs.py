"""Call log queries and writes, scoped to one organization."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.models.call_log import CallLog
from app.models.campaign import Campaign
from app.models.lead import Lead

logger = logging.getLogger(__name__)


async def list_call_logs(
    db: AsyncSession,
    organization_id: UUID,
    campaign_id: Optional[UUID] = None,
    lead_id: Optional[UUID] = None,
    call_status: Optional[str] = None,
    transferred: Optional[bool] = None,
    limit: int = 100,
) -> List[CallLog]:
    query = select(CallLog).where(CallLog.organization_id == organization_id)
    if campaign_id:
        query = query.where(CallLog.campaign_id == campaign_id)
    if lead_id:
        query = query.where(CallLog.lead_id == lead_id)
    if call_status:
        query = query.where(CallLog.call_status == call_status)
    if transferred is not None:
        query = query.where(CallLog.transferred.is_(transferred))

    query = query.order_by(CallLog.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_call_log(db: AsyncSession, organization_id: UUID, call_log_id: UUID) -> Optional[CallLog]:
    result = await db.execute(
        select(CallLog).where(CallLog.id == call_log_id, CallLog.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def get_lead_call_logs(db: AsyncSession, organization_id: UUID, lead_id: UUID) -> List[CallLog]:
    return await list_call_logs(db, organization_id, lead_id=lead_id)


async def _check_references(db: AsyncSession, organization_id: UUID, data: Dict[str, Any]) -> None:
    if data.get("lead_id") is not None:
        result = await db.execute(
            select(Lead.id).where(Lead.id == data["lead_id"], Lead.organization_id == organization_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Lead")

    if data.get("campaign_id") is not None:
        result = await db.execute(
            select(Campaign.id).where(Campaign.id == data["campaign_id"], Campaign.organization_id == organization_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Campaign")


async def create_call_log(db: AsyncSession, organization_id: UUID, data: Dict[str, Any]) -> CallLog:
    await _check_references(db, organization_id, data)

    call_log = CallLog(organization_id=organization_id, **data)
    db.add(call_log)
    await db.commit()
    await db.refresh(call_log)

    logger.info("Created call log %s (status=%s)", call_log.id, call_log.call_status)
    return call_log


async def update_call_log(
    db: AsyncSession,
    organization_id: UUID,
    call_log_id: UUID,
    updates: Dict[str, Any],
) -> Optional[CallLog]:
    call_log = await get_call_log(db, organization_id, call_log_id)
    if not call_log:
        return None

    for field, value in updates.items():
        setattr(call_log, field, value)
    await db.commit()
    await db.refresh(call_log)
    return call_log


async def get_call_log_stats(
    db: AsyncSession,
    organization_id: UUID,
    campaign_id: Optional[UUID] = None,
) -> Dict[str, Any]:
    """Totals, transfers and average duration for the organization's call logs."""
    filters = [CallLog.organization_id == organization_id]
    if campaign_id:
        filters.append(CallLog.campaign_id == campaign_id)

    result = await db.execute(
        select(
            func.count(CallLog.id),
            func.sum(case((CallLog.transferred.is_(True), 1), else_=0)),
            func.avg(CallLog.duration),
        ).where(*filters)
    )
    total, transferred, avg_duration = result.one()
    total = total or 0
    transferred = int(transferred or 0)

    counts = await db.execute(
        select(CallLog.call_status, func.count(CallLog.id)).where(*filters).group_by(CallLog.call_status)
    )

    return {
        "total_calls": total,
        "transferred": transferred,
        "by_status": {status: count for status, count in counts.all()},
        "average_duration": round(float(avg_duration), 1) if avg_duration is not None else 0.0,
        "transfer_rate": round(transferred / total * 100, 2) if total else 0.0,
    }
