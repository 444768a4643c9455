"""Audit trail service.

Audit writes are best-effort: a failure is logged and rolled back but never
propagates to the business operation that triggered it.
"""

import logging
from typing import Optional, Dict, Any, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog
from app.models.user import User

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user: User,
    action: str,
    entity_type: str,
    entity_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Record an action taken by ``user``.

    Args:
        db: Database session
        user: Profile performing the action
        action: Action key (e.g., "campaign.calls_simulated", "lead.bulk_update")
        entity_type: Kind of record acted on ("campaign", "property", ...)
        entity_id: Primary key of that record
        details: Additional JSON details about the action

    Returns:
        The created entry, or None if the write failed

    A failed write rolls the session back, which expires loaded objects;
    callers serialize their response before auditing.
    """
    user_id = user.id
    entry = AuditLog(
        organization_id=user.organization_id,
        user_id=user_id,
        user_name=user.full_name or user.email,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details or {},
    )

    try:
        db.add(entry)
        await db.commit()
    except Exception:
        logger.exception("Audit log write failed: user=%s action=%s", user_id, action)
        await db.rollback()
        return None

    logger.info("Audit log created: user=%s action=%s entity=%s:%s", user_id, action, entity_type, entity_id)
    return entry


async def list_audit_logs(
    db: AsyncSession,
    organization_id: UUID,
    action: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[AuditLog]:
    query = select(AuditLog).where(AuditLog.organization_id == organization_id)
    if action:
        query = query.where(AuditLog.action == action)
    query = query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)

    result = await db.execute(query)
    return list(result.scalars().all())
