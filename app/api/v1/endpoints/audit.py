"""Audit log endpoint."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.models.user import User
from app.schemas.audit import AuditLogOut
from app.services.audit_service import list_audit_logs

router = APIRouter()


@router.get("", response_model=List[AuditLogOut])
async def list_audit(
    action: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_permission("audit.view")),
    db: AsyncSession = Depends(get_db),
):
    """Organization audit trail, newest first."""
    return await list_audit_logs(db, current_user.organization_id, action=action, limit=limit, offset=offset)
