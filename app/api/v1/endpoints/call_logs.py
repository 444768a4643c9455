"""Call log endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError
from app.models.user import User
from app.schemas.call_log import CallLogCreate, CallLogUpdate, CallLogOut, CallLogStats
from app.services import call_logs as call_log_service

router = APIRouter()


@router.get("", response_model=List[CallLogOut])
async def list_call_logs(
    campaign_id: Optional[UUID] = Query(None),
    lead_id: Optional[UUID] = Query(None),
    status: Optional[str] = Query(None, description="Filter by call_status"),
    transferred: Optional[bool] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(require_permission("call_log.view")),
    db: AsyncSession = Depends(get_db),
):
    return await call_log_service.list_call_logs(
        db,
        current_user.organization_id,
        campaign_id=campaign_id,
        lead_id=lead_id,
        call_status=status,
        transferred=transferred,
        limit=limit,
    )


@router.post("", response_model=CallLogOut, status_code=201)
async def create_call_log(
    call_log_in: CallLogCreate,
    current_user: User = Depends(require_permission("call_log.edit")),
    db: AsyncSession = Depends(get_db),
):
    return await call_log_service.create_call_log(db, current_user.organization_id, call_log_in.model_dump())


@router.get("/stats", response_model=CallLogStats)
async def call_log_stats(
    campaign_id: Optional[UUID] = Query(None),
    current_user: User = Depends(require_permission("call_log.view")),
    db: AsyncSession = Depends(get_db),
):
    return await call_log_service.get_call_log_stats(db, current_user.organization_id, campaign_id)


@router.get("/{call_log_id}", response_model=CallLogOut)
async def get_call_log(
    call_log_id: UUID,
    current_user: User = Depends(require_permission("call_log.view")),
    db: AsyncSession = Depends(get_db),
):
    call_log = await call_log_service.get_call_log(db, current_user.organization_id, call_log_id)
    if not call_log:
        raise NotFoundError("Call log")
    return call_log


@router.patch("/{call_log_id}", response_model=CallLogOut)
async def update_call_log(
    call_log_id: UUID,
    call_log_in: CallLogUpdate,
    current_user: User = Depends(require_permission("call_log.edit")),
    db: AsyncSession = Depends(get_db),
):
    call_log = await call_log_service.update_call_log(
        db, current_user.organization_id, call_log_id, call_log_in.model_dump(exclude_unset=True)
    )
    if not call_log:
        raise NotFoundError("Call log")
    return call_log
