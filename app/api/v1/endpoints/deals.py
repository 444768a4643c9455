"""Deal endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError, ValidationError
from app.models.user import User
from app.schemas.deal import DealCreate, DealUpdate, DealOut
from app.services import deals as deal_service

router = APIRouter()


def _check_status(status: Optional[str]) -> None:
    if status is not None and status not in deal_service.DEAL_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(deal_service.DEAL_STATUSES)}")


@router.get("", response_model=List[DealOut])
async def list_deals(
    status: Optional[str] = Query(None),
    lead_id: Optional[UUID] = Query(None),
    current_user: User = Depends(require_permission("deal.view")),
    db: AsyncSession = Depends(get_db),
):
    return await deal_service.list_deals(db, current_user.organization_id, status=status, lead_id=lead_id)


@router.post("", response_model=DealOut, status_code=201)
async def create_deal(
    deal_in: DealCreate,
    current_user: User = Depends(require_permission("deal.edit")),
    db: AsyncSession = Depends(get_db),
):
    _check_status(deal_in.status)
    return await deal_service.create_deal(db, current_user.organization_id, current_user.id, deal_in.model_dump())


@router.get("/{deal_id}", response_model=DealOut)
async def get_deal(
    deal_id: UUID,
    current_user: User = Depends(require_permission("deal.view")),
    db: AsyncSession = Depends(get_db),
):
    deal = await deal_service.get_deal(db, current_user.organization_id, deal_id)
    if not deal:
        raise NotFoundError("Deal")
    return deal


@router.patch("/{deal_id}", response_model=DealOut)
async def update_deal(
    deal_id: UUID,
    deal_in: DealUpdate,
    current_user: User = Depends(require_permission("deal.edit")),
    db: AsyncSession = Depends(get_db),
):
    updates = deal_in.model_dump(exclude_unset=True)
    _check_status(updates.get("status"))
    deal = await deal_service.update_deal(db, current_user.organization_id, deal_id, updates)
    if not deal:
        raise NotFoundError("Deal")
    return deal


@router.delete("/{deal_id}", status_code=204)
async def delete_deal(
    deal_id: UUID,
    current_user: User = Depends(require_permission("deal.edit")),
    db: AsyncSession = Depends(get_db),
):
    if not await deal_service.delete_deal(db, current_user.organization_id, deal_id):
        raise NotFoundError("Deal")
