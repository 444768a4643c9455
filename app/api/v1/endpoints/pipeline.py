"""Pipeline stage endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError
from app.models.user import User
from app.schemas.pipeline import StageCreate, StageUpdate, StageOut
from app.services import pipelines as pipeline_service

router = APIRouter()


@router.get("/stages", response_model=List[StageOut])
async def list_stages(
    current_user: User = Depends(require_permission("pipeline.view")),
    db: AsyncSession = Depends(get_db),
):
    """Stages of the organization's pipeline, in board order."""
    return await pipeline_service.list_stages(db, current_user.organization_id)


@router.post("/stages", response_model=StageOut, status_code=201)
async def create_stage(
    stage_in: StageCreate,
    current_user: User = Depends(require_permission("pipeline.manage")),
    db: AsyncSession = Depends(get_db),
):
    return await pipeline_service.create_stage(db, current_user.organization_id, stage_in.model_dump())


@router.patch("/stages/{stage_id}", response_model=StageOut)
async def update_stage(
    stage_id: UUID,
    stage_in: StageUpdate,
    current_user: User = Depends(require_permission("pipeline.manage")),
    db: AsyncSession = Depends(get_db),
):
    stage = await pipeline_service.update_stage(
        db, current_user.organization_id, stage_id, stage_in.model_dump(exclude_unset=True)
    )
    if not stage:
        raise NotFoundError("Stage")
    return stage


@router.delete("/stages/{stage_id}", status_code=204)
async def delete_stage(
    stage_id: UUID,
    current_user: User = Depends(require_permission("pipeline.manage")),
    db: AsyncSession = Depends(get_db),
):
    if not await pipeline_service.delete_stage(db, current_user.organization_id, stage_id):
        raise NotFoundError("Stage")
