"""Pipeline stage management.

Each organization has one default pipeline; it is created on first use.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.lead import Lead
from app.models.pipeline import Pipeline, PipelineStage

logger = logging.getLogger(__name__)

DEFAULT_STAGES = [
    ("New", "#3b82f6"),
    ("Contacted", "#8b5cf6"),
    ("Qualified", "#f59e0b"),
    ("Site Visit", "#10b981"),
    ("Negotiation", "#ef4444"),
    ("Closed", "#6b7280"),
]


async def get_default_pipeline(db: AsyncSession, organization_id: UUID) -> Pipeline:
    """Return the organization's default pipeline, seeding it with stages if missing."""
    result = await db.execute(
        select(Pipeline)
        .where(Pipeline.organization_id == organization_id)
        .order_by(Pipeline.is_default.desc(), Pipeline.created_at)
        .limit(1)
    )
    pipeline = result.scalar_one_or_none()
    if pipeline:
        return pipeline

    pipeline = Pipeline(organization_id=organization_id, name="Sales Pipeline", is_default=True)
    db.add(pipeline)
    await db.flush()
    for index, (name, color) in enumerate(DEFAULT_STAGES):
        db.add(PipelineStage(pipeline_id=pipeline.id, name=name, color=color, order_index=index))
    await db.commit()
    await db.refresh(pipeline)

    logger.info("Seeded default pipeline %s for org %s", pipeline.id, organization_id)
    return pipeline


async def list_stages(db: AsyncSession, organization_id: UUID) -> List[PipelineStage]:
    pipeline = await get_default_pipeline(db, organization_id)
    result = await db.execute(
        select(PipelineStage)
        .where(PipelineStage.pipeline_id == pipeline.id)
        .order_by(PipelineStage.order_index)
    )
    return list(result.scalars().all())


async def get_stage(db: AsyncSession, organization_id: UUID, stage_id: UUID) -> Optional[PipelineStage]:
    """Stage lookup that only matches stages of the organization's pipelines."""
    result = await db.execute(
        select(PipelineStage)
        .join(Pipeline, Pipeline.id == PipelineStage.pipeline_id)
        .where(PipelineStage.id == stage_id, Pipeline.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def create_stage(db: AsyncSession, organization_id: UUID, data: Dict[str, Any]) -> PipelineStage:
    pipeline = await get_default_pipeline(db, organization_id)
    if data.get("order_index") is None:
        max_index = (await db.execute(
            select(func.max(PipelineStage.order_index)).where(PipelineStage.pipeline_id == pipeline.id)
        )).scalar()
        data["order_index"] = 0 if max_index is None else max_index + 1

    stage = PipelineStage(pipeline_id=pipeline.id, **data)
    db.add(stage)
    await db.commit()
    await db.refresh(stage)

    logger.info("Created stage %s (%s) in pipeline %s", stage.id, stage.name, pipeline.id)
    return stage


async def update_stage(
    db: AsyncSession,
    organization_id: UUID,
    stage_id: UUID,
    updates: Dict[str, Any],
) -> Optional[PipelineStage]:
    stage = await get_stage(db, organization_id, stage_id)
    if not stage:
        return None

    for field, value in updates.items():
        setattr(stage, field, value)
    await db.commit()
    await db.refresh(stage)
    return stage


async def delete_stage(db: AsyncSession, organization_id: UUID, stage_id: UUID) -> bool:
    """Delete a stage; leads sitting in it lose their stage."""
    stage = await get_stage(db, organization_id, stage_id)
    if not stage:
        return False

    await db.execute(
        update(Lead)
        .where(Lead.stage_id == stage_id, Lead.organization_id == organization_id)
        .values(stage_id=None)
    )
    await db.delete(stage)
    await db.commit()

    logger.info("Deleted stage %s", stage_id)
    return True
