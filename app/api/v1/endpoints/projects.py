"""Project endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError
from app.models.user import User
from app.schemas.project import ProjectCreate, ProjectUpdate, ProjectOut, ProjectStats
from app.services import projects as project_service

router = APIRouter()


@router.get("", response_model=List[ProjectOut])
async def list_projects(
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_permission("project.view")),
    db: AsyncSession = Depends(get_db),
):
    return await project_service.list_projects(db, current_user.organization_id, status=status)


@router.post("", response_model=ProjectOut, status_code=201)
async def create_project(
    project_in: ProjectCreate,
    current_user: User = Depends(require_permission("project.create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a project; a draft campaign is created alongside it."""
    return await project_service.create_project(
        db, current_user.organization_id, current_user.id, project_in.model_dump()
    )


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: UUID,
    current_user: User = Depends(require_permission("project.view")),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.get_project(db, current_user.organization_id, project_id)
    if not project:
        raise NotFoundError("Project")
    return project


@router.patch("/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: UUID,
    project_in: ProjectUpdate,
    current_user: User = Depends(require_permission("project.edit")),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.update_project(
        db, current_user.organization_id, project_id, project_in.model_dump(exclude_unset=True)
    )
    if not project:
        raise NotFoundError("Project")
    return project


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    current_user: User = Depends(require_permission("project.delete")),
    db: AsyncSession = Depends(get_db),
):
    if not await project_service.delete_project(db, current_user.organization_id, project_id):
        raise NotFoundError("Project")


@router.get("/{project_id}/stats", response_model=ProjectStats)
async def project_stats(
    project_id: UUID,
    current_user: User = Depends(require_permission("project.view")),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.get_project(db, current_user.organization_id, project_id)
    if not project:
        raise NotFoundError("Project")
    return await project_service.get_project_stats(db, project)
