"""Team member endpoints."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_permission
from app.core.errors import NotFoundError, ValidationError
from app.models.user import User
from app.schemas.user import UserOut, UserUpdate
from app.services import users as user_service
from app.services.audit_service import log_audit

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[UserOut])
async def list_users(
    role_id: Optional[UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    current_user: User = Depends(require_permission("team.view")),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db, current_user.organization_id, role_id=role_id, is_active=is_active)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    user_in: UserUpdate,
    current_user: User = Depends(require_permission("team.manage")),
    db: AsyncSession = Depends(get_db),
):
    updates = user_in.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update")

    user = await user_service.update_user(db, current_user.organization_id, user_id, updates)
    if not user:
        raise NotFoundError("User")
    return user


@router.post("/{user_id}/toggle-active", response_model=UserOut)
async def toggle_active(
    user_id: UUID,
    current_user: User = Depends(require_permission("team.manage")),
    db: AsyncSession = Depends(get_db),
):
    if user_id == current_user.id:
        raise ValidationError("You cannot deactivate your own account")

    user = await user_service.toggle_user_active(db, current_user.organization_id, user_id)
    if not user:
        raise NotFoundError("User")

    response = UserOut.model_validate(user)
    await log_audit(db, current_user, "user.toggle_active", "user", user_id, {"is_active": response.is_active})
    return response
