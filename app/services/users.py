"""Team member queries. Writes are delegated to the profile cache write path."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.models.role import Role
from app.models.user import User
from app.services.profiles import update_profile

logger = logging.getLogger(__name__)


async def list_users(
    db: AsyncSession,
    organization_id: UUID,
    role_id: Optional[UUID] = None,
    is_active: Optional[bool] = None,
) -> List[User]:
    query = select(User).where(User.organization_id == organization_id)
    if role_id:
        query = query.where(User.role_id == role_id)
    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    result = await db.execute(query.order_by(User.created_at))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, organization_id: UUID, user_id: UUID) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.id == user_id, User.organization_id == organization_id)
    )
    return result.scalar_one_or_none()


async def update_user(
    db: AsyncSession,
    organization_id: UUID,
    user_id: UUID,
    updates: Dict[str, Any],
) -> Optional[User]:
    """Edit a team member. A new role must be a system role or one of the organization's."""
    role_id = updates.get("role_id")
    if role_id is not None:
        result = await db.execute(
            select(Role.id).where(
                Role.id == role_id,
                (Role.organization_id == organization_id) | (Role.organization_id.is_(None)),
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Role")

    return await update_profile(db, user_id, organization_id, updates)


async def toggle_user_active(db: AsyncSession, organization_id: UUID, user_id: UUID) -> Optional[User]:
    user = await get_user(db, organization_id, user_id)
    if not user:
        return None

    new_state = not user.is_active
    logger.info("Setting user %s active=%s", user_id, new_state)
    return await update_profile(db, user_id, organization_id, {"is_active": new_state})
