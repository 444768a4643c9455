"""Profile reads and writes with a process-local read-through cache.

Every profile mutation goes through ``update_profile`` which commits and
then drops the cached entry, so a cached profile is never newer than the
row and never older than the TTL.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)

# Structure: {user_id: (cached_at, snapshot)}
_profile_cache: dict[UUID, tuple[datetime, dict]] = {}

# Columns exposed in cached snapshots and accepted by update_profile
PROFILE_FIELDS = ("organization_id", "role_id", "full_name", "email", "phone", "avatar_url", "is_active")


def _snapshot(user: User) -> dict:
    snapshot = {"id": user.id, "is_platform_admin": bool(user.is_platform_admin)}
    for field in PROFILE_FIELDS:
        snapshot[field] = getattr(user, field)
    return snapshot


def _is_fresh(cached_at: datetime) -> bool:
    ttl = timedelta(seconds=settings.PROFILE_CACHE_TTL_SECONDS)
    return datetime.utcnow() - cached_at < ttl


def invalidate_profile(user_id: Optional[UUID] = None) -> None:
    """Drop one cached profile, or the whole cache when no id is given."""
    if user_id is None:
        _profile_cache.clear()
    else:
        _profile_cache.pop(user_id, None)


async def get_profile(db: AsyncSession, user_id: UUID, force_refresh: bool = False) -> Optional[dict]:
    """Return a profile snapshot, served from cache while fresh."""
    if not force_refresh:
        cached = _profile_cache.get(user_id)
        if cached and _is_fresh(cached[0]):
            return cached[1]

    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if not user:
        invalidate_profile(user_id)
        return None

    snapshot = _snapshot(user)
    _profile_cache[user_id] = (datetime.utcnow(), snapshot)
    return snapshot


async def update_profile(
    db: AsyncSession,
    user_id: UUID,
    organization_id: UUID,
    updates: Dict[str, Any],
) -> Optional[User]:
    """Apply ``updates`` to a profile in ``organization_id`` and invalidate its cache entry.

    Returns None when the profile does not exist in that organization.
    """
    result = await db.execute(
        select(User).where(User.id == user_id, User.organization_id == organization_id)
    )
    user = result.scalar_one_or_none()
    if not user:
        return None

    for field, value in updates.items():
        if field not in PROFILE_FIELDS:
            raise ValueError(f"Profile field '{field}' cannot be updated")
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    invalidate_profile(user_id)

    logger.info("Profile %s updated: %s", user_id, ", ".join(sorted(updates)))
    return user
