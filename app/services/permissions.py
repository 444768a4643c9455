"""Permission resolution.

A profile points at a role; a role carries a list of permission keys
(``"campaign.run"``, ``"edit_own_leads"``...). Platform admins hold every
key. Resolution is fail-closed: any lookup problem answers ``False``.
"""

import enum
import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.role import Role
from app.services.profiles import get_profile

logger = logging.getLogger(__name__)


class AccessScope(str, enum.Enum):
    """How much of an organization's data a caller may touch."""
    ALL = "all"
    TEAM = "team"
    OWN = "own"
    NONE = "none"


async def _load_role_permissions(db: AsyncSession, user_id: UUID) -> Optional[tuple[bool, List[str]]]:
    """Return (is_platform_admin, permissions) or None when the profile is missing."""
    profile = await get_profile(db, user_id)
    if profile is None:
        return None
    if not profile["is_active"]:
        return False, []
    if profile["is_platform_admin"] or not profile["role_id"]:
        return profile["is_platform_admin"], []

    result = await db.execute(select(Role.permissions).where(Role.id == profile["role_id"]))
    permissions = result.scalar_one_or_none()
    return False, list(permissions or [])


async def get_user_permissions(db: AsyncSession, user_id: UUID) -> List[str]:
    """All effective permission keys for a user; ``[]`` on any failure.

    Platform admins get ``["*"]``.
    """
    try:
        loaded = await _load_role_permissions(db, user_id)
    except Exception:
        logger.exception("Permission lookup failed for user %s", user_id)
        return []

    if loaded is None:
        return []
    is_platform_admin, permissions = loaded
    if is_platform_admin:
        return ["*"]
    return sorted(set(permissions))


async def has_permission(db: AsyncSession, user_id: UUID, feature_key: str) -> bool:
    """True when the user's role grants ``feature_key``. Never raises."""
    if not user_id or not feature_key:
        return False

    try:
        loaded = await _load_role_permissions(db, user_id)
    except Exception:
        logger.exception("hasPermission lookup failed: user=%s key=%s", user_id, feature_key)
        return False

    if loaded is None:
        logger.warning("hasPermission: no profile for user %s", user_id)
        return False

    is_platform_admin, permissions = loaded
    return is_platform_admin or feature_key in permissions


async def has_any_permission(db: AsyncSession, user_id: UUID, feature_keys: Iterable[str]) -> bool:
    permissions = await get_user_permissions(db, user_id)
    if "*" in permissions:
        return True
    return any(key in permissions for key in feature_keys)


async def resolve_scope(
    db: AsyncSession,
    user_id: UUID,
    all_key: str,
    team_key: str,
    own_key: str,
) -> AccessScope:
    """Collapse an all/team/own permission triple into one AccessScope."""
    permissions = await get_user_permissions(db, user_id)
    if "*" in permissions or all_key in permissions:
        return AccessScope.ALL
    if team_key in permissions:
        return AccessScope.TEAM
    if own_key in permissions:
        return AccessScope.OWN
    return AccessScope.NONE
