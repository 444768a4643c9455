"""FastAPI dependencies for authentication and authorization."""

from typing import Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthorizedError, ValidationError
from app.models.user import User
from app.services.auth import decode_access_token
from app.services.permissions import has_any_permission

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from the bearer JWT.

    Raises 401 if no token, invalid token or unknown user; 403 if the
    account is disabled.
    """
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise UnauthorizedError("Could not validate credentials")

    user_id_str: Optional[str] = payload.get("sub")
    try:
        user_id = UUID(user_id_str)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    return user


async def get_org_user(current_user: User = Depends(get_current_user)) -> User:
    """Current user, required to belong to an organization."""
    if not current_user.organization_id:
        raise ValidationError("Organization not found")
    return current_user


def require_permission(*keys: str):
    """Dependency factory: caller must hold at least one of ``keys``.

    Usage:
        @router.post("/{campaign_id}/call")
        async def run(user: User = Depends(require_permission("campaign.run"))):
            ...
    """
    async def permission_checker(
        current_user: User = Depends(get_org_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        if not await has_any_permission(db, current_user.id, keys):
            raise ForbiddenError(f"Insufficient permissions. Required: {' or '.join(keys)}")
        return current_user

    return permission_checker
