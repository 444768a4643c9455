"""Authentication endpoints."""

import logging
from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.errors import ForbiddenError, UnauthorizedError
from app.models.role import Role
from app.models.user import User
from app.schemas.auth import UserLogin, Token, MeOut
from app.services.auth import authenticate_user, create_access_token
from app.services.permissions import get_user_permissions

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer token."""
    user = await authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.warning("Failed login for %s", credentials.email)
        raise UnauthorizedError("Incorrect email or password")

    if not user.is_active:
        raise ForbiddenError("User account is disabled")

    token = create_access_token(user)
    response = Token(
        access_token=token,
        user_id=user.id,
        organization_id=user.organization_id,
        full_name=user.full_name,
        email=user.email,
    )

    user.last_login_at = datetime.utcnow()
    await db.commit()

    logger.info("User %s logged in", user.id)
    return response


@router.get("/me", response_model=MeOut)
async def me(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Current profile with its role and effective permissions."""
    role_name = None
    if current_user.role_id:
        result = await db.execute(select(Role.name).where(Role.id == current_user.role_id))
        role_name = result.scalar_one_or_none()

    return MeOut(
        user_id=current_user.id,
        email=current_user.email,
        full_name=current_user.full_name,
        organization_id=current_user.organization_id,
        role_id=current_user.role_id,
        role=role_name,
        is_platform_admin=bool(current_user.is_platform_admin),
        permissions=await get_user_permissions(db, current_user.id),
    )
