"""Permission introspection for the current user."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_user
from app.models.user import User
from app.schemas.auth import PermissionsOut
from app.services.permissions import get_user_permissions

router = APIRouter()


@router.get("/me", response_model=PermissionsOut)
async def my_permissions(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return PermissionsOut(
        user_id=current_user.id,
        is_platform_admin=bool(current_user.is_platform_admin),
        permissions=await get_user_permissions(db, current_user.id),
    )
