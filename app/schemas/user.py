"""Pydantic schemas for team member endpoints."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class UserOut(BaseModel):
    """Team member as returned by the API."""
    id: UUID
    email: str
    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    organization_id: UUID | None = None
    role_id: UUID | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    role_id: UUID | None = None
