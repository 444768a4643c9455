"""Pydantic schemas for authentication endpoints."""

from uuid import UUID
from pydantic import BaseModel, EmailStr


class UserLogin(BaseModel):
    """Request schema for user login."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Response schema for login: returns the JWT token."""
    access_token: str
    token_type: str = "bearer"
    user_id: UUID | None = None
    organization_id: UUID | None = None
    full_name: str | None = None
    email: str | None = None


class PermissionsOut(BaseModel):
    """Effective permission keys of the caller."""
    user_id: UUID
    is_platform_admin: bool = False
    permissions: list[str]


class MeOut(PermissionsOut):
    """Current profile plus its permissions."""
    email: str
    full_name: str | None = None
    organization_id: UUID | None = None
    role_id: UUID | None = None
    role: str | None = None
