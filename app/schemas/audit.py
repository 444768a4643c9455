"""Pydantic schemas for the audit log."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class AuditLogOut(BaseModel):
    id: UUID
    organization_id: UUID | None = None
    user_id: UUID | None = None
    user_name: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: str | None = None
    details: dict | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
