"""Pydantic schemas for projects."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class ProjectCreate(BaseModel):
    name: str
    description: str | None = None
    address: str | None = None
    project_type: str | None = None
    status: str = "active"


class ProjectUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    address: str | None = None
    project_type: str | None = None
    status: str | None = None


class ProjectOut(BaseModel):
    id: UUID
    organization_id: UUID
    name: str
    description: str | None = None
    address: str | None = None
    project_type: str | None = None
    status: str
    total_units: int = 0
    available_units: int = 0
    reserved_units: int = 0
    sold_units: int = 0
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ProjectStats(BaseModel):
    leads: int
    campaigns: int
    properties: int
    total_units: int
    available_units: int
    reserved_units: int
    sold_units: int
