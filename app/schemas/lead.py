"""Pydantic schemas for lead endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID
from pydantic import BaseModel, Field


class LeadCreate(BaseModel):
    name: str
    phone: str | None = None
    email: str | None = None
    status: str = "new"
    project_id: UUID | None = None
    stage_id: UUID | None = None
    assigned_to: UUID | None = None
    avatar_url: str | None = None
    raw_data: dict | None = None


class LeadUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    status: str | None = None
    project_id: UUID | None = None
    stage_id: UUID | None = None
    assigned_to: UUID | None = None
    call_status: str | None = None
    avatar_url: str | None = None
    raw_data: dict | None = None


class LeadOut(BaseModel):
    id: UUID
    organization_id: UUID
    project_id: UUID | None = None
    stage_id: UUID | None = None
    property_id: UUID | None = None
    assigned_to: UUID | None = None
    name: str
    phone: str | None = None
    email: str | None = None
    status: str
    call_status: str | None = None
    transferred_to_human: bool = False
    last_contacted_at: datetime | None = None
    avatar_url: str | None = None
    raw_data: dict | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class LeadList(BaseModel):
    leads: list[LeadOut]
    total: int
    page: int
    limit: int


class BulkLeadUpdate(BaseModel):
    """Request body for POST /leads/bulk-update."""
    lead_ids: list[str] = Field(default_factory=list, alias="leadIds")
    updates: dict[str, Any] = Field(default_factory=dict)

    class Config:
        populate_by_name = True


class BulkUpdateResult(BaseModel):
    success: bool = True
    count: int


class LinkProperty(BaseModel):
    property_id: UUID
