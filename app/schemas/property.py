"""Pydantic schemas for the property inventory."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel


class PropertyCreate(BaseModel):
    title: str
    project_id: UUID | None = None
    property_type: str | None = None
    status: str = "available"
    price: Decimal | None = None
    show_in_crm: bool = True


class PropertyUpdate(BaseModel):
    title: str | None = None
    project_id: UUID | None = None
    property_type: str | None = None
    price: Decimal | None = None
    show_in_crm: bool | None = None


class PropertyOut(BaseModel):
    id: UUID
    organization_id: UUID
    project_id: UUID | None = None
    title: str
    property_type: str | None = None
    status: str
    price: Decimal | None = None
    show_in_crm: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class PropertyStatusUpdate(BaseModel):
    """Body of PATCH /inventory/properties/{id}/status."""
    status: str
    lead_id: UUID | None = None


class ProjectMetrics(BaseModel):
    total_units: int
    available_units: int
    reserved_units: int
    sold_units: int


class PropertyStatusResult(BaseModel):
    property: PropertyOut
    projectMetrics: ProjectMetrics | None = None
    message: str
