"""Pydantic schemas for deals."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel


class DealCreate(BaseModel):
    lead_id: UUID
    title: str
    property_id: UUID | None = None
    amount: Decimal | None = None
    status: str = "open"


class DealUpdate(BaseModel):
    title: str | None = None
    property_id: UUID | None = None
    amount: Decimal | None = None
    status: str | None = None


class DealOut(BaseModel):
    id: UUID
    organization_id: UUID
    lead_id: UUID
    property_id: UUID | None = None
    title: str
    amount: Decimal | None = None
    status: str
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
