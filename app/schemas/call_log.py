"""Pydantic schemas for call logs."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field


class CallLogOut(BaseModel):
    """Response schema for call log endpoints."""
    id: UUID
    organization_id: UUID | None = None
    campaign_id: UUID | None = None
    lead_id: UUID | None = None
    call_sid: str | None = None
    call_status: str
    transferred: bool = False
    duration: int | None = None
    direction: str | None = None
    notes: str | None = None
    recording_url: str | None = None
    transcript: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="call_metadata")
    created_at: datetime | None = None
    ended_at: datetime | None = None

    class Config:
        from_attributes = True


class CallLogCreate(BaseModel):
    """Manually logged call (e.g. an agent dialing from a desk phone)."""
    campaign_id: UUID | None = None
    lead_id: UUID | None = None
    call_status: str = "called"
    transferred: bool = False
    duration: int | None = None
    direction: str | None = "outbound"
    notes: str | None = None
    recording_url: str | None = None


class CallLogUpdate(BaseModel):
    call_status: str | None = None
    transferred: bool | None = None
    duration: int | None = None
    notes: str | None = None
    recording_url: str | None = None
    transcript: str | None = None


class CallLogStats(BaseModel):
    total_calls: int
    transferred: int
    by_status: dict[str, int]
    average_duration: float
    transfer_rate: float
