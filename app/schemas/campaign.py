"""Pydantic schemas for campaigns and call simulation."""

from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel


class CampaignCreate(BaseModel):
    project_id: UUID
    name: str = "Call Campaign"
    description: str | None = None
    ai_script: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    time_start: str | None = None
    time_end: str | None = None


class CampaignUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    status: str | None = None
    ai_script: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    time_start: str | None = None
    time_end: str | None = None


class CampaignOut(BaseModel):
    id: UUID
    organization_id: UUID
    project_id: UUID
    name: str
    description: str | None = None
    status: str
    ai_script: str | None = None
    total_calls: int = 0
    transferred_calls: int = 0
    start_date: date | None = None
    end_date: date | None = None
    time_start: str | None = None
    time_end: str | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CampaignList(BaseModel):
    campaigns: list[CampaignOut]
    total: int
    page: int
    limit: int


class CallResult(BaseModel):
    leadId: str
    leadName: str
    outcome: str
    transferred: bool


class SimulationSummary(BaseModel):
    totalCalls: int
    transferredCalls: int
    conversionRate: str
    results: list[CallResult]


class SimulationResponse(BaseModel):
    """Response of POST /campaigns/{id}/call."""
    campaign: CampaignOut
    summary: SimulationSummary


class CampaignProgress(BaseModel):
    status: str
    total: int
    processed: int
    percentage: int


class CampaignStats(BaseModel):
    total_calls: int
    transferred: int
    no_answer: int
    failed: int
    by_status: dict[str, int]
    average_duration: float
    conversion_rate: float
