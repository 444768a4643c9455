"""Pydantic schemas for pipeline stages."""

from uuid import UUID
from pydantic import BaseModel


class StageCreate(BaseModel):
    name: str
    color: str | None = None
    order_index: int | None = None


class StageUpdate(BaseModel):
    name: str | None = None
    color: str | None = None
    order_index: int | None = None


class StageOut(BaseModel):
    id: UUID
    pipeline_id: UUID
    name: str
    color: str | None = None
    order_index: int

    class Config:
        from_attributes = True
