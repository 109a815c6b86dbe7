"""Pydantic schemas for Masses."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from parish.models.mass import SlotPool


class MassCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    scheduled_at: datetime
    location: str = Field(min_length=1, max_length=500)
    intention_slots: int = Field(ge=0)
    thanksgiving_slots: int = Field(ge=0)


class MassUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    scheduled_at: Optional[datetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=500)
    intention_slots: Optional[int] = Field(None, ge=0)
    thanksgiving_slots: Optional[int] = Field(None, ge=0)


class CapacityResize(BaseModel):
    pool: SlotPool
    new_total: int = Field(ge=0)


class MassOut(BaseModel):
    mass_id: str
    title: str
    scheduled_at: datetime
    location: str
    intention_capacity_total: int
    intention_capacity_remaining: int
    thanksgiving_capacity_total: int
    thanksgiving_capacity_remaining: int
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
