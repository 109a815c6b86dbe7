"""Pydantic schemas for Reservations (mass intentions and thanksgivings)."""
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from parish.models.mass import SlotPool
from parish.schemas.mass import MassOut


class ReservationCreate(BaseModel):
    mass_id: str
    pool: SlotPool
    payload: str = Field(min_length=1, max_length=2000)
    name: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def _intention_needs_name(self) -> "ReservationCreate":
        if self.pool == SlotPool.intention and not (self.name and self.name.strip()):
            raise ValueError("A mass intention needs the name it is offered for")
        return self


class ReservationStatusUpdate(BaseModel):
    status: Literal["APPROVED", "REJECTED"]


class ReservationOut(BaseModel):
    reservation_id: str
    mass_id: str
    requester_id: str
    requester_name: Optional[str] = None
    pool: str
    name: Optional[str] = None
    payload: str
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReservationWithMassOut(ReservationOut):
    mass: MassOut


class ReservationPage(BaseModel):
    items: list[ReservationWithMassOut]
    total: int
    page: int
    page_size: int
