"""Pydantic schemas for the activity feed."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ActivityOut(BaseModel):
    activity_id: str
    actor_id: str
    description: str
    audience: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadActivities(BaseModel):
    activities: list[ActivityOut]
    count: int


class MarkedRead(BaseModel):
    success: bool = True
    count: int
