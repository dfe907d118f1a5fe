# backend/buildslots/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class SlotRead(BaseModel):
    """A bookable interval. Pass it back unchanged to POST /bookings."""
    builder_id: int
    session_type_id: int
    start_utc: datetime
    end_utc: datetime

    model_config = {"from_attributes": True}


class SlotsRangeResponse(BaseModel):
    """Ordered bookable slots for a date range."""
    builder_id: int
    session_type_id: int
    start_date: date
    end_date: date
    timezone: str = Field(description="Builder timezone the dates refer to")
    slots: list[SlotRead]

    model_config = {"from_attributes": True}


class SlotsDayStatus(BaseModel):
    """Status of a single day in calendar."""
    date: date
    has_slots: bool
    open_slots_count: int = 0

    model_config = {"from_attributes": True}


class SlotsCalendarResponse(BaseModel):
    """Response with calendar of available days."""
    builder_id: int
    session_type_id: int
    start_date: date
    end_date: date
    days: list[SlotsDayStatus]

    # Metadata
    timezone: str
    min_notice_minutes: int
    max_advance_days: Optional[int] = None

    model_config = {"from_attributes": True}
