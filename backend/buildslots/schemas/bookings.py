# backend/buildslots/schemas/bookings.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator, model_validator

from ..services.slots.config import ensure_utc, from_db_timestamp
from ..services.slots.types import BookingStatus


class BookingCreate(BaseModel):
    builder_id: int
    client_id: int
    session_type_id: int

    # The selected slot, as returned by GET /slots
    start_utc: datetime
    end_utc: datetime

    notes: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("start_utc", "end_utc", mode="after")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_interval(self):
        if self.start_utc >= self.end_utc:
            raise ValueError("start_utc must be before end_utc")
        return self


class BookingStatusUpdate(BaseModel):
    status: BookingStatus
    reason: Optional[str] = None


class BookingRead(BaseModel):
    id: int

    builder_id: int
    client_id: int
    session_type_id: int

    date_start: datetime
    date_end: datetime

    status: str
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def parse_utc(cls, v):
        """Stored as naive UTC text; expose as aware UTC."""
        if isinstance(v, str):
            return from_db_timestamp(v)
        return v
