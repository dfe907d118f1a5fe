# backend/buildslots/schemas/availability_exceptions.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, field_validator, model_validator

from ..services.slots.config import time_str_to_minutes
from .availability_rules import check_time_of_day


class AvailabilityExceptionCreate(BaseModel):
    builder_id: int
    date: date
    is_available: bool

    # Replacement window, required when is_available
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return check_time_of_day(v)

    @model_validator(mode="after")
    def check_window(self):
        if not self.is_available:
            # Day off: a window would be meaningless
            self.start_time = None
            self.end_time = None
            return self
        if not self.start_time or not self.end_time:
            raise ValueError("start_time and end_time are required when is_available is true")
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityExceptionRead(BaseModel):
    id: int
    builder_id: int
    date: date
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    reason: Optional[str] = None

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
