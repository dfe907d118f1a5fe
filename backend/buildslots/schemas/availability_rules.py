# backend/buildslots/schemas/availability_rules.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from ..errors import InvalidTimezoneError
from ..services.slots.config import resolve_timezone, time_str_to_minutes


def check_time_of_day(v: Optional[str]) -> Optional[str]:
    """Validate "HH:MM" (00:00–24:00) and normalize to zero-padded form."""
    if v is None:
        return v
    try:
        minutes = time_str_to_minutes(v)
    except ValueError:
        raise ValueError("Time must be in HH:MM format (00:00–24:00)")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def check_timezone(v: Optional[str]) -> Optional[str]:
    """Validate an IANA timezone identifier."""
    if v is None:
        return v
    try:
        resolve_timezone(v)
    except InvalidTimezoneError as e:
        raise ValueError(e.message)
    return v


class AvailabilityRuleCreate(BaseModel):
    builder_id: int
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: str = Field(description="Local time in HH:MM format")
    end_time: str = Field(description="Local time in HH:MM format, 24:00 allowed")
    timezone: Optional[str] = Field(None, description="IANA timezone, defaults to builder timezone")
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None

    model_config = {"from_attributes": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return check_time_of_day(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return check_timezone(v)

    @model_validator(mode="after")
    def check_window(self):
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        if (
            self.effective_date
            and self.expiration_date
            and self.effective_date > self.expiration_date
        ):
            raise ValueError("effective_date must not be after expiration_date")
        return self


class AvailabilityRuleRead(BaseModel):
    id: int
    builder_id: int
    day_of_week: int
    start_time: str
    end_time: str
    timezone: Optional[str] = None
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None

    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
