# backend/buildslots/schemas/scheduling_settings.py

from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .availability_rules import check_timezone


class SchedulingSettingsUpdate(BaseModel):
    timezone: str = "UTC"
    min_notice_minutes: int = Field(60, ge=0)
    max_advance_days: Optional[int] = Field(30, ge=1, description="None = no horizon")
    buffer_minutes: int = Field(0, ge=0)
    is_accepting_bookings: bool = True

    model_config = {"from_attributes": True}

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return check_timezone(v)


class SchedulingSettingsRead(BaseModel):
    builder_id: int
    timezone: str
    min_notice_minutes: int
    max_advance_days: Optional[int] = None
    buffer_minutes: int
    is_accepting_bookings: bool

    model_config = {"from_attributes": True}
