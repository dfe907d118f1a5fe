# backend/buildslots/services/slots/types.py
"""
Plain value types consumed and produced by the slot calculator.

The calculator never sees ORM rows; availability.py converts them.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterator, Optional


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy a builder's time
ACTIVE_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.COMPLETED.value,
)


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates in the builder's timezone."""
    start: date
    end: date

    @property
    def days_count(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


@dataclass(frozen=True)
class AvailabilityRule:
    """
    Recurring weekly window.

    day_of_week: 0 = Sunday ... 6 = Saturday
    start_minute / end_minute: minutes since local midnight (end may be 1440)
    timezone: overrides the builder timezone when set
    """
    builder_id: int
    day_of_week: int
    start_minute: int
    end_minute: int
    timezone: Optional[str] = None
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None

    def applies_to(self, day: date) -> bool:
        if weekday_sunday_first(day) != self.day_of_week:
            return False
        if self.effective_date and day < self.effective_date:
            return False
        if self.expiration_date and day > self.expiration_date:
            return False
        return True


@dataclass(frozen=True)
class AvailabilityException:
    """Date-specific override. Window fields are used only when available."""
    builder_id: int
    date: date
    is_available: bool
    start_minute: Optional[int] = None
    end_minute: Optional[int] = None

    @property
    def has_window(self) -> bool:
        return self.start_minute is not None and self.end_minute is not None


@dataclass(frozen=True)
class SessionType:
    id: int
    duration_minutes: int
    builder_id: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class BookedInterval:
    """Existing booking as seen by the conflict check."""
    builder_id: int
    start_utc: datetime
    end_utc: datetime
    status: str = BookingStatus.PENDING.value


@dataclass(frozen=True)
class SchedulingSettings:
    timezone: str = "UTC"
    min_notice_minutes: int = 0
    max_advance_days: Optional[int] = None
    buffer_minutes: int = 0
    is_accepting_bookings: bool = True


@dataclass(frozen=True)
class TimeSlot:
    builder_id: int
    session_type_id: int
    start_utc: datetime
    end_utc: datetime

    @property
    def key(self) -> tuple[datetime, datetime]:
        return self.start_utc, self.end_utc


def weekday_sunday_first(day: date) -> int:
    """Weekday index with Sunday = 0 (Python's weekday() has Monday = 0)."""
    return (day.weekday() + 1) % 7
