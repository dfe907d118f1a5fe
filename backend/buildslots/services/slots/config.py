# backend/buildslots/services/slots/config.py
"""
Booking configuration and time helpers for slots calculation.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...errors import InvalidTimezoneError


DB_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for booking/slots system.

    Attributes:
        max_range_days: Widest date range a single slots request may cover
        default_timezone: Builder timezone when no settings row exists
        default_min_notice_minutes: Lead time before a slot can be booked
        default_max_advance_days: How many days ahead slots are offered
        default_buffer_minutes: Gap kept free around existing bookings
    """
    max_range_days: int = 90
    default_timezone: str = "UTC"
    default_min_notice_minutes: int = 60
    default_max_advance_days: int | None = 30
    default_buffer_minutes: int = 0

    def __post_init__(self):
        """Validate configuration."""
        if self.max_range_days < 1:
            raise ValueError(f"max_range_days must be >= 1, got {self.max_range_days}")
        if self.default_min_notice_minutes < 0:
            raise ValueError(
                f"default_min_notice_minutes must be >= 0, got {self.default_min_notice_minutes}"
            )
        if self.default_buffer_minutes < 0:
            raise ValueError(
                f"default_buffer_minutes must be >= 0, got {self.default_buffer_minutes}"
            )


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton), built from application settings."""
    from ...config import settings

    return BookingConfig(
        max_range_days=settings.max_range_days,
        default_timezone=settings.default_timezone,
        default_min_notice_minutes=settings.default_min_notice_minutes,
        default_max_advance_days=settings.default_max_advance_days,
        default_buffer_minutes=settings.default_buffer_minutes,
    )


# ── Time-of-day helpers ─────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight. "24:00" is end of day."""
    hour_str, minute_str = value.strip().split(":")
    hour, minute = int(hour_str), int(minute_str)
    total = hour * 60 + minute
    if minute >= 60 or total > MINUTES_PER_DAY or total < 0:
        raise ValueError(f"Invalid time of day: {value!r}")
    return total


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


# ── Timezones and instants ──────────────────────────────────────────────


def resolve_timezone(key: str) -> ZoneInfo:
    """Resolve an IANA timezone identifier or fail with InvalidTimezoneError."""
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise InvalidTimezoneError(f"Unknown timezone: {key!r}") from None


def ensure_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Format an instant as the UTC text stored in bookings.date_start/date_end."""
    return ensure_utc(value).strftime(DB_TIMESTAMP_FORMAT)


def from_db_timestamp(value: str | datetime) -> datetime:
    """Parse a stored UTC timestamp back to an aware datetime."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    return datetime.strptime(value, DB_TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
