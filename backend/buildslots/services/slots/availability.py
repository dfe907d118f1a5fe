# backend/buildslots/services/slots/availability.py
"""
Builder availability: loads scheduling inputs from the database and runs
the slot calculator over them.

Reads (never writes):
- session type
- weekly availability rules
- availability exceptions for the range
- scheduling settings (timezone, notice, horizon, buffer)
- live bookings around the range

Bookings are always read fresh; nothing here is cached.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.orm import Session

from ...database import persistence_guard
from ...errors import InvalidSessionTypeError
from .calculator import generate_slots
from .config import (
    BookingConfig,
    from_db_timestamp,
    get_booking_config,
    time_str_to_minutes,
    to_db_timestamp,
)
from .types import (
    ACTIVE_STATUSES,
    AvailabilityException,
    AvailabilityRule,
    BookedInterval,
    DateRange,
    SchedulingSettings,
    SessionType,
    TimeSlot,
)

logger = logging.getLogger(__name__)

# Widest UTC offset is +14:00 / -12:00; pad the booking query by two days
_BOOKING_QUERY_PADDING = timedelta(days=2)


def calculate_builder_availability(
    db: Session,
    builder_id: int,
    session_type_id: int,
    start_date: date,
    end_date: date,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    scheduling: SchedulingSettings | None = None,
) -> list[TimeSlot]:
    """
    Calculate bookable slots for a builder's session type over a date range.

    Returns:
        Ordered list of TimeSlot.
    """
    config = config or get_booking_config()

    with persistence_guard(db):
        # Step 1: Session type and builder settings
        session_type = _get_session_type(db, session_type_id)
        if session_type is None:
            raise InvalidSessionTypeError(f"Session type {session_type_id} not found")
        if scheduling is None:
            scheduling = load_scheduling_settings(db, builder_id, config)

        # Step 2: Rules and exceptions
        rules = _get_rules(db, builder_id)
        exceptions = _get_exceptions(db, builder_id, start_date, end_date)

        # Step 3: Live bookings overlapping the (padded) range
        buffer = timedelta(minutes=scheduling.buffer_minutes)
        lower = datetime.combine(start_date, time.min, tzinfo=timezone.utc) - _BOOKING_QUERY_PADDING - buffer
        upper = datetime.combine(end_date, time.min, tzinfo=timezone.utc) + _BOOKING_QUERY_PADDING + buffer
        bookings = get_active_bookings(db, builder_id, lower, upper)

    return generate_slots(
        builder_id=builder_id,
        date_range=DateRange(start_date, end_date),
        session_type=session_type,
        rules=rules,
        exceptions=exceptions,
        existing_bookings=bookings,
        settings=scheduling,
        now=now,
        max_range_days=config.max_range_days,
    )


def load_scheduling_settings(
    db: Session,
    builder_id: int,
    config: BookingConfig | None = None,
) -> SchedulingSettings:
    """Builder scheduling settings, falling back to configured defaults."""
    from ...models.tables import SchedulingSettings as DBSchedulingSettings

    config = config or get_booking_config()
    row = (
        db.query(DBSchedulingSettings)
        .filter(DBSchedulingSettings.builder_id == builder_id)
        .first()
    )
    if row is None:
        return SchedulingSettings(
            timezone=config.default_timezone,
            min_notice_minutes=config.default_min_notice_minutes,
            max_advance_days=config.default_max_advance_days,
            buffer_minutes=config.default_buffer_minutes,
        )

    return SchedulingSettings(
        timezone=row.timezone,
        min_notice_minutes=row.min_notice_minutes,
        max_advance_days=row.max_advance_days,
        buffer_minutes=row.buffer_minutes,
        is_accepting_bookings=bool(row.is_accepting_bookings),
    )


def get_active_bookings(
    db: Session,
    builder_id: int,
    start_utc: datetime,
    end_utc: datetime,
) -> list[BookedInterval]:
    """Non-cancelled bookings of a builder intersecting [start_utc, end_utc)."""
    from ...models.tables import Bookings

    rows = (
        db.query(Bookings)
        .filter(
            Bookings.builder_id == builder_id,
            Bookings.status.in_(ACTIVE_STATUSES),
            Bookings.date_start < to_db_timestamp(end_utc),
            Bookings.date_end > to_db_timestamp(start_utc),
        )
        .all()
    )
    return [
        BookedInterval(
            builder_id=row.builder_id,
            start_utc=from_db_timestamp(row.date_start),
            end_utc=from_db_timestamp(row.date_end),
            status=row.status,
        )
        for row in rows
    ]


# ── Database helpers ─────────────────────────────────────────────────────


def _get_session_type(db: Session, session_type_id: int) -> SessionType | None:
    """Get session type by ID."""
    from ...models.tables import SessionTypes

    row = db.get(SessionTypes, session_type_id)
    if row is None:
        return None
    return SessionType(
        id=row.id,
        duration_minutes=row.duration_minutes,
        builder_id=row.builder_id,
        is_active=bool(row.is_active),
    )


def _get_rules(db: Session, builder_id: int) -> list[AvailabilityRule]:
    """Get weekly rules for builder. Malformed rows are skipped."""
    from ...models.tables import AvailabilityRules

    rows = (
        db.query(AvailabilityRules)
        .filter(AvailabilityRules.builder_id == builder_id)
        .all()
    )

    rules = []
    for row in rows:
        try:
            rules.append(AvailabilityRule(
                builder_id=row.builder_id,
                day_of_week=row.day_of_week,
                start_minute=time_str_to_minutes(row.start_time),
                end_minute=time_str_to_minutes(row.end_time),
                timezone=row.timezone,
                effective_date=_parse_date(row.effective_date),
                expiration_date=_parse_date(row.expiration_date),
            ))
        except (ValueError, AttributeError):
            logger.warning(f"Skipping malformed availability rule id={row.id}")
    return rules


def _get_exceptions(
    db: Session,
    builder_id: int,
    start_date: date,
    end_date: date,
) -> list[AvailabilityException]:
    """Get availability exceptions for builder within [start_date, end_date]."""
    from ...models.tables import AvailabilityExceptions

    rows = (
        db.query(AvailabilityExceptions)
        .filter(
            AvailabilityExceptions.builder_id == builder_id,
            AvailabilityExceptions.date >= start_date.isoformat(),
            AvailabilityExceptions.date <= end_date.isoformat(),
        )
        .all()
    )

    exceptions = []
    for row in rows:
        try:
            has_window = bool(row.is_available) and row.start_time and row.end_time
            exceptions.append(AvailabilityException(
                builder_id=row.builder_id,
                date=date.fromisoformat(row.date),
                is_available=bool(row.is_available),
                start_minute=time_str_to_minutes(row.start_time) if has_window else None,
                end_minute=time_str_to_minutes(row.end_time) if has_window else None,
            ))
        except (ValueError, AttributeError):
            logger.warning(f"Skipping malformed availability exception id={row.id}")
    return exceptions


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value[:10])
