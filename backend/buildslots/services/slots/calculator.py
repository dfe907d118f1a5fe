# backend/buildslots/services/slots/calculator.py
"""
Slot generation: weekly rules + date exceptions + bookings → bookable slots.

Pure computation. Inputs are the value types from types.py; no database,
no clock unless `now` is omitted.

Per local date of the builder:
✓ exceptions replace the weekly rules for that date
✓ windows sliced into fixed-duration slots, trailing partials dropped
✓ local endpoints converted to UTC independently (DST-safe)
✓ bookings (buffer-widened), minimum notice and horizon filtered out

Does NOT:
✗ Read bookings/rules from storage (availability.py)
✗ Reserve anything (booking_commit.py)
"""

from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from ...errors import InvalidRangeError, InvalidSessionTypeError, OwnershipMismatchError
from .config import ensure_utc, resolve_timezone
from .types import (
    AvailabilityException,
    AvailabilityRule,
    BookedInterval,
    BookingStatus,
    DateRange,
    SchedulingSettings,
    SessionType,
    TimeSlot,
)


def generate_slots(
    builder_id: int,
    date_range: DateRange,
    session_type: SessionType,
    rules: Iterable[AvailabilityRule],
    exceptions: Iterable[AvailabilityException],
    existing_bookings: Iterable[BookedInterval],
    settings: SchedulingSettings,
    now: datetime | None = None,
    max_range_days: int = 90,
) -> list[TimeSlot]:
    """
    Calculate bookable slots for a builder over an inclusive date range.

    Returns:
        Slots ordered by start_utc, pairwise non-overlapping.

    Raises:
        InvalidRangeError, InvalidSessionTypeError,
        OwnershipMismatchError, InvalidTimezoneError
    """
    rules = list(rules)
    exceptions = list(exceptions)

    # Step 1: Validate inputs
    _validate_range(date_range, max_range_days)
    if session_type.duration_minutes <= 0:
        raise InvalidSessionTypeError(
            f"Session type {session_type.id} has non-positive duration "
            f"{session_type.duration_minutes}"
        )
    _check_ownership(builder_id, session_type, rules, exceptions)

    builder_tz = resolve_timezone(settings.timezone)
    rule_zones = {
        rule.timezone: resolve_timezone(rule.timezone)
        for rule in rules
        if rule.timezone
    }

    if not session_type.is_active or not settings.is_accepting_bookings:
        return []

    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    earliest = now + timedelta(minutes=settings.min_notice_minutes)
    latest = (
        now + timedelta(days=settings.max_advance_days)
        if settings.max_advance_days is not None
        else None
    )

    # Step 2: Slice windows into candidates (exact duplicates collapse)
    duration = session_type.duration_minutes
    exceptions_by_date: dict[date, list[AvailabilityException]] = defaultdict(list)
    for exc in exceptions:
        exceptions_by_date[exc.date].append(exc)

    candidates: set[tuple[datetime, datetime]] = set()
    for day in date_range.days():
        windows = _day_windows(day, rules, exceptions_by_date.get(day), builder_tz, rule_zones)
        for start_min, end_min, zone in windows:
            t = start_min
            while t + duration <= end_min:
                interval = _to_utc_interval(day, t, duration, zone)
                if interval is not None:
                    candidates.add(interval)
                t += duration

    # Step 3: Drop booked, too-soon and too-far candidates
    buffer = timedelta(minutes=settings.buffer_minutes)
    busy = [
        (booking.start_utc - buffer, booking.end_utc + buffer)
        for booking in existing_bookings
        if booking.builder_id == builder_id
        and booking.status != BookingStatus.CANCELLED.value
    ]

    free = sorted(
        (start, end)
        for start, end in candidates
        if start >= earliest
        and (latest is None or start <= latest)
        and not any(overlaps(start, end, b_start, b_end) for b_start, b_end in busy)
    )

    # Step 4: Overlapping rules may leave partially overlapping candidates;
    # keep the earliest of each overlapping run
    slots: list[TimeSlot] = []
    for start, end in free:
        if slots and start < slots[-1].end_utc:
            continue
        slots.append(TimeSlot(
            builder_id=builder_id,
            session_type_id=session_type.id,
            start_utc=start,
            end_utc=end,
        ))

    return slots


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: [a_start, a_end) ∩ [b_start, b_end) ≠ ∅."""
    return b_start < a_end and a_start < b_end


# ── Helpers ──────────────────────────────────────────────────────────────


def _validate_range(date_range: DateRange, max_range_days: int) -> None:
    if date_range.start > date_range.end:
        raise InvalidRangeError(
            f"Range start {date_range.start} is after end {date_range.end}"
        )
    if date_range.days_count > max_range_days:
        raise InvalidRangeError(
            f"Range covers {date_range.days_count} days, maximum is {max_range_days}"
        )


def _check_ownership(
    builder_id: int,
    session_type: SessionType,
    rules: list[AvailabilityRule],
    exceptions: list[AvailabilityException],
) -> None:
    if session_type.builder_id is not None and session_type.builder_id != builder_id:
        raise OwnershipMismatchError(
            f"Session type {session_type.id} belongs to builder {session_type.builder_id}"
        )
    foreign = {r.builder_id for r in rules} | {e.builder_id for e in exceptions}
    foreign.discard(builder_id)
    if foreign:
        raise OwnershipMismatchError(
            f"Availability for builder {builder_id} mixes entries of builders {sorted(foreign)}"
        )


def _day_windows(
    day: date,
    rules: list[AvailabilityRule],
    day_exceptions: list[AvailabilityException] | None,
    builder_tz: ZoneInfo,
    rule_zones: dict[str, ZoneInfo],
) -> list[tuple[int, int, ZoneInfo]]:
    """
    Availability windows for one local date: (start_min, end_min, zone).

    Exceptions take precedence: any unavailable exception closes the day,
    available ones with a window replace the weekly rules. An available
    exception without a window keeps the weekly rules.
    """
    if day_exceptions:
        if any(not exc.is_available for exc in day_exceptions):
            return []
        override = [
            (exc.start_minute, exc.end_minute, builder_tz)
            for exc in day_exceptions
            if exc.has_window and exc.start_minute < exc.end_minute
        ]
        if override:
            return override

    return [
        (rule.start_minute, rule.end_minute, rule_zones.get(rule.timezone, builder_tz))
        for rule in rules
        if rule.applies_to(day) and rule.start_minute < rule.end_minute
    ]


def _to_utc_interval(
    day: date,
    start_minute: int,
    duration: int,
    zone: ZoneInfo,
) -> tuple[datetime, datetime] | None:
    """
    Convert a local wall-clock interval to UTC, each endpoint on its own.

    Returns None when an endpoint falls in a DST gap or the interval spans
    a DST shift (its UTC length would differ from the session duration).
    Ambiguous local times resolve to the first occurrence (fold=0).
    """
    midnight = datetime.combine(day, time.min)
    local_start = midnight + timedelta(minutes=start_minute)
    local_end = local_start + timedelta(minutes=duration)

    start_utc = _local_to_utc(local_start, zone)
    end_utc = _local_to_utc(local_end, zone)
    if start_utc is None or end_utc is None:
        return None
    if end_utc - start_utc != timedelta(minutes=duration):
        return None
    return start_utc, end_utc


def _local_to_utc(local: datetime, zone: ZoneInfo) -> datetime | None:
    aware = local.replace(tzinfo=zone)
    utc = aware.astimezone(timezone.utc)
    # Wall-clock times skipped by a DST jump do not round-trip
    if utc.astimezone(zone).replace(tzinfo=None) != local:
        return None
    return utc
