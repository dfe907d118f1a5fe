# backend/buildslots/routers/slots.py
"""
Slots API endpoints.

GET /slots          - Ordered bookable slots for a builder's session type
GET /slots/calendar - Per-day slot counts for the same range
"""

from collections import Counter
from datetime import date, datetime, timedelta
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db, persistence_guard
from ..schemas.slots import (
    SlotRead,
    SlotsCalendarResponse,
    SlotsDayStatus,
    SlotsRangeResponse,
)
from ..services.slots import (
    calculate_builder_availability,
    get_booking_config,
    load_scheduling_settings,
)
from ..services.slots.config import resolve_timezone


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("/", response_model=SlotsRangeResponse)
def list_slots(
    builder_id: int,
    session_type_id: int,
    start_date: date,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """List bookable slots between start_date and end_date (builder-local dates)."""
    config = get_booking_config()
    end_date = end_date or start_date

    with persistence_guard(db):
        scheduling = load_scheduling_settings(db, builder_id, config)

    slots = calculate_builder_availability(
        db=db,
        builder_id=builder_id,
        session_type_id=session_type_id,
        start_date=start_date,
        end_date=end_date,
        config=config,
        scheduling=scheduling,
    )

    return SlotsRangeResponse(
        builder_id=builder_id,
        session_type_id=session_type_id,
        start_date=start_date,
        end_date=end_date,
        timezone=scheduling.timezone,
        slots=[SlotRead.model_validate(s) for s in slots],
    )


@router.get("/calendar", response_model=SlotsCalendarResponse)
def get_slots_calendar(
    builder_id: int,
    session_type_id: int,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """Calendar of days with open slots (defaults: today + builder horizon)."""
    config = get_booking_config()

    with persistence_guard(db):
        scheduling = load_scheduling_settings(db, builder_id, config)

    tz = resolve_timezone(scheduling.timezone)
    if start_date is None:
        start_date = datetime.now(tz).date()
    if end_date is None:
        horizon = scheduling.max_advance_days or config.max_range_days
        end_date = start_date + timedelta(days=min(horizon, config.max_range_days - 1))

    slots = calculate_builder_availability(
        db=db,
        builder_id=builder_id,
        session_type_id=session_type_id,
        start_date=start_date,
        end_date=end_date,
        config=config,
        scheduling=scheduling,
    )

    counts = Counter(s.start_utc.astimezone(tz).date() for s in slots)

    days = []
    current = start_date
    while current <= end_date:
        count = counts.get(current, 0)
        days.append(SlotsDayStatus(
            date=current,
            has_slots=count > 0,
            open_slots_count=count,
        ))
        current += timedelta(days=1)

    return SlotsCalendarResponse(
        builder_id=builder_id,
        session_type_id=session_type_id,
        start_date=start_date,
        end_date=end_date,
        days=days,
        timezone=scheduling.timezone,
        min_notice_minutes=scheduling.min_notice_minutes,
        max_advance_days=scheduling.max_advance_days,
    )
