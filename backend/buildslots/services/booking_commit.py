# backend/buildslots/services/booking_commit.py
"""
Booking commit: turns a client's selected slot into a pending booking.

Steps:
1. Slot must belong to the requested builder / session type
2. Identical live booking of the same client → returned as is (retry)
3. Availability re-derived from current bookings for the slot's local date
4. Conditional insert in booking_store (the actual double-booking guard)

Step 3 only fails fast; a concurrent commit that passed it too is stopped
by step 4 and reported as SlotUnavailableError.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..database import persistence_guard
from ..errors import OwnershipMismatchError, SlotUnavailableError
from ..models.tables import Bookings as DBBookings
from .booking_store import find_matching_booking, insert_booking_if_free
from .slots.availability import calculate_builder_availability, load_scheduling_settings
from .slots.config import BookingConfig, ensure_utc, get_booking_config, resolve_timezone
from .slots.types import TimeSlot

logger = logging.getLogger(__name__)


def commit_booking(
    db: Session,
    builder_id: int,
    client_id: int,
    session_type_id: int,
    slot: TimeSlot,
    now: datetime | None = None,
    config: BookingConfig | None = None,
    notes: str | None = None,
) -> DBBookings:
    """
    Commit a booking for the selected slot.

    Returns:
        Booking in pending status.

    Raises:
        SlotUnavailableError: slot no longer offered or taken concurrently
        PersistenceUnavailableError: booking store unreachable
        OwnershipMismatchError: slot issued for another builder / session type
    """
    config = config or get_booking_config()

    if slot.builder_id != builder_id or slot.session_type_id != session_type_id:
        raise OwnershipMismatchError(
            f"Slot was issued for builder {slot.builder_id} / session type "
            f"{slot.session_type_id}, not {builder_id} / {session_type_id}"
        )

    start_utc = ensure_utc(slot.start_utc)
    end_utc = ensure_utc(slot.end_utc)

    # Step 1: Replay of a request that already succeeded
    existing = find_matching_booking(db, builder_id, client_id, session_type_id, start_utc, end_utc)
    if existing is not None:
        logger.info(f"Booking replay: booking_id={existing.id}, client_id={client_id}")
        return existing

    # Step 2: Re-derive availability for the slot's local date
    with persistence_guard(db):
        scheduling = load_scheduling_settings(db, builder_id, config)
    local_date = start_utc.astimezone(resolve_timezone(scheduling.timezone)).date()

    available = calculate_builder_availability(
        db=db,
        builder_id=builder_id,
        session_type_id=session_type_id,
        start_date=local_date,
        end_date=local_date,
        config=config,
        now=now,
        scheduling=scheduling,
    )
    if (start_utc, end_utc) not in {s.key for s in available}:
        logger.warning(
            f"Slot unavailable at re-check: builder_id={builder_id}, "
            f"client_id={client_id}, slot={start_utc.isoformat()}"
        )
        raise SlotUnavailableError(
            f"Slot {start_utc.isoformat()} is no longer available, choose another time"
        )

    # Step 3: Atomic conditional insert
    try:
        booking = insert_booking_if_free(
            db,
            builder_id=builder_id,
            client_id=client_id,
            session_type_id=session_type_id,
            start_utc=start_utc,
            end_utc=end_utc,
            buffer_minutes=scheduling.buffer_minutes,
            notes=notes,
        )
    except SlotUnavailableError:
        # Lost the race to our own earlier attempt: same result, not a conflict
        existing = find_matching_booking(db, builder_id, client_id, session_type_id, start_utc, end_utc)
        if existing is not None:
            logger.info(f"Booking replay after conflict: booking_id={existing.id}")
            return existing
        logger.warning(
            f"Slot lost to concurrent booking: builder_id={builder_id}, "
            f"client_id={client_id}, slot={start_utc.isoformat()}"
        )
        raise

    logger.info(
        f"Booking committed: booking_id={booking.id}, builder_id={builder_id}, "
        f"client_id={client_id}, session_type_id={session_type_id}, "
        f"slot={start_utc.isoformat()}"
    )
    return booking
