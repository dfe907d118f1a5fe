# backend/buildslots/services/booking_store.py
"""
Booking store: the only writer of the bookings table.

insert_booking_if_free() is the correctness mechanism against double
booking. It issues one conditional statement:

    INSERT INTO bookings (...)
    SELECT ... WHERE NOT EXISTS (overlapping live booking of this builder)

SQLite executes it under a single write lock, so the check and the insert
cannot interleave with another writer. On PostgreSQL the builder's
scheduling_settings row is locked first (SELECT ... FOR UPDATE), which
serializes commits per builder. Builders without a settings row get one
inserted with the configured defaults (ON CONFLICT DO NOTHING) so there is
always a row to lock. The partial unique index on
(builder_id, date_start) is the last line for identical slots.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import Integer, Text, insert, literal, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import persistence_guard
from ..errors import InvalidStatusTransitionError, SlotUnavailableError
from ..models.tables import Bookings as DBBookings, SchedulingSettings as DBSchedulingSettings
from .slots.config import get_booking_config, to_db_timestamp
from .slots.types import ACTIVE_STATUSES, BookingStatus

logger = logging.getLogger(__name__)


def insert_booking_if_free(
    db: Session,
    builder_id: int,
    client_id: int,
    session_type_id: int,
    start_utc: datetime,
    end_utc: datetime,
    buffer_minutes: int = 0,
    notes: str | None = None,
) -> DBBookings:
    """
    Atomically create a pending booking unless a live one overlaps.

    Raises:
        SlotUnavailableError: overlapping booking exists (or appeared concurrently)
        PersistenceUnavailableError: database unreachable / lock wait timed out
    """
    buffer = timedelta(minutes=buffer_minutes)
    date_start = to_db_timestamp(start_utc)
    date_end = to_db_timestamp(end_utc)
    guard_start = to_db_timestamp(start_utc - buffer)
    guard_end = to_db_timestamp(end_utc + buffer)

    conflict = (
        select(DBBookings.id)
        .where(
            DBBookings.builder_id == builder_id,
            DBBookings.status.in_(ACTIVE_STATUSES),
            DBBookings.date_start < guard_end,
            DBBookings.date_end > guard_start,
        )
        .correlate(None)
        .exists()
    )

    candidate = select(
        literal(builder_id, Integer),
        literal(client_id, Integer),
        literal(session_type_id, Integer),
        literal(date_start, Text),
        literal(date_end, Text),
        literal(BookingStatus.PENDING.value, Text),
        literal(notes, Text),
    ).where(~conflict)

    stmt = (
        insert(DBBookings)
        .from_select(
            [
                DBBookings.builder_id,
                DBBookings.client_id,
                DBBookings.session_type_id,
                DBBookings.date_start,
                DBBookings.date_end,
                DBBookings.status,
                DBBookings.notes,
            ],
            candidate,
        )
        .returning(DBBookings.id)
    )

    with persistence_guard(db):
        try:
            _lock_builder(db, builder_id)
            inserted = db.execute(stmt).first()
            if inserted is None:
                db.rollback()
                raise SlotUnavailableError(
                    f"Slot {date_start}–{date_end} overlaps an existing booking"
                )
            db.commit()
            logger.info(
                f"Booking inserted: booking_id={inserted[0]}, builder_id={builder_id}, "
                f"client_id={client_id}, slot={date_start}–{date_end}"
            )
        except IntegrityError as e:
            db.rollback()
            raise SlotUnavailableError(
                f"Slot {date_start}–{date_end} was booked concurrently"
            ) from e

        return db.get(DBBookings, inserted[0])


def find_matching_booking(
    db: Session,
    builder_id: int,
    client_id: int,
    session_type_id: int,
    start_utc: datetime,
    end_utc: datetime,
) -> DBBookings | None:
    """Live booking identical to the request (same client, type and interval)."""
    with persistence_guard(db):
        return (
            db.query(DBBookings)
            .filter(
                DBBookings.builder_id == builder_id,
                DBBookings.client_id == client_id,
                DBBookings.session_type_id == session_type_id,
                DBBookings.date_start == to_db_timestamp(start_utc),
                DBBookings.date_end == to_db_timestamp(end_utc),
                DBBookings.status.in_(ACTIVE_STATUSES),
            )
            .first()
        )


def update_booking_status(
    db: Session,
    booking: DBBookings,
    status: str,
    cancel_reason: str | None = None,
    expected_status: str | None = None,
) -> DBBookings:
    """
    Persist a status change. Transition rules live in booking_status.py.

    The row is only updated while it still holds expected_status (defaults
    to the status loaded on `booking`); a concurrent change in between
    raises InvalidStatusTransitionError.
    """
    expected_status = expected_status or booking.status
    booking_id = booking.id
    values = {
        "status": status,
        "updated_at": to_db_timestamp(datetime.now(timezone.utc)),
    }
    if cancel_reason is not None:
        values["cancel_reason"] = cancel_reason

    with persistence_guard(db):
        result = db.execute(
            update(DBBookings)
            .where(DBBookings.id == booking_id, DBBookings.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            raise InvalidStatusTransitionError(
                f"Booking {booking_id} is no longer {expected_status}, "
                f"cannot move it to {status}"
            )
        db.commit()
        db.refresh(booking)
        logger.info(f"Booking status changed: booking_id={booking_id}, {expected_status} → {status}")
        return booking


def _lock_builder(db: Session, builder_id: int) -> None:
    """Row lock on the builder's settings; a no-op where FOR UPDATE is unsupported."""
    _ensure_settings_row(db, builder_id)
    db.execute(
        select(DBSchedulingSettings.id)
        .where(DBSchedulingSettings.builder_id == builder_id)
        .with_for_update()
    ).first()


def _ensure_settings_row(db: Session, builder_id: int) -> None:
    """Insert default scheduling settings for the builder unless a row exists."""
    config = get_booking_config()
    values = {
        "builder_id": builder_id,
        "timezone": config.default_timezone,
        "min_notice_minutes": config.default_min_notice_minutes,
        "max_advance_days": config.default_max_advance_days,
        "buffer_minutes": config.default_buffer_minutes,
        "is_accepting_bookings": 1,
    }

    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(DBSchedulingSettings).values(**values)
    elif dialect == "sqlite":
        stmt = sqlite.insert(DBSchedulingSettings).values(**values)
    else:
        exists = db.execute(
            select(DBSchedulingSettings.id).where(DBSchedulingSettings.builder_id == builder_id)
        ).first()
        if exists is None:
            db.execute(insert(DBSchedulingSettings).values(**values))
        return

    db.execute(stmt.on_conflict_do_nothing(index_elements=[DBSchedulingSettings.builder_id]))
