# backend/buildslots/services/booking_status.py
"""
Booking lifecycle transitions.

pending   → confirmed | cancelled
confirmed → cancelled | completed
cancelled, completed: final
"""

from sqlalchemy.orm import Session

from ..database import persistence_guard
from ..errors import BookingNotFoundError, InvalidStatusTransitionError
from ..models.tables import Bookings as DBBookings
from .booking_store import update_booking_status
from .slots.types import BookingStatus

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value},
    BookingStatus.CANCELLED.value: set(),
    BookingStatus.COMPLETED.value: set(),
}


def transition_booking_status(
    db: Session,
    booking_id: int,
    new_status: BookingStatus | str,
    reason: str | None = None,
) -> DBBookings:
    """Move a booking to new_status if the lifecycle allows it."""
    new_status = BookingStatus(new_status).value

    with persistence_guard(db):
        booking = db.get(DBBookings, booking_id)
    if booking is None:
        raise BookingNotFoundError(f"Booking {booking_id} not found")

    if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
        raise InvalidStatusTransitionError(
            f"Booking {booking_id} cannot move from {booking.status} to {new_status}"
        )

    cancel_reason = reason if new_status == BookingStatus.CANCELLED.value else None
    return update_booking_status(
        db, booking, new_status, cancel_reason, expected_status=booking.status
    )
