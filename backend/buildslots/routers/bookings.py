# backend/buildslots/routers/bookings.py
# PATCH /{id}/status = lifecycle, DELETE = 405 (cancel via status)

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Bookings as DBBookings
from ..schemas.bookings import (
    BookingCreate,
    BookingRead,
    BookingStatusUpdate,
)
from ..services.booking_commit import commit_booking
from ..services.booking_status import transition_booking_status
from ..services.events import booking_payload, emit_event
from ..services.slots import TimeSlot

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    builder_id: Optional[int] = None,
    client_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = db.query(DBBookings)
    if builder_id is not None:
        query = query.filter(DBBookings.builder_id == builder_id)
    if client_id is not None:
        query = query.filter(DBBookings.client_id == client_id)
    return query.order_by(DBBookings.date_start).all()


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
):
    """
    Book a slot previously returned by GET /slots.

    409 when the slot was taken meanwhile: re-fetch slots and pick again.
    """
    slot = TimeSlot(
        builder_id=data.builder_id,
        session_type_id=data.session_type_id,
        start_utc=data.start_utc,
        end_utc=data.end_utc,
    )
    booking = commit_booking(
        db,
        builder_id=data.builder_id,
        client_id=data.client_id,
        session_type_id=data.session_type_id,
        slot=slot,
        notes=data.notes,
    )

    emit_event("booking_created", booking_payload(booking))
    return booking


@router.patch("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
):
    booking = transition_booking_status(db, id, data.status, data.reason)

    emit_event("booking_status_changed", booking_payload(booking))
    return booking


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
