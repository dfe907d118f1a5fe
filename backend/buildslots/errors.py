# backend/buildslots/errors.py
"""
Scheduling error taxonomy.

Every error carries the HTTP status the API layer answers with, so routers
stay thin and `main.py` maps them in one place.
"""


class SchedulingError(Exception):
    """Base for expected, caller-recoverable scheduling failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ── Slot generation input errors ────────────────────────────────────────


class InvalidRangeError(SchedulingError):
    """Date range reversed or wider than the allowed maximum."""


class InvalidSessionTypeError(SchedulingError):
    """Session type missing or with a non-positive duration."""


class OwnershipMismatchError(SchedulingError):
    """Rules, exceptions, session type or slot belong to another builder."""


class InvalidTimezoneError(SchedulingError):
    """Timezone identifier is not a known IANA zone."""


# ── Booking commit errors ───────────────────────────────────────────────


class SlotUnavailableError(SchedulingError):
    """Selected slot was taken or is no longer offered; re-fetch slots."""

    status_code = 409


class PersistenceUnavailableError(SchedulingError):
    """Booking store could not be reached or timed out."""

    status_code = 503


# ── Booking lifecycle errors ────────────────────────────────────────────


class BookingNotFoundError(SchedulingError):
    status_code = 404


class InvalidStatusTransitionError(SchedulingError):
    status_code = 409
