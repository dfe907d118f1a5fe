# backend/buildslots/services/slots/__init__.py
"""
Slots calculation module.

calculator: pure slot generation from rules, exceptions and bookings
availability: loads those inputs from the database and runs the calculator
"""

from .config import BookingConfig, get_booking_config
from .calculator import generate_slots
from .availability import calculate_builder_availability, load_scheduling_settings
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

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "generate_slots",
    "calculate_builder_availability",
    "load_scheduling_settings",
    "AvailabilityException",
    "AvailabilityRule",
    "BookedInterval",
    "BookingStatus",
    "DateRange",
    "SchedulingSettings",
    "SessionType",
    "TimeSlot",
]
