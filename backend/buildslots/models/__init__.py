from .tables import (
    Base,
    AvailabilityExceptions,
    AvailabilityRules,
    Bookings,
    SchedulingSettings,
    SessionTypes,
)

__all__ = [
    "Base",
    "AvailabilityExceptions",
    "AvailabilityRules",
    "Bookings",
    "SchedulingSettings",
    "SessionTypes",
]
