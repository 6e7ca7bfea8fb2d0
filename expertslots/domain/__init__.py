"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    ConfigError,
    DataSourceError,
    ExpertSlotsError,
    InvalidDurationError,
    ScheduleError,
)
from .models import (
    AvailabilityProfile,
    Booking,
    BookingStatus,
    BreakDate,
    ConflictPolicy,
    Slot,
    SlotOrder,
    TimeRange,
    Weekday,
    WeeklySchedule,
)
from .slot_resolver import SlotResolver, resolve_slots

__all__ = [
    "AvailabilityProfile",
    "Booking",
    "BookingStatus",
    "BreakDate",
    "ConfigError",
    "ConflictPolicy",
    "DataSourceError",
    "ExpertSlotsError",
    "InvalidDurationError",
    "ScheduleError",
    "Slot",
    "SlotOrder",
    "SlotResolver",
    "TimeRange",
    "Weekday",
    "WeeklySchedule",
    "resolve_slots",
]
