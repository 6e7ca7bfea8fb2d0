"""
Availability resolution for expert consultation bookings.
"""

from .domain import AvailabilityProfile, Booking, BreakDate, Slot, SlotResolver, WeeklySchedule, resolve_slots

__version__ = "0.1.0"

__all__ = [
    "AvailabilityProfile",
    "Booking",
    "BreakDate",
    "Slot",
    "SlotResolver",
    "WeeklySchedule",
    "resolve_slots",
    "__version__",
]
