"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, BookingSource, ProfileSource, bookable_dates

__all__ = ["AvailabilityService", "BookingSource", "ProfileSource", "bookable_dates"]
