"""
Application services for showing an expert's bookable slots.

The service fetches the expert's availability profile and existing bookings
through source adapters and delegates the slot calculation to the
domain-level ``SlotResolver``. This keeps the CLI thin and lets tests swap
the data sources for simple stubs matching the protocols below.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Protocol, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.models import AvailabilityProfile, Booking, Slot
from ..domain.slot_resolver import SlotResolver

logger = logging.getLogger(__name__)


class ProfileSource(Protocol):
    """Protocol describing where an expert's availability profile comes from."""

    def get_availability(self, expert_id: str) -> AvailabilityProfile:
        """Return the expert's weekly hours, breaks and session settings."""


class BookingSource(Protocol):
    """Protocol describing where an expert's existing sessions come from."""

    def get_bookings(self, expert_id: str) -> List[Booking]:
        """Return every booking recorded for the expert, cancelled ones included."""


def bookable_dates(month_start: date, today: date) -> List[date]:
    """
    List the dates of a month a client may pick.

    Days before ``today`` are left out; future months are listed in full.
    """
    days_in_month = pendulum.date(month_start.year, month_start.month, 1).days_in_month
    all_dates = [
        date(month_start.year, month_start.month, day)
        for day in range(1, days_in_month + 1)
    ]
    return [day for day in all_dates if day >= today]


class AvailabilityService:
    """
    Orchestrates profile and booking retrieval and slot resolution.

    Each call fetches fresh data; nothing is cached between calls, so a
    changed booking set is picked up on the next call.
    """

    def __init__(
        self,
        profile_source: ProfileSource,
        booking_source: BookingSource,
        resolver: SlotResolver,
    ) -> None:
        self._profile_source = profile_source
        self._booking_source = booking_source
        self._resolver = resolver

    def get_slots(
        self,
        expert_id: str,
        target_date: date,
        duration_minutes: int | None = None,
        now: DateTime | None = None,
    ) -> List[Slot]:
        """
        Resolve the expert's slots for one date.

        Without an explicit duration the expert's own session length is used.
        """
        profile, bookings = self.fetch_inputs(expert_id)
        return self.calculate_slots(
            profile=profile,
            bookings=bookings,
            target_date=target_date,
            duration_minutes=duration_minutes,
            now=now,
        )

    def month_overview(
        self,
        expert_id: str,
        month_start: date,
        duration_minutes: int | None = None,
        now: DateTime | None = None,
    ) -> List[Tuple[date, List[Slot]]]:
        """
        Resolve slots for every bookable date of a month.

        Sources are queried once for the whole month.
        """
        profile, bookings = self.fetch_inputs(expert_id)
        today = now.date() if now is not None else self._resolver.today()

        overview: List[Tuple[date, List[Slot]]] = []
        for day in bookable_dates(month_start, today):
            slots = self.calculate_slots(
                profile=profile,
                bookings=bookings,
                target_date=day,
                duration_minutes=duration_minutes,
                now=now,
            )
            overview.append((day, slots))

        return overview

    def fetch_inputs(self, expert_id: str) -> Tuple[AvailabilityProfile, List[Booking]]:
        """Fetch the profile and bookings for an expert."""
        profile = self._profile_source.get_availability(expert_id)
        bookings = list(self._booking_source.get_bookings(expert_id))
        logger.debug(
            "Fetched profile (%s) and %d booking(s) for expert %s",
            profile.summary(),
            len(bookings),
            expert_id,
        )
        return profile, bookings

    def calculate_slots(
        self,
        *,
        profile: AvailabilityProfile,
        bookings: Sequence[Booking],
        target_date: date,
        duration_minutes: int | None = None,
        now: DateTime | None = None,
    ) -> List[Slot]:
        """Resolve slots from already fetched data."""
        duration = duration_minutes if duration_minutes is not None else profile.session_duration
        return self._resolver.resolve(
            target_date,
            profile.weekly,
            profile.break_dates,
            bookings,
            duration,
            now=now,
        )

    @staticmethod
    def count_available(overview: Sequence[Tuple[date, Sequence[Slot]]]) -> int:
        """Total number of open slots across a month overview."""
        return sum(1 for _, slots in overview for slot in slots if slot.available)
