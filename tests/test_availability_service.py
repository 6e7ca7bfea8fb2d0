"""
Tests for the AvailabilityService orchestration layer.
"""

from datetime import date
from typing import List

import pendulum
import pytest

from expertslots.domain.exceptions import DataSourceError
from expertslots.domain.models import AvailabilityProfile, Booking, coerce_bookings
from expertslots.domain.slot_resolver import SlotResolver
from expertslots.services.availability import AvailabilityService, bookable_dates

TZ = "Asia/Kolkata"


class StubSource:
    """Minimal stub matching both ProfileSource and BookingSource."""

    def __init__(self, availability: dict, sessions: List[dict]):
        self._profile = AvailabilityProfile.from_mapping(availability, TZ)
        self._bookings = coerce_bookings(sessions, TZ)
        self.calls: List[str] = []

    def get_availability(self, expert_id: str) -> AvailabilityProfile:
        self.calls.append(f"availability:{expert_id}")
        return self._profile

    def get_bookings(self, expert_id: str) -> List[Booking]:
        self.calls.append(f"bookings:{expert_id}")
        return self._bookings


class FailingSource:
    def get_availability(self, expert_id):
        raise DataSourceError("platform unavailable")

    def get_bookings(self, expert_id):
        return []


def _build_service(availability: dict, sessions: List[dict] | None = None):
    source = StubSource(availability, sessions or [])
    service = AvailabilityService(
        profile_source=source,
        booking_source=source,
        resolver=SlotResolver(timezone=TZ),
    )
    return service, source


AVAILABILITY = {
    "sessionDuration": 60,
    "weekly": {"mon": [{"from": "09:00", "to": "11:00"}]},
    "breakDates": [{"start": "2024-12-02"}],
}


def test_get_slots_uses_profile_duration():
    """Without an explicit duration the expert's session length applies."""
    service, source = _build_service(AVAILABILITY)
    now = pendulum.datetime(2024, 11, 20, 8, tz=TZ)

    slots = service.get_slots("exp-1", date(2024, 11, 25), now=now)

    assert [slot.label for slot in slots] == ["09:00 AM - 10:00 AM", "10:00 AM - 11:00 AM"]
    assert source.calls == ["availability:exp-1", "bookings:exp-1"]


def test_get_slots_with_explicit_duration_and_bookings():
    """Bookings fetched from the source mark their slots."""
    sessions = [{"startTime": "2024-11-25T10:00:00", "endTime": "2024-11-25T10:30:00", "status": "confirmed"}]
    service, _ = _build_service(AVAILABILITY, sessions)
    now = pendulum.datetime(2024, 11, 20, 8, tz=TZ)

    slots = service.get_slots("exp-1", date(2024, 11, 25), duration_minutes=30, now=now)

    assert [slot.available for slot in slots] == [True, True, False, True]


def test_get_slots_respects_breaks():
    service, _ = _build_service(AVAILABILITY)
    now = pendulum.datetime(2024, 11, 20, 8, tz=TZ)

    assert service.get_slots("exp-1", date(2024, 12, 2), now=now) == []


def test_source_errors_propagate():
    source = FailingSource()
    service = AvailabilityService(source, source, SlotResolver(timezone=TZ))

    with pytest.raises(DataSourceError, match="platform unavailable"):
        service.get_slots("exp-1", date(2024, 11, 25))


def test_month_overview_starts_today_and_fetches_once():
    """Only dates from today on are listed, and sources are hit once."""
    service, source = _build_service(AVAILABILITY)
    now = pendulum.datetime(2024, 11, 25, 10, 15, tz=TZ)

    overview = service.month_overview("exp-1", date(2024, 11, 1), duration_minutes=30, now=now)

    assert [day for day, _ in overview] == [date(2024, 11, d) for d in range(25, 31)]
    assert [slot.label for slot in overview[0][1]] == ["10:30 AM - 11:00 AM"]
    assert all(slots == [] for _, slots in overview[1:])
    assert service.count_available(overview) == 1
    assert len(source.calls) == 2


class TestBookableDates:
    """Tests for bookable_dates."""

    def test_current_month_from_today(self):
        dates = bookable_dates(date(2024, 11, 1), today=date(2024, 11, 29))

        assert dates == [date(2024, 11, 29), date(2024, 11, 30)]

    def test_future_month_in_full(self):
        dates = bookable_dates(date(2024, 12, 1), today=date(2024, 11, 29))

        assert len(dates) == 31
        assert dates[0] == date(2024, 12, 1)

    def test_past_month_is_empty(self):
        assert bookable_dates(date(2024, 10, 1), today=date(2024, 11, 29)) == []

    def test_leap_february(self):
        assert len(bookable_dates(date(2024, 2, 1), today=date(2024, 1, 1))) == 29
