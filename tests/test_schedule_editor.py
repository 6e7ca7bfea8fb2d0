"""
Tests for weekly schedule and break editing helpers.
"""

from datetime import date

import pytest

from expertslots.domain.exceptions import ScheduleError
from expertslots.domain.models import BreakDate, TimeRange, Weekday, WeeklySchedule
from expertslots.domain.schedule_editor import (
    add_break,
    add_range,
    calculate_end_time,
    clear_day,
    copy_day,
    remove_break,
    remove_range,
    update_range,
)


def _schedule():
    return WeeklySchedule.from_mapping({
        "mon": [{"from": "09:00", "to": "09:30"}, {"from": "18:00", "to": "18:30"}],
    })


class TestRanges:
    """Adding, moving and removing ranges."""

    def test_calculate_end_time(self):
        assert calculate_end_time("09:00", 30) == "09:30"
        assert calculate_end_time("23:30", 60) == "00:30"

    def test_calculate_end_time_rejects_bad_input(self):
        with pytest.raises(ScheduleError):
            calculate_end_time("nine", 30)
        with pytest.raises(ScheduleError):
            calculate_end_time("09:00", 0)

    def test_add_range_defaults_to_nine(self):
        schedule = add_range(WeeklySchedule(), Weekday.TUESDAY, duration_minutes=60)

        assert schedule.ranges_for(Weekday.TUESDAY) == (TimeRange("09:00", "10:00"),)

    def test_add_range_respects_daily_limit(self):
        with pytest.raises(ScheduleError, match="Daily limit"):
            add_range(_schedule(), Weekday.MONDAY, duration_minutes=30, max_ranges=2)

    def test_add_range_does_not_mutate_input(self):
        original = _schedule()

        add_range(original, Weekday.MONDAY, duration_minutes=30, start="12:00")

        assert len(original.ranges_for(Weekday.MONDAY)) == 2

    def test_update_range_moves_start_and_end(self):
        schedule = update_range(_schedule(), Weekday.MONDAY, 1, "19:00", 45)

        assert schedule.ranges_for(Weekday.MONDAY)[1] == TimeRange("19:00", "19:45")

    def test_remove_range(self):
        schedule = remove_range(_schedule(), Weekday.MONDAY, 0)

        assert schedule.ranges_for(Weekday.MONDAY) == (TimeRange("18:00", "18:30"),)

    def test_remove_range_bad_index(self):
        with pytest.raises(ScheduleError, match="No range #5"):
            remove_range(_schedule(), Weekday.MONDAY, 5)

    def test_clear_day(self):
        assert clear_day(_schedule(), Weekday.MONDAY).working_days() == []


class TestCopyDay:
    """Copying one day's hours to others."""

    def test_copy_to_all_other_days(self):
        schedule = copy_day(_schedule(), Weekday.MONDAY)

        assert schedule.working_days() == list(Weekday)
        assert schedule.ranges_for(Weekday.SUNDAY) == schedule.ranges_for(Weekday.MONDAY)

    def test_copy_to_selected_days_replaces_ranges(self):
        base = WeeklySchedule.from_mapping({"mon": [{"from": "09:00", "to": "10:00"}], "wed": [{"from": "15:00", "to": "16:00"}]})

        schedule = copy_day(base, Weekday.MONDAY, [Weekday.WEDNESDAY])

        assert schedule.ranges_for(Weekday.WEDNESDAY) == (TimeRange("09:00", "10:00"),)
        assert schedule.ranges_for(Weekday.TUESDAY) == ()


class TestBreaks:
    """Adding and removing break dates."""

    def test_add_break(self):
        breaks = add_break((), date(2024, 12, 25))

        assert breaks == (BreakDate(start=date(2024, 12, 25)),)

    def test_add_duplicate_break(self):
        breaks = (BreakDate(start=date(2024, 12, 25)),)

        with pytest.raises(ScheduleError, match="already blocked"):
            add_break(breaks, date(2024, 12, 25))

    def test_add_break_with_reversed_range(self):
        with pytest.raises(ScheduleError):
            add_break((), date(2024, 12, 25), date(2024, 12, 20))

    def test_remove_break(self):
        breaks = (BreakDate(start=date(2024, 12, 25)), BreakDate(start=date(2024, 12, 31)))

        assert remove_break(breaks, date(2024, 12, 25)) == (BreakDate(start=date(2024, 12, 31)),)
        assert remove_break(breaks, date(2025, 1, 1)) == breaks
