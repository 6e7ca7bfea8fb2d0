"""
Editing helpers for a provider's weekly hours and break dates.

Every helper returns a new value and leaves its input untouched.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence, Tuple

from .exceptions import ScheduleError
from .models import MINUTES_PER_DAY, BreakDate, TimeRange, Weekday, WeeklySchedule, parse_minutes

DEFAULT_RANGE_START = "09:00"


def calculate_end_time(start: str, duration_minutes: int) -> str:
    """
    Add a session duration to an "HH:MM" start, wrapping past midnight.

    Raises:
        ScheduleError: If the start is not a valid time or the duration is not positive
    """
    start_minute = parse_minutes(start)
    if start_minute is None:
        raise ScheduleError(f"Invalid start time: {start!r}")
    if duration_minutes <= 0:
        raise ScheduleError(f"Duration must be positive, got {duration_minutes}")

    hours, minutes = divmod((start_minute + duration_minutes) % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{minutes:02d}"


def add_range(
    schedule: WeeklySchedule,
    weekday: Weekday,
    duration_minutes: int,
    start: str = DEFAULT_RANGE_START,
    max_ranges: int | None = None,
) -> WeeklySchedule:
    """
    Append a range of one session length to a day.

    Raises:
        ScheduleError: If the day already holds ``max_ranges`` ranges
    """
    ranges = schedule.ranges_for(weekday)
    if max_ranges is not None and len(ranges) >= max_ranges:
        raise ScheduleError(f"Daily limit reached ({max_ranges} sessions) for {weekday.long_name}")

    new_range = TimeRange(from_time=start, to_time=calculate_end_time(start, duration_minutes))
    return schedule.with_ranges(weekday, ranges + (new_range,))


def update_range(
    schedule: WeeklySchedule,
    weekday: Weekday,
    index: int,
    start: str,
    duration_minutes: int,
) -> WeeklySchedule:
    """Move one range to a new start, keeping it one session long."""
    ranges = list(schedule.ranges_for(weekday))
    _check_index(ranges, weekday, index)
    ranges[index] = TimeRange(from_time=start, to_time=calculate_end_time(start, duration_minutes))
    return schedule.with_ranges(weekday, ranges)


def remove_range(schedule: WeeklySchedule, weekday: Weekday, index: int) -> WeeklySchedule:
    ranges = list(schedule.ranges_for(weekday))
    _check_index(ranges, weekday, index)
    del ranges[index]
    return schedule.with_ranges(weekday, ranges)


def clear_day(schedule: WeeklySchedule, weekday: Weekday) -> WeeklySchedule:
    return schedule.with_ranges(weekday, ())


def copy_day(
    schedule: WeeklySchedule,
    source: Weekday,
    targets: Iterable[Weekday] | None = None,
) -> WeeklySchedule:
    """
    Copy one day's ranges onto other days, replacing what they had.

    Without explicit targets the ranges are copied to every other day.
    """
    source_ranges = schedule.ranges_for(source)
    target_days = list(targets) if targets is not None else [d for d in Weekday if d != source]

    result = schedule
    for weekday in target_days:
        if weekday != source:
            result = result.with_ranges(weekday, source_ranges)
    return result


def add_break(
    break_dates: Sequence[BreakDate],
    start: date,
    end: date | None = None,
) -> Tuple[BreakDate, ...]:
    """
    Block a date (or an inclusive run of dates).

    Raises:
        ScheduleError: If a break already starts on that date
    """
    if any(existing.start == start for existing in break_dates):
        raise ScheduleError(f"Date already blocked: {start.isoformat()}")
    try:
        new_break = BreakDate(start=start, end=end)
    except ValueError as exc:
        raise ScheduleError(str(exc)) from exc
    return tuple(break_dates) + (new_break,)


def remove_break(break_dates: Sequence[BreakDate], start: date) -> Tuple[BreakDate, ...]:
    """Drop every break starting on ``start``; unknown dates are a no-op."""
    return tuple(existing for existing in break_dates if existing.start != start)


def _check_index(ranges: List[TimeRange], weekday: Weekday, index: int) -> None:
    if not 0 <= index < len(ranges):
        raise ScheduleError(
            f"No range #{index} on {weekday.long_name} ({len(ranges)} configured)"
        )
