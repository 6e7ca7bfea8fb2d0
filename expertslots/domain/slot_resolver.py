"""
Core business logic for resolving bookable slots on a single date.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). The only
ambient input is the clock, which callers may inject through ``now``.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Mapping, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import InvalidDurationError
from .models import (
    MINUTES_PER_DAY,
    BreakDate,
    Booking,
    ConflictPolicy,
    Slot,
    SlotOrder,
    TimeRange,
    Weekday,
    WeeklySchedule,
    coerce_break_dates,
    coerce_bookings,
    to_local_date,
)

logger = logging.getLogger(__name__)

# A range spans less than two days, so a one-minute stride stays below this.
MAX_SLOTS_PER_RANGE = 2 * MINUTES_PER_DAY


def validate_duration(duration_minutes: Any) -> int:
    """
    Ensure the session duration is a positive whole number of minutes.

    Raises:
        InvalidDurationError: If the duration is missing, not an int, or not positive
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidDurationError(
            f"duration_minutes must be a positive integer, got {duration_minutes!r}"
        )
    if duration_minutes <= 0:
        raise InvalidDurationError(
            f"duration_minutes must be greater than zero, got {duration_minutes}"
        )
    return duration_minutes


def resolve_day_windows(
    target_date: date,
    weekly_schedule: WeeklySchedule,
    break_dates: Sequence[BreakDate],
) -> List[TimeRange]:
    """
    Return the ranges the provider nominally accepts bookings on a date.

    A matching break always wins over the weekly hours. An unscheduled
    weekday is a normal empty result.
    """
    for break_date in break_dates:
        if break_date.covers(target_date):
            logger.debug("%s falls on break %s", target_date, break_date)
            return []

    weekday = Weekday.for_date(target_date)
    ranges = list(weekly_schedule.ranges_for(weekday))
    logger.debug("%s is a %s with ranges %s", target_date, weekday.short_name, ranges)
    return ranges


def enumerate_slots(
    ranges: Iterable[TimeRange],
    duration_minutes: int,
    target_date: date,
    now: DateTime,
) -> List[Slot]:
    """
    Tile each range into back-to-back slots of ``duration_minutes``.

    Trailing time shorter than the duration is dropped. When the target date
    is today, slots starting before the current minute are left out. The
    comparison is made at minute granularity: seconds of ``now`` are ignored,
    so at 10:00:30 the 10:00 slot is still offered. Ranges are handled
    independently, so the result is not sorted.
    """
    is_today = target_date == now.date()
    current_minute = now.hour * 60 + now.minute

    slots: List[Slot] = []

    for time_range in ranges:
        bounds = time_range.bounds()
        if bounds is None:
            logger.debug("Skipping inert range %s", time_range)
            continue

        cursor, end = bounds
        iterations = 0

        while cursor + duration_minutes <= end and iterations < MAX_SLOTS_PER_RANGE:
            iterations += 1
            if is_today and cursor < current_minute:
                cursor += duration_minutes
                continue

            slots.append(Slot(start_minute=cursor, end_minute=cursor + duration_minutes))
            cursor += duration_minutes

    logger.debug("Enumerated %d candidate slot(s) for %s", len(slots), target_date)
    return slots


def apply_conflicts(
    slots: Iterable[Slot],
    target_date: date,
    bookings: Sequence[Booking],
    timezone: str,
    conflict_policy: ConflictPolicy = ConflictPolicy.FAIL_OPEN,
    order: SlotOrder = SlotOrder.CHRONOLOGICAL,
) -> List[Slot]:
    """
    Mark slots that overlap a non-cancelled booking and sort the result.

    Overlap is strict: a booking that ends exactly when a slot starts (or
    starts when it ends) does not block it. Bookings with unparsable times
    are ignored under FAIL_OPEN and block the whole date under FAIL_CLOSED.
    """
    active = [booking for booking in bookings if not booking.is_cancelled]
    parsable = [booking for booking in active if booking.is_parsable]
    unparsable_count = len(active) - len(parsable)

    block_all = False
    if unparsable_count:
        if ConflictPolicy(conflict_policy) is ConflictPolicy.FAIL_CLOSED:
            logger.warning(
                "%d booking(s) with unparsable times; blocking every slot on %s",
                unparsable_count,
                target_date,
            )
            block_all = True
        else:
            logger.debug("Ignoring %d booking(s) with unparsable times", unparsable_count)

    day_start = pendulum.datetime(
        target_date.year, target_date.month, target_date.day, tz=timezone
    )

    marked: List[Slot] = []
    for slot in slots:
        if block_all:
            marked.append(slot.mark(False))
            continue

        slot_start = day_start.add(minutes=slot.start_minute)
        slot_end = day_start.add(minutes=slot.end_minute)
        is_booked = any(booking.overlaps(slot_start, slot_end) for booking in parsable)
        marked.append(slot.mark(not is_booked))

    if SlotOrder(order) is SlotOrder.LABEL:
        return sorted(marked, key=lambda s: s.label)
    return sorted(marked, key=lambda s: (s.start_minute, s.end_minute))


def resolve_slots(
    target_date: Any,
    weekly_schedule: WeeklySchedule | Mapping[Any, Any] | None,
    break_dates: Iterable[Any] | None,
    bookings: Iterable[Any] | None,
    duration_minutes: int,
    *,
    timezone: str = "UTC",
    now: DateTime | None = None,
    conflict_policy: ConflictPolicy = ConflictPolicy.FAIL_OPEN,
    order: SlotOrder = SlotOrder.CHRONOLOGICAL,
) -> List[Slot]:
    """
    Resolve the bookable slots for one provider on one date.

    Args:
        target_date: Calendar date (date, datetime or ISO string)
        weekly_schedule: WeeklySchedule or a raw mapping keyed by weekday name
        break_dates: BreakDate instances or raw break entries
        bookings: Booking instances or raw session records
        duration_minutes: Length of every slot
        timezone: IANA timezone the schedule is expressed in
        now: Current time; defaults to the wall clock in ``timezone``
        conflict_policy: Treatment of bookings with unparsable times
        order: Ordering of the returned slots

    Returns:
        Slots for the date, each flagged available or conflicted

    Raises:
        InvalidDurationError: If duration_minutes is not a positive integer
    """
    duration_minutes = validate_duration(duration_minutes)

    day = to_local_date(target_date, timezone)
    current = pendulum.instance(now, tz=timezone) if now is not None else pendulum.now(timezone)
    current = current.in_timezone(timezone)

    schedule = (
        weekly_schedule
        if isinstance(weekly_schedule, WeeklySchedule)
        else WeeklySchedule.from_mapping(weekly_schedule)
    )
    breaks = coerce_break_dates(break_dates, timezone)

    ranges = resolve_day_windows(day, schedule, breaks)
    if not ranges:
        return []

    candidates = enumerate_slots(ranges, duration_minutes, day, current)
    if not candidates:
        return []

    return apply_conflicts(
        candidates,
        day,
        coerce_bookings(bookings, timezone),
        timezone,
        conflict_policy=conflict_policy,
        order=order,
    )


class SlotResolver:
    """
    Resolves slots with a fixed timezone, conflict policy and ordering.

    Algorithm:
    1. Find the day's open ranges (breaks first, then weekly hours)
    2. Tile every range into fixed-length slots, hiding past ones for today
    3. Flag slots that overlap a non-cancelled booking
    4. Sort the result
    """

    def __init__(
        self,
        timezone: str = "UTC",
        conflict_policy: ConflictPolicy = ConflictPolicy.FAIL_OPEN,
        order: SlotOrder = SlotOrder.CHRONOLOGICAL,
    ):
        self.timezone = timezone
        self.conflict_policy = ConflictPolicy(conflict_policy)
        self.order = SlotOrder(order)

    def resolve(
        self,
        target_date: Any,
        weekly_schedule: WeeklySchedule | Mapping[Any, Any] | None,
        break_dates: Iterable[Any] | None,
        bookings: Iterable[Any] | None,
        duration_minutes: int,
        now: DateTime | None = None,
    ) -> List[Slot]:
        return resolve_slots(
            target_date,
            weekly_schedule,
            break_dates,
            bookings,
            duration_minutes,
            timezone=self.timezone,
            now=now,
            conflict_policy=self.conflict_policy,
            order=self.order,
        )

    def today(self) -> date:
        return pendulum.now(self.timezone).date()
