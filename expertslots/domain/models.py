"""
Domain models for weekly schedules, breaks, bookings and slots.

All models are plain immutable dataclasses. Raw data coming from the
platform API (camelCase dictionaries, ISO strings) is converted through the
``from_mapping``/``parse`` constructors, which never raise for malformed
time values: a bad range is inert and a bad booking timestamp is kept as
"unparsable" so the resolver can apply its conflict policy.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import pendulum
from pendulum import Date, DateTime

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


class Weekday(IntEnum):
    """Day of the week, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def short_name(self) -> str:
        return self.name[:3].lower()

    @property
    def long_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, name: str) -> "Weekday | None":
        """
        Match an English weekday name, abbreviated or full, ignoring case.

        Returns None when the name is not a weekday.
        """
        if not isinstance(name, str):
            return None
        key = name.strip().lower()
        for weekday in cls:
            if key in (weekday.short_name, weekday.long_name):
                return weekday
        return None

    @classmethod
    def for_date(cls, day: date) -> "Weekday":
        return cls(day.weekday())


class BookingStatus(str, Enum):
    """Session statuses used by the booking platform."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    UPCOMING = "upcoming"
    NO_SHOW = "no-show"
    LIVE = "live"


class ConflictPolicy(str, Enum):
    """How bookings with unparsable timestamps are treated."""

    FAIL_OPEN = "fail_open"      # ignored, never block a slot
    FAIL_CLOSED = "fail_closed"  # block every slot of the date


class SlotOrder(str, Enum):
    """Ordering of resolved slots."""

    CHRONOLOGICAL = "chronological"
    LABEL = "label"


def parse_minutes(value: Any) -> int | None:
    """
    Convert an "HH:MM" string (or a ``time``) to minutes since midnight.

    Returns None for anything that is not a valid time of day.
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        return None

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """
    Render minutes since midnight as a 12-hour clock label.

    Offsets past midnight wrap around, e.g. 1440 -> "12:00 AM".
    """
    adjusted = total_minutes % MINUTES_PER_DAY
    hours, minutes = divmod(adjusted, 60)
    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours:02d}:{minutes:02d} {period}"


def _parse_exact(value: str, timezone: str) -> Any:
    try:
        return pendulum.parse(value.strip(), tz=timezone, exact=True)
    except (ValueError, TypeError, OverflowError):
        return None


def parse_instant(value: Any, timezone: str) -> DateTime | None:
    """
    Parse a timestamp into a timezone-aware pendulum DateTime.

    Naive values are interpreted in ``timezone``. Returns None when the value
    is not a full date and time, so a bare "10:00" or "2024-11-25" is
    rejected rather than completed with today's date or midnight.
    """
    if isinstance(value, datetime):
        return pendulum.instance(value, tz=timezone)
    if not isinstance(value, str) or not value.strip():
        return None

    parsed = _parse_exact(value, timezone)
    if isinstance(parsed, DateTime):
        return parsed
    return None


def to_local_date(value: Any, timezone: str) -> date:
    """
    Reduce a date, datetime or ISO string to a calendar date in ``timezone``.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return pendulum.instance(value, tz=timezone).in_timezone(timezone).date()
    if isinstance(value, date):
        return date(value.year, value.month, value.day)

    parsed = _parse_exact(value, timezone) if isinstance(value, str) else None
    if isinstance(parsed, DateTime):
        return parsed.in_timezone(timezone).date()
    if isinstance(parsed, Date):
        return date(parsed.year, parsed.month, parsed.day)
    raise ValueError(f"Could not parse date: {value!r}")


@dataclass(frozen=True)
class TimeRange:
    """
    A wall-clock window such as 09:00-17:00.

    Bounds are kept as given. A range whose ``to_time`` is earlier than its
    ``from_time`` crosses midnight. A range with a missing or unparsable bound
    is inert and produces no slots.
    """
    from_time: str | time | None
    to_time: str | time | None

    @classmethod
    def from_mapping(cls, raw: Any) -> "TimeRange":
        """Build from ``{"from": ..., "to": ...}``, a pair, or an existing range."""
        if isinstance(raw, TimeRange):
            return raw
        if isinstance(raw, Mapping):
            return cls(
                from_time=raw.get("from", raw.get("from_time")),
                to_time=raw.get("to", raw.get("to_time")),
            )
        if isinstance(raw, (list, tuple)) and len(raw) == 2:
            return cls(from_time=raw[0], to_time=raw[1])
        return cls(from_time=None, to_time=None)

    def bounds(self) -> Tuple[int, int] | None:
        """
        Return (start, effective_end) in minutes since midnight.

        The end is pushed into the next day when the range crosses midnight.
        """
        start = parse_minutes(self.from_time)
        end = parse_minutes(self.to_time)
        if start is None or end is None:
            return None
        if end < start:
            end += MINUTES_PER_DAY
        return start, end

    @property
    def is_valid(self) -> bool:
        return self.bounds() is not None

    @property
    def crosses_midnight(self) -> bool:
        bounds = self.bounds()
        return bounds is not None and bounds[1] > MINUTES_PER_DAY

    def to_mapping(self) -> Dict[str, Any]:
        def _render(value):
            if isinstance(value, time):
                return value.strftime("%H:%M")
            return value

        return {"from": _render(self.from_time), "to": _render(self.to_time)}

    def __str__(self) -> str:
        return f"{self.from_time}-{self.to_time}"


def _empty_week() -> Tuple[Tuple[TimeRange, ...], ...]:
    return tuple(() for _ in Weekday)


@dataclass(frozen=True)
class WeeklySchedule:
    """
    Recurring working hours indexed by ``Weekday``.

    ``days[Weekday.MONDAY]`` holds Monday's ranges, in the order given.
    """
    days: Tuple[Tuple[TimeRange, ...], ...] = field(default_factory=_empty_week)

    def __post_init__(self):
        if len(self.days) != len(Weekday):
            raise ValueError(f"A weekly schedule needs {len(Weekday)} days, got {len(self.days)}")

    @classmethod
    def from_mapping(cls, raw: Any) -> "WeeklySchedule":
        """
        Build a schedule from a mapping keyed by weekday name.

        Keys may be abbreviated or full names in any case, or ``Weekday``
        members. When two keys name the same day the first one wins. Anything
        other than a mapping gives an empty week.
        """
        days: List[Tuple[TimeRange, ...] | None] = [None] * len(Weekday)

        if raw is not None and not isinstance(raw, Mapping):
            logger.warning("Ignoring weekly hours that are not a mapping: %r", raw)
            raw = None

        for key, ranges in (raw or {}).items():
            weekday = key if isinstance(key, Weekday) else Weekday.parse(key)
            if weekday is None:
                logger.debug("Ignoring unknown weekday key %r", key)
                continue
            if days[weekday] is not None:
                logger.debug("Ignoring duplicate key %r for %s", key, weekday.long_name)
                continue
            days[weekday] = cls._coerce_ranges(ranges)

        return cls(days=tuple(day or () for day in days))

    @staticmethod
    def _coerce_ranges(ranges: Any) -> Tuple[TimeRange, ...]:
        if ranges is None or isinstance(ranges, (str, bytes, Mapping)):
            return ()
        try:
            return tuple(TimeRange.from_mapping(item) for item in ranges)
        except TypeError:
            return ()

    def ranges_for(self, weekday: Weekday) -> Tuple[TimeRange, ...]:
        return self.days[weekday]

    def with_ranges(self, weekday: Weekday, ranges: Iterable[TimeRange]) -> "WeeklySchedule":
        """Return a copy with one day's ranges replaced."""
        days = list(self.days)
        days[weekday] = tuple(ranges)
        return WeeklySchedule(days=tuple(days))

    def working_days(self) -> List[Weekday]:
        return [weekday for weekday in Weekday if self.days[weekday]]

    def to_mapping(self) -> Dict[str, List[Dict[str, Any]]]:
        """Serialize with full lowercase day names, omitting empty days."""
        return {
            weekday.long_name: [time_range.to_mapping() for time_range in self.days[weekday]]
            for weekday in Weekday
            if self.days[weekday]
        }


@dataclass(frozen=True)
class BreakDate:
    """
    A day, or an inclusive run of days, on which the provider is closed.
    """
    start: date
    end: date | None = None

    def __post_init__(self):
        if self.end is not None and self.end < self.start:
            raise ValueError(f"Break end {self.end} must not be before its start {self.start}")

    @classmethod
    def parse(cls, raw: Any, timezone: str) -> "BreakDate":
        """
        Build from a date, datetime, ISO string or ``{"start": ..., "end": ...}``.

        Raises:
            ValueError: If the start (or a given end) cannot be read as a date
        """
        if isinstance(raw, BreakDate):
            return raw
        if isinstance(raw, Mapping):
            start = to_local_date(raw.get("start"), timezone)
            raw_end = raw.get("end")
            end = to_local_date(raw_end, timezone) if raw_end else None
            return cls(start=start, end=end)
        return cls(start=to_local_date(raw, timezone))

    def covers(self, day: date) -> bool:
        return self.start <= day <= (self.end or self.start)

    def to_mapping(self) -> Dict[str, str]:
        return {
            "start": self.start.isoformat(),
            "end": (self.end or self.start).isoformat(),
        }


@dataclass(frozen=True)
class Booking:
    """
    An existing reservation of the provider's time.

    ``start_time``/``end_time`` are None when the stored value could not be
    parsed; such a booking is "unparsable" and is handled by the resolver's
    conflict policy instead of raising.
    """
    start_time: DateTime | None
    end_time: DateTime | None
    status: str = BookingStatus.CONFIRMED.value
    booking_id: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], timezone: str) -> "Booking":
        """Build from a platform session record (camelCase or snake_case keys)."""
        start = raw.get("startTime", raw.get("start_time"))
        end = raw.get("endTime", raw.get("end_time"))
        status = raw.get("status") or BookingStatus.CONFIRMED.value
        booking_id = raw.get("sessionId", raw.get("_id", raw.get("booking_id")))

        return cls(
            start_time=parse_instant(start, timezone),
            end_time=parse_instant(end, timezone),
            status=str(status),
            booking_id=str(booking_id) if booking_id is not None else None,
        )

    @property
    def is_cancelled(self) -> bool:
        status = self.status.value if isinstance(self.status, BookingStatus) else str(self.status)
        return status.strip().lower() == BookingStatus.CANCELLED.value

    @property
    def is_parsable(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        """Strict interval overlap; touching intervals do not overlap."""
        if not self.is_parsable:
            return False
        return start < self.end_time and end > self.start_time


@dataclass(frozen=True)
class Slot:
    """
    A bookable candidate window on the target date.

    Offsets are minutes from the target date's midnight and may exceed one
    day for ranges that cross midnight.
    """
    start_minute: int
    end_minute: int
    available: bool = True

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def start_label(self) -> str:
        return format_minutes(self.start_minute)

    @property
    def end_label(self) -> str:
        return format_minutes(self.end_minute)

    @property
    def label(self) -> str:
        return f"{self.start_label} - {self.end_label}"

    def mark(self, available: bool) -> "Slot":
        return replace(self, available=available)

    def to_dict(self) -> Dict[str, Any]:
        """Shape used by the booking page: ``{"time": label, "available": bool}``."""
        return {"time": self.label, "available": self.available}

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class AvailabilityProfile:
    """
    A provider's stored availability settings.
    """
    weekly: WeeklySchedule = field(default_factory=WeeklySchedule)
    break_dates: Tuple[BreakDate, ...] = ()
    session_duration: int = 30
    max_per_day: int = 1

    @classmethod
    def from_mapping(cls, raw: Any, timezone: str) -> "AvailabilityProfile":
        """
        Build from the platform's availability document.

        Missing or unreadable values fall back to the platform defaults
        (30 minutes, one session per day). Unreadable break entries are
        skipped and a weekly value that is not a mapping gives an empty week.
        """
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning("Ignoring availability document that is not a mapping: %r", raw)
            raw = {}

        raw_breaks = raw.get("breakDates", raw.get("break_dates"))
        if raw_breaks is not None and not isinstance(raw_breaks, (list, tuple)):
            logger.warning("Ignoring break dates that are not a list: %r", raw_breaks)
            raw_breaks = None

        return cls(
            weekly=WeeklySchedule.from_mapping(raw.get("weekly")),
            break_dates=tuple(coerce_break_dates(raw_breaks, timezone)),
            session_duration=_positive_int(raw.get("sessionDuration", raw.get("session_duration")), 30),
            max_per_day=_positive_int(raw.get("maxPerDay", raw.get("max_per_day")), 1),
        )

    def summary(self) -> str:
        return f"{self.session_duration} min sessions, up to {self.max_per_day}/day"


def _positive_int(value: Any, default: int) -> int:
    """Read a positive whole number, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring unreadable number %r; using %d", value, default)
        return default
    return number if number > 0 else default


def coerce_break_dates(raw_breaks: Iterable[Any] | None, timezone: str) -> List[BreakDate]:
    """Convert raw break entries, skipping (and logging) the unreadable ones."""
    breaks: List[BreakDate] = []
    for raw in raw_breaks or []:
        try:
            breaks.append(BreakDate.parse(raw, timezone))
        except (ValueError, TypeError) as exc:
            logger.warning("Skipping unreadable break date %r: %s", raw, exc)
    return breaks


def coerce_bookings(raw_bookings: Iterable[Any] | None, timezone: str) -> List[Booking]:
    """
    Convert raw booking records.

    Records that are not mappings become unparsable bookings rather than
    being dropped, so a fail-closed policy still sees them.
    """
    bookings: List[Booking] = []
    for raw in raw_bookings or []:
        if isinstance(raw, Booking):
            bookings.append(raw)
        elif isinstance(raw, Mapping):
            bookings.append(Booking.from_mapping(raw, timezone))
        else:
            logger.debug("Treating non-mapping booking record %r as unparsable", raw)
            bookings.append(Booking(start_time=None, end_time=None))
    return bookings
