"""Civil (wall-clock) date/time model for event scheduling.

A ``CivilDateTime`` is what a clock on the restaurant wall shows: calendar
fields plus the name of the zone they are read in. It has no absolute
meaning until ``resolve_to_instant`` applies that zone's offset for that
specific date, so DST is accounted for per occurrence rather than frozen at
whatever offset was in force when the event was created.

The parse/format pair in this module is the only place form strings
(``YYYY-MM-DDTHH:mm`` for datetime-local inputs, ``YYYY-MM-DD`` for UNTIL
and exception dates, plus ISO timestamps from stored rows) are translated.
"""

from __future__ import annotations

import calendar
import logging
import re
import zoneinfo
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, time, timedelta

from dateutil import parser as date_parser

from ..core.timezone_utils import get_zone
from ..exceptions import InvalidCivilTime

logger = logging.getLogger(__name__)

_CIVIL_DATETIME_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2})(?::(\d{2}))?$")
_CIVIL_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def _check_zone(timezone_name: str) -> zoneinfo.ZoneInfo:
    if not isinstance(timezone_name, str) or not timezone_name.strip():
        raise InvalidCivilTime("Timezone name is required", field="timezone")
    try:
        return get_zone(timezone_name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidCivilTime(f"Unknown timezone: {timezone_name!r}", field="timezone") from e


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidCivilTime(f"{name} must be an integer, got {value!r}", field=name)
    if not low <= value <= high:
        raise InvalidCivilTime(f"{name} {value} is outside {low}-{high}", field=name)


@dataclass(frozen=True)
class CivilDateTime:
    """Wall-clock date and time in a named timezone.

    Raises:
        InvalidCivilTime: If any field is out of range for the given year
            and month, or the timezone name is unknown
    """

    year: int
    month: int
    day: int
    hour: int
    minute: int
    timezone_name: str

    def __post_init__(self) -> None:
        _check_range("year", self.year, 1, 9999)
        _check_range("month", self.month, 1, 12)
        _check_range("day", self.day, 1, calendar.monthrange(self.year, self.month)[1])
        _check_range("hour", self.hour, 0, 23)
        _check_range("minute", self.minute, 0, 59)
        _check_zone(self.timezone_name)

    @classmethod
    def combine(cls, day: date, time_of_day: time, timezone_name: str) -> CivilDateTime:
        """Build a civil time from a date and a wall-clock time of day."""
        return cls(
            day.year, day.month, day.day, time_of_day.hour, time_of_day.minute, timezone_name
        )

    @classmethod
    def at_midnight(cls, day: date, timezone_name: str) -> CivilDateTime:
        """Start of ``day`` on the wall clock of ``timezone_name``."""
        return cls(day.year, day.month, day.day, 0, 0, timezone_name)

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def time_of_day(self) -> time:
        return time(self.hour, self.minute)

    def on_date(self, day: date) -> CivilDateTime:
        """Same wall-clock time and zone on another calendar date."""
        return replace(self, year=day.year, month=day.month, day=day.day)

    def __str__(self) -> str:
        return f"{format_as_civil_string(self)} [{self.timezone_name}]"


def resolve_to_instant(civil: CivilDateTime) -> datetime:
    """Convert wall-clock fields to an absolute UTC instant.

    The offset comes from the zone rules for that calendar date. Times
    inside a spring-forward gap resolve with the pre-transition offset, so
    2:30 on the changeover night lands at 3:30 daylight time. Ambiguous
    fall-back times resolve to the first (daylight) reading.

    Returns:
        Timezone-aware datetime in UTC
    """
    zone = get_zone(civil.timezone_name)
    local = datetime(civil.year, civil.month, civil.day, civil.hour, civil.minute, tzinfo=zone)
    return local.astimezone(UTC)


def format_as_civil_string(civil: CivilDateTime) -> str:
    """Format as ``YYYY-MM-DDTHH:mm`` for datetime-local form inputs.

    Only the civil fields are used, never UTC fields.

    Examples:
        >>> format_as_civil_string(CivilDateTime(2026, 7, 15, 19, 0, "America/Denver"))
        '2026-07-15T19:00'
    """
    return (
        f"{civil.year:04d}-{civil.month:02d}-{civil.day:02d}"
        f"T{civil.hour:02d}:{civil.minute:02d}"
    )


def parse_civil_string(text: str, timezone_name: str) -> CivilDateTime:
    """Parse a datetime-local form value into a civil time.

    Accepts ``YYYY-MM-DDTHH:mm`` and ``YYYY-MM-DDTHH:mm:ss``; seconds are
    validated and dropped.

    Args:
        text: Form value
        timezone_name: Zone the wall-clock value is read in

    Raises:
        InvalidCivilTime: If the string is malformed or out of range
    """
    if not isinstance(text, str):
        raise InvalidCivilTime(f"Expected a date/time string, got {text!r}", field="datetime")

    match = _CIVIL_DATETIME_RE.match(text.strip())
    if match is None:
        raise InvalidCivilTime(
            f"Expected YYYY-MM-DDTHH:mm, got {text!r}", field="datetime"
        )

    year, month, day, hour, minute, second = match.groups()
    if second is not None:
        _check_range("second", int(second), 0, 59)

    return CivilDateTime(int(year), int(month), int(day), int(hour), int(minute), timezone_name)


def parse_stored_datetime(text: str, timezone_name: str) -> CivilDateTime:
    """Parse a stored start/end value into a civil time.

    Rows hold either a datetime-local value, read as wall clock in
    ``timezone_name``, or an ISO 8601 timestamp such as
    ``2026-01-08T02:00:00.000Z``, which names an absolute instant and is
    converted to its wall-clock reading in ``timezone_name``. Timestamps
    without an offset are taken as UTC.

    Raises:
        InvalidCivilTime: If the value is neither form
    """
    if not isinstance(text, str):
        raise InvalidCivilTime(f"Expected a date/time string, got {text!r}", field="datetime")

    value = text.strip()
    if _CIVIL_DATETIME_RE.match(value):
        return parse_civil_string(value, timezone_name)

    try:
        instant = date_parser.isoparse(value)
    except (ValueError, OverflowError) as e:
        raise InvalidCivilTime(
            f"Expected YYYY-MM-DDTHH:mm or an ISO 8601 timestamp, got {text!r}", field="datetime"
        ) from e
    return civil_from_instant(instant, timezone_name)


def parse_civil_date(text: str, field: str = "date") -> date:
    """Parse a ``YYYY-MM-DD`` form value.

    Raises:
        InvalidCivilTime: If the string is malformed or not a real date
    """
    if not isinstance(text, str):
        raise InvalidCivilTime(f"Expected a date string, got {text!r}", field=field)

    match = _CIVIL_DATE_RE.match(text.strip())
    if match is None:
        raise InvalidCivilTime(f"Expected YYYY-MM-DD, got {text!r}", field=field)

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidCivilTime(f"Not a calendar date: {text!r}", field=field) from e


def format_civil_date(day: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return day.isoformat()


def civil_from_instant(instant: datetime, timezone_name: str) -> CivilDateTime:
    """Wall-clock reading of an absolute instant in a zone.

    Naive instants are taken as UTC. Seconds are truncated.
    """
    zone = _check_zone(timezone_name)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    local = instant.astimezone(zone)
    return CivilDateTime(
        local.year, local.month, local.day, local.hour, local.minute, timezone_name
    )


def business_date(instant: datetime, timezone_name: str) -> date:
    """Calendar date of ``instant`` in the business timezone."""
    return civil_from_instant(instant, timezone_name).date


def business_day_bounds(day: date, timezone_name: str) -> tuple[datetime, datetime]:
    """Absolute start and end of a business day.

    The span is 23 or 25 hours on DST changeover days.

    Returns:
        Tuple of (start, end) UTC instants, end exclusive
    """
    start = resolve_to_instant(CivilDateTime.at_midnight(day, timezone_name))
    end = resolve_to_instant(CivilDateTime.at_midnight(day + timedelta(days=1), timezone_name))
    return start, end
