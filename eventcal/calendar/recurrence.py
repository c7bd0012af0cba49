"""Recurrence rules for event definitions.

A rule is a pattern (one-time, weekly on a set of weekdays, or monthly on a
day of the month) plus bounds that apply to every pattern: an inclusive
UNTIL date and a set of skipped dates.

Monthly rules clamp to the end of short months: ``day_of_month=31`` falls
on April 30 and on February 28 (29 in leap years).
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, Optional, Union

from dateutil import rrule as dateutil_rrule

from ..exceptions import InvalidCivilTime, InvalidRecurrenceRule
from .civil_time import parse_civil_date

logger = logging.getLogger(__name__)


class Weekday(str, Enum):
    """Day of week, valued by its RFC 5545 BYDAY code."""

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"

    @property
    def number(self) -> int:
        """Python weekday number (Monday is 0)."""
        return _WEEKDAY_ORDER.index(self)

    @property
    def rrule_weekday(self) -> dateutil_rrule.weekday:
        return dateutil_rrule.weekdays[self.number]

    @classmethod
    def for_date(cls, day: date) -> Weekday:
        return _WEEKDAY_ORDER[day.weekday()]

    @classmethod
    def from_value(cls, value: Union[Weekday, str, int]) -> Weekday:
        """Coerce a BYDAY code, English day name or weekday number.

        Raises:
            InvalidRecurrenceRule: If the value names no weekday
        """
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= 6:
                return _WEEKDAY_ORDER[value]
        elif isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
            if key in _WEEKDAY_NAMES:
                return _WEEKDAY_NAMES[key]
        raise InvalidRecurrenceRule(f"Unknown weekday: {value!r}", field="weekdays")


_WEEKDAY_ORDER: tuple[Weekday, ...] = tuple(Weekday)
_WEEKDAY_NAMES: dict[str, Weekday] = dict(
    zip(
        ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"),
        _WEEKDAY_ORDER,
    )
)


@dataclass(frozen=True)
class NoRecurrence:
    """Single occurrence on the event's start date."""

    frequency: ClassVar[str] = "none"


@dataclass(frozen=True)
class WeeklyRecurrence:
    """Once per selected weekday, every week."""

    weekdays: frozenset[Weekday]

    frequency: ClassVar[str] = "weekly"

    def __post_init__(self) -> None:
        if isinstance(self.weekdays, (str, Weekday)):
            raw: Iterable = [self.weekdays]
        else:
            raw = self.weekdays or ()
        weekdays = frozenset(Weekday.from_value(value) for value in raw)
        if not weekdays:
            raise InvalidRecurrenceRule("Weekly recurrence needs at least one weekday", field="weekdays")
        object.__setattr__(self, "weekdays", weekdays)

    @property
    def ordered_weekdays(self) -> list[Weekday]:
        return sorted(self.weekdays, key=lambda day: day.number)

    def matches(self, candidate: date) -> bool:
        return Weekday.for_date(candidate) in self.weekdays


@dataclass(frozen=True)
class MonthlyRecurrence:
    """Once per month on a day of the month, clamped to the month's last day."""

    day_of_month: int

    frequency: ClassVar[str] = "monthly"

    def __post_init__(self) -> None:
        value = self.day_of_month
        if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 31:
            raise InvalidRecurrenceRule(
                f"Day of month must be 1-31, got {value!r}", field="day_of_month"
            )

    def day_in_month(self, year: int, month: int) -> int:
        """Effective day for a month after clamping."""
        return min(self.day_of_month, calendar.monthrange(year, month)[1])

    def matches(self, candidate: date) -> bool:
        return candidate.day == self.day_in_month(candidate.year, candidate.month)


RecurrencePattern = Union[NoRecurrence, WeeklyRecurrence, MonthlyRecurrence]

FREQUENCIES: dict[str, type] = {
    NoRecurrence.frequency: NoRecurrence,
    WeeklyRecurrence.frequency: WeeklyRecurrence,
    MonthlyRecurrence.frequency: MonthlyRecurrence,
}


@dataclass(frozen=True)
class RecurrenceRule:
    """Recurrence pattern plus its UNTIL and exception-date bounds.

    Raises:
        InvalidRecurrenceRule: If the pattern is not a known variant or a
            bound is not a date
    """

    pattern: RecurrencePattern = field(default_factory=NoRecurrence)
    until_date: Optional[date] = None
    exception_dates: frozenset[date] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.pattern, (NoRecurrence, WeeklyRecurrence, MonthlyRecurrence)):
            raise InvalidRecurrenceRule(
                f"Unsupported recurrence pattern: {self.pattern!r}", field="frequency"
            )
        if self.until_date is not None and not _is_plain_date(self.until_date):
            raise InvalidRecurrenceRule(
                f"UNTIL must be a date, got {self.until_date!r}", field="until"
            )

        exceptions = frozenset(self.exception_dates or ())
        for day in exceptions:
            if not _is_plain_date(day):
                raise InvalidRecurrenceRule(
                    f"Exception dates must be dates, got {day!r}", field="exception_dates"
                )
        object.__setattr__(self, "exception_dates", exceptions)

    @classmethod
    def none(cls) -> RecurrenceRule:
        return cls(NoRecurrence())

    @classmethod
    def weekly(
        cls,
        weekdays: Iterable[Union[Weekday, str, int]],
        until_date: Optional[date] = None,
        exception_dates: Iterable[date] = (),
    ) -> RecurrenceRule:
        return cls(WeeklyRecurrence(frozenset(weekdays)), until_date, frozenset(exception_dates))

    @classmethod
    def monthly(
        cls,
        day_of_month: int,
        until_date: Optional[date] = None,
        exception_dates: Iterable[date] = (),
    ) -> RecurrenceRule:
        return cls(MonthlyRecurrence(day_of_month), until_date, frozenset(exception_dates))

    @property
    def frequency(self) -> str:
        return self.pattern.frequency

    @property
    def is_recurring(self) -> bool:
        return not isinstance(self.pattern, NoRecurrence)

    def check_start(self, start_date: date) -> RecurrenceRule:
        """Validate the rule against the event's start date.

        Returns:
            The rule itself, for chaining

        Raises:
            InvalidRecurrenceRule: If UNTIL is before the start date
        """
        if self.until_date is not None and self.until_date < start_date:
            raise InvalidRecurrenceRule(
                f"UNTIL {self.until_date.isoformat()} is before the start date "
                f"{start_date.isoformat()}",
                field="until",
            )
        return self

    def with_exception(self, day: date) -> RecurrenceRule:
        """Copy of this rule that also skips ``day``."""
        return replace(self, exception_dates=self.exception_dates | {day})

    def without_exception(self, day: date) -> RecurrenceRule:
        """Copy of this rule that no longer skips ``day``."""
        return replace(self, exception_dates=self.exception_dates - {day})


def _is_plain_date(value: object) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


def includes_date(rule: RecurrenceRule, candidate: date, start_date: Optional[date] = None) -> bool:
    """Whether ``candidate`` is an occurrence date under ``rule``.

    Checks the pattern match, the inclusive UNTIL bound and the exception
    dates. When ``start_date`` is given, dates before it never match. A
    one-time rule matches only its start date, so it needs ``start_date``.
    """
    if start_date is not None and candidate < start_date:
        return False
    if rule.until_date is not None and candidate > rule.until_date:
        return False
    if candidate in rule.exception_dates:
        return False

    pattern = rule.pattern
    if isinstance(pattern, NoRecurrence):
        return start_date is not None and candidate == start_date
    if isinstance(pattern, (WeeklyRecurrence, MonthlyRecurrence)):
        return pattern.matches(candidate)
    raise TypeError(f"Unhandled recurrence pattern: {type(pattern).__name__}")


def _coerce_date(value: Union[date, str, None], field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if _is_plain_date(value):
        return value  # type: ignore[return-value]
    if isinstance(value, str):
        try:
            return parse_civil_date(value, field=field_name)
        except InvalidCivilTime as e:
            raise InvalidRecurrenceRule(e.message, field=field_name) from e
    raise InvalidRecurrenceRule(f"Expected a date, got {value!r}", field=field_name)


def _coerce_day_of_month(value: Union[int, str, None]) -> int:
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as e:
            raise InvalidRecurrenceRule(
                f"Day of month must be a number, got {value!r}", field="day_of_month"
            ) from e
    if value is None:
        raise InvalidRecurrenceRule("Monthly recurrence needs a day of month", field="day_of_month")
    return value


def build_recurrence_rule(
    frequency: Optional[str],
    *,
    weekdays: Iterable[Union[Weekday, str, int]] = (),
    day_of_month: Union[int, str, None] = None,
    until: Union[date, str, None] = None,
    exception_dates: Iterable[Union[date, str]] = (),
    start_date: Optional[date] = None,
) -> RecurrenceRule:
    """Build a validated rule from event form values.

    Args:
        frequency: "none", "weekly" or "monthly" (case-insensitive; empty
            means none)
        weekdays: BYDAY codes, English day names or weekday numbers
        day_of_month: 1-31, as int or form string
        until: Inclusive end date, as date or ``YYYY-MM-DD``
        exception_dates: Skipped dates, as dates or ``YYYY-MM-DD``
        start_date: Event start date; UNTIL must not precede it

    Raises:
        InvalidRecurrenceRule: On any invalid form value
    """
    kind = (frequency or NoRecurrence.frequency).strip().lower()
    if kind not in FREQUENCIES:
        raise InvalidRecurrenceRule(f"Unsupported frequency: {frequency!r}", field="frequency")

    pattern: RecurrencePattern
    if kind == WeeklyRecurrence.frequency:
        pattern = WeeklyRecurrence(frozenset(Weekday.from_value(day) for day in weekdays))
    elif kind == MonthlyRecurrence.frequency:
        pattern = MonthlyRecurrence(_coerce_day_of_month(day_of_month))
    else:
        pattern = NoRecurrence()

    exceptions = frozenset(
        _coerce_date(day, "exception_dates") for day in exception_dates if day not in (None, "")
    )
    rule = RecurrenceRule(pattern, _coerce_date(until, "until"), exceptions)  # type: ignore[arg-type]

    if start_date is not None:
        rule.check_start(start_date)

    logger.debug("Built %s recurrence rule (until=%s, %d exceptions)", kind, rule.until_date, len(exceptions))
    return rule
