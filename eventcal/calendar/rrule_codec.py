"""Stored string form of recurrence rules.

Event rows keep their recurrence as an RRULE subset and their skipped dates
as a JSON list, e.g.::

    recurrence_rule = "FREQ=WEEKLY;BYDAY=MO,WE;UNTIL=20260331T235959Z"
    exceptions = '["2026-02-16"]'

UNTIL is written at 23:59:59 so every reader treats it as inclusive of the
last day. Only the date part is read back.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from datetime import date
from typing import Optional

from ..exceptions import InvalidCivilTime, InvalidRecurrenceRule
from .civil_time import format_civil_date, parse_civil_date
from .recurrence import (
    MonthlyRecurrence,
    NoRecurrence,
    RecurrencePattern,
    RecurrenceRule,
    Weekday,
    WeeklyRecurrence,
)

logger = logging.getLogger(__name__)

_UNTIL_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})(?:T\d{6}Z?)?$")

# Keys that change the meaning of the rule and that this engine cannot honor
_UNSUPPORTED_KEYS = frozenset({"COUNT", "BYSETPOS", "BYMONTH", "BYYEARDAY", "BYWEEKNO", "BYHOUR"})


def to_rrule_string(rule: RecurrenceRule) -> str:
    """Encode a rule's pattern and UNTIL bound as an RRULE string.

    Exception dates are not part of the string; see ``dump_exception_dates``.

    Returns:
        RRULE string, or "" for a one-time rule
    """
    pattern = rule.pattern
    if isinstance(pattern, NoRecurrence):
        return ""
    if isinstance(pattern, WeeklyRecurrence):
        byday = ",".join(day.value for day in pattern.ordered_weekdays)
        rrule = f"FREQ=WEEKLY;BYDAY={byday}"
    elif isinstance(pattern, MonthlyRecurrence):
        rrule = f"FREQ=MONTHLY;BYMONTHDAY={pattern.day_of_month}"
    else:
        raise TypeError(f"Unhandled recurrence pattern: {type(pattern).__name__}")

    if rule.until_date is not None:
        rrule += f";UNTIL={rule.until_date:%Y%m%d}T235959Z"
    return rrule


def _split_rrule(rrule_string: str) -> dict[str, str]:
    text = rrule_string.strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:"):]

    parts: dict[str, str] = {}
    for part in text.split(";"):
        if not part.strip():
            continue
        if "=" not in part:
            raise InvalidRecurrenceRule(f"Malformed RRULE part: {part!r}", field="recurrence_rule")
        key, value = part.split("=", 1)
        parts[key.strip().upper()] = value.strip()
    return parts


def _parse_until(value: str) -> date:
    match = _UNTIL_RE.match(value)
    if match is None:
        raise InvalidRecurrenceRule(f"Malformed UNTIL: {value!r}", field="until")
    year, month, day = (int(group) for group in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise InvalidRecurrenceRule(f"UNTIL is not a calendar date: {value!r}", field="until") from e


def _parse_pattern(parts: dict[str, str], start_date: Optional[date]) -> RecurrencePattern:
    freq = parts.get("FREQ", "").upper()
    if not freq:
        raise InvalidRecurrenceRule("RRULE missing required FREQ parameter", field="frequency")

    interval = parts.get("INTERVAL", "1")
    if interval != "1":
        raise InvalidRecurrenceRule(f"Unsupported INTERVAL: {interval!r}", field="recurrence_rule")

    unsupported = sorted(_UNSUPPORTED_KEYS.intersection(parts))
    if unsupported:
        raise InvalidRecurrenceRule(
            f"Unsupported RRULE parameters: {', '.join(unsupported)}", field="recurrence_rule"
        )

    if freq == "WEEKLY":
        byday = parts.get("BYDAY")
        if byday:
            return WeeklyRecurrence(
                frozenset(Weekday.from_value(code) for code in byday.split(",") if code.strip())
            )
        if start_date is None:
            raise InvalidRecurrenceRule("Weekly RRULE without BYDAY needs a start date", field="weekdays")
        return WeeklyRecurrence(frozenset({Weekday.for_date(start_date)}))

    if freq == "MONTHLY":
        if "BYDAY" in parts:
            raise InvalidRecurrenceRule(
                "Monthly rules by weekday position are not supported", field="recurrence_rule"
            )
        bymonthday = parts.get("BYMONTHDAY")
        if bymonthday is None:
            if start_date is None:
                raise InvalidRecurrenceRule(
                    "Monthly RRULE without BYMONTHDAY needs a start date", field="day_of_month"
                )
            return MonthlyRecurrence(start_date.day)
        try:
            day_of_month = int(bymonthday)
        except ValueError as e:
            raise InvalidRecurrenceRule(
                f"Malformed BYMONTHDAY: {bymonthday!r}", field="day_of_month"
            ) from e
        # Last day of the month is what clamping to 31 already produces
        if day_of_month == -1:
            day_of_month = 31
        return MonthlyRecurrence(day_of_month)

    raise InvalidRecurrenceRule(f"Unsupported FREQ: {freq!r}", field="frequency")


def parse_rrule_string(
    rrule_string: Optional[str],
    exceptions_json: Optional[str] = None,
    start_date: Optional[date] = None,
) -> RecurrenceRule:
    """Decode a stored RRULE string and exception list into a rule.

    Args:
        rrule_string: e.g. "FREQ=MONTHLY;BYMONTHDAY=15;UNTIL=20261231"; empty
            or None means a one-time event
        exceptions_json: JSON list of ``YYYY-MM-DD`` strings, or None
        start_date: Event start date, used when BYDAY/BYMONTHDAY is omitted
            and to validate UNTIL

    Raises:
        InvalidRecurrenceRule: If the string or exception list is malformed
            or uses unsupported RRULE features
    """
    exceptions = parse_exception_dates(exceptions_json)

    if not rrule_string or not rrule_string.strip():
        rule = RecurrenceRule(NoRecurrence(), exception_dates=exceptions)
    else:
        parts = _split_rrule(rrule_string)
        pattern = _parse_pattern(parts, start_date)
        until = _parse_until(parts["UNTIL"]) if parts.get("UNTIL") else None

        ignored = sorted(set(parts) - {"FREQ", "INTERVAL", "BYDAY", "BYMONTHDAY", "UNTIL"})
        if ignored:
            logger.debug("Ignoring RRULE parameters %s in %r", ignored, rrule_string)

        rule = RecurrenceRule(pattern, until, exceptions)

    if start_date is not None:
        rule.check_start(start_date)
    return rule


def parse_exception_dates(exceptions_json: Optional[str]) -> frozenset[date]:
    """Decode a JSON list of ``YYYY-MM-DD`` strings.

    Raises:
        InvalidRecurrenceRule: If the JSON is malformed or holds non-dates
    """
    if not exceptions_json or not exceptions_json.strip():
        return frozenset()

    try:
        raw = json.loads(exceptions_json)
    except json.JSONDecodeError as e:
        raise InvalidRecurrenceRule(
            f"Exception dates are not valid JSON: {e}", field="exception_dates"
        ) from e

    if not isinstance(raw, list):
        raise InvalidRecurrenceRule("Exception dates must be a JSON list", field="exception_dates")

    try:
        return frozenset(parse_civil_date(item, field="exception_dates") for item in raw)
    except InvalidCivilTime as e:
        raise InvalidRecurrenceRule(e.message, field="exception_dates") from e


def dump_exception_dates(dates: Iterable[date]) -> str:
    """Encode exception dates as a sorted JSON list of ``YYYY-MM-DD`` strings."""
    return json.dumps(sorted(format_civil_date(day) for day in set(dates)))
