"""Civil-time model, recurrence rules and occurrence expansion."""

from .civil_time import (
    CivilDateTime,
    business_date,
    business_day_bounds,
    civil_from_instant,
    format_as_civil_string,
    format_civil_date,
    parse_civil_date,
    parse_civil_string,
    parse_stored_datetime,
    resolve_to_instant,
)
from .expander import ExpanderConfig, expand, expand_all
from .models import EventDefinition, Occurrence
from .recurrence import (
    MonthlyRecurrence,
    NoRecurrence,
    RecurrenceRule,
    Weekday,
    WeeklyRecurrence,
    build_recurrence_rule,
    includes_date,
)
from .rrule_codec import dump_exception_dates, parse_rrule_string, to_rrule_string

__all__ = [
    "CivilDateTime",
    "EventDefinition",
    "ExpanderConfig",
    "MonthlyRecurrence",
    "NoRecurrence",
    "Occurrence",
    "RecurrenceRule",
    "Weekday",
    "WeeklyRecurrence",
    "build_recurrence_rule",
    "business_date",
    "business_day_bounds",
    "civil_from_instant",
    "dump_exception_dates",
    "expand",
    "expand_all",
    "format_as_civil_string",
    "format_civil_date",
    "includes_date",
    "parse_civil_date",
    "parse_civil_string",
    "parse_stored_datetime",
    "parse_rrule_string",
    "resolve_to_instant",
    "to_rrule_string",
]
