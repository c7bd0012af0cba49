"""Occurrence expansion for recurring event definitions.

Candidate dates come from ``dateutil.rrule`` over the intersection of the
query window and the series bounds, and every candidate is confirmed with
``includes_date`` before an occurrence is built. Each occurrence reuses the
definition's wall-clock times on its own date and resolves them
through the civil-time model, so a 7 PM trivia night stays at 7 PM on both
sides of a DST change.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

from dateutil.rrule import MONTHLY, WEEKLY, rrule

from ..config_manager import get_config_value
from ..exceptions import EventCalError
from .civil_time import CivilDateTime, resolve_to_instant
from .models import EventDefinition, Occurrence
from .recurrence import (
    MonthlyRecurrence,
    NoRecurrence,
    RecurrencePattern,
    RecurrenceRule,
    WeeklyRecurrence,
    includes_date,
)

logger = logging.getLogger(__name__)

# Smallest month length; monthly days above it need clamping
_SHORTEST_MONTH = 28


@dataclass
class ExpanderConfig:
    """Configuration for occurrence expansion.

    Raises:
        EventCalError: If ``max_occurrences`` is below 1
    """

    max_occurrences: int = 1000

    def __post_init__(self) -> None:
        if self.max_occurrences < 1:
            raise EventCalError(
                f"max_occurrences must be at least 1, got {self.max_occurrences}",
                field="max_occurrences",
            )

    @classmethod
    def from_settings(cls, settings: Any) -> ExpanderConfig:
        """Extract expansion configuration from a settings dict or object.

        Args:
            settings: Configuration with an optional ``max_occurrences``

        Returns:
            ExpanderConfig with values from settings or defaults

        Raises:
            EventCalError: If the configured ``max_occurrences`` is below 1
        """
        if settings is None:
            return cls()
        max_occurrences = get_config_value(settings, "max_occurrences")
        if max_occurrences is None:
            return cls()
        return cls(max_occurrences=max_occurrences)


def _candidate_rule(pattern: RecurrencePattern, lower: date, upper: date) -> rrule:
    dtstart = datetime.combine(lower, time.min)
    until = datetime.combine(upper, time.min)

    if isinstance(pattern, WeeklyRecurrence):
        return rrule(
            WEEKLY,
            dtstart=dtstart,
            until=until,
            byweekday=[day.rrule_weekday for day in pattern.ordered_weekdays],
        )
    if isinstance(pattern, MonthlyRecurrence):
        # Last existing day out of [min(d, 28) .. d] is d clamped to the month
        first = min(pattern.day_of_month, _SHORTEST_MONTH)
        return rrule(
            MONTHLY,
            dtstart=dtstart,
            until=until,
            bymonthday=tuple(range(first, pattern.day_of_month + 1)),
            bysetpos=-1,
        )
    raise TypeError(f"Unhandled recurrence pattern: {type(pattern).__name__}")


def iter_candidate_dates(pattern: RecurrencePattern, lower: date, upper: date) -> Iterator[date]:
    """Dates in [lower, upper] that match a repeating pattern, ascending."""
    if upper < lower:
        return
    for occurrence in _candidate_rule(pattern, lower, upper):
        yield occurrence.date()


def build_occurrence(event: EventDefinition, occurrence_date: date) -> Occurrence:
    """Place an event definition on a specific date.

    The definition's start time is reused on ``occurrence_date``. The end keeps
    the wall-clock end time and day offset, so a 23:00-02:00 show
    ends at 02:00 on the following day for every occurrence.

    All-day occurrences run from local midnight of their date to local
    midnight after the last day they cover.
    """
    start_civil = event.start_civil.on_date(occurrence_date)
    last_day = occurrence_date + timedelta(days=event.day_span)

    if event.is_all_day:
        start_instant = resolve_to_instant(
            CivilDateTime.at_midnight(occurrence_date, start_civil.timezone_name)
        )
        end_zone = (event.end_civil or event.start_civil).timezone_name
        end_instant: Optional[datetime] = resolve_to_instant(
            CivilDateTime.at_midnight(last_day + timedelta(days=1), end_zone)
        )
    else:
        start_instant = resolve_to_instant(start_civil)
        end_instant = None
        if event.end_civil is not None:
            end_instant = resolve_to_instant(event.end_civil.on_date(last_day))
            # A start inside a spring-forward gap can resolve past a short end
            end_instant = max(end_instant, start_instant)

    return Occurrence(
        event_id=event.id,
        title=event.title,
        occurrence_date=occurrence_date,
        start_instant=start_instant,
        end_instant=end_instant,
        is_all_day=event.is_all_day,
    )


def expand(
    event: EventDefinition,
    rule: RecurrenceRule,
    window_start: date,
    window_end: date,
    config: Optional[ExpanderConfig] = None,
) -> list[Occurrence]:
    """Expand an event definition into its occurrences within a window.

    Pure function of its inputs: calling it again with the same arguments
    returns an equal list, and widening ``window_end`` only appends.

    Args:
        event: Event definition
        rule: Recurrence rule for the event
        window_start: First date of the window (inclusive)
        window_end: Last date of the window (inclusive)
        config: Optional expansion limits

    Returns:
        Occurrences in ascending date order; empty if the window is empty
        or inverted
    """
    if window_end < window_start:
        return []

    cfg = config or ExpanderConfig()
    start_date = event.start_date
    pattern = rule.pattern

    if isinstance(pattern, NoRecurrence):
        if window_start <= start_date <= window_end and includes_date(rule, start_date, start_date):
            return [build_occurrence(event, start_date)]
        return []

    lower = max(start_date, window_start)
    upper = window_end if rule.until_date is None else min(rule.until_date, window_end)

    occurrences: list[Occurrence] = []
    for candidate in iter_candidate_dates(pattern, lower, upper):
        if not includes_date(rule, candidate, start_date):
            continue
        if len(occurrences) >= cfg.max_occurrences:
            logger.warning(
                "Expansion of event %s limited to %d occurrences (window %s..%s)",
                event.id,
                cfg.max_occurrences,
                window_start,
                window_end,
            )
            break
        occurrences.append(build_occurrence(event, candidate))

    logger.debug(
        "Expanded %s event %s over %s..%s: %d occurrences",
        rule.frequency,
        event.id,
        window_start,
        window_end,
        len(occurrences),
    )
    return occurrences


def occurrence_sort_key(occurrence: Occurrence) -> tuple[datetime, str]:
    return occurrence.start_instant, occurrence.event_id


def expand_all(
    items: Iterable[tuple[EventDefinition, RecurrenceRule]],
    window_start: date,
    window_end: date,
    config: Optional[ExpanderConfig] = None,
) -> list[Occurrence]:
    """Expand several event definitions and merge them by start instant.

    Args:
        items: (event, rule) pairs
        window_start: First date of the window (inclusive)
        window_end: Last date of the window (inclusive)
        config: Optional expansion limits

    Returns:
        All occurrences ordered by (start instant, event id)
    """
    merged: list[Occurrence] = []
    for event, rule in items:
        merged.extend(expand(event, rule, window_start, window_end, config))
    merged.sort(key=occurrence_sort_key)
    return merged
