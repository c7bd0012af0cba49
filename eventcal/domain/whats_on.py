"""Homepage "what's on" summary.

The homepage lists everything happening today plus the next few upcoming
occurrences. It expands every event from today through a lookahead window
and classifies the result against the business day.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from ..calendar.civil_time import business_date
from ..calendar.expander import ExpanderConfig, expand_all
from ..calendar.models import EventDefinition, Occurrence
from ..calendar.recurrence import RecurrenceRule
from ..config_manager import DEFAULT_LOOKAHEAD_DAYS, DEFAULT_UPCOMING_LIMIT
from .classifier import classify, filter_not_ended

logger = logging.getLogger(__name__)


class WhatsOnSummary(BaseModel):
    """Today's occurrences and the next few after today."""

    business_date: date = Field(..., description="Today's date in the business timezone")
    business_timezone: str = Field(..., description="Zone used to decide today")
    today: list[Occurrence] = Field(default_factory=list)
    upcoming: list[Occurrence] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.today and not self.upcoming


def build_whats_on(
    items: Iterable[tuple[EventDefinition, RecurrenceRule]],
    now: datetime,
    business_timezone: str,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    upcoming_limit: Optional[int] = DEFAULT_UPCOMING_LIMIT,
    hide_ended: bool = False,
    config: Optional[ExpanderConfig] = None,
) -> WhatsOnSummary:
    """Build the homepage summary for ``now``.

    Args:
        items: (event, rule) pairs for all active events
        now: Current instant (naive values are taken as UTC)
        business_timezone: IANA zone that defines "today"
        lookahead_days: Days after today to search for upcoming occurrences
        upcoming_limit: Maximum upcoming occurrences to keep (None for all)
        hide_ended: Drop today's occurrences that are already over, for
            "tonight" widgets
        config: Optional expansion limits

    Returns:
        WhatsOnSummary for the current business day
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)

    today = business_date(now, business_timezone)
    window_end = today + timedelta(days=max(lookahead_days, 0))

    occurrences = expand_all(items, today, window_end, config)
    classified = classify(occurrences, now, business_timezone)

    todays = classified.today
    if hide_ended:
        todays = filter_not_ended(todays, now)

    upcoming = classified.upcoming
    if upcoming_limit is not None:
        upcoming = upcoming[: max(upcoming_limit, 0)]

    logger.debug(
        "What's on for %s (%s): %d today, %d upcoming of %d expanded",
        today,
        business_timezone,
        len(todays),
        len(upcoming),
        len(occurrences),
    )

    return WhatsOnSummary(
        business_date=today,
        business_timezone=business_timezone,
        today=todays,
        upcoming=upcoming,
    )
