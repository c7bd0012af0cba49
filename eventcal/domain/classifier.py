"""Today/upcoming classification of expanded occurrences.

"Today" is the calendar date of ``now`` in the business timezone, not the
last 24 hours and not the server's local date. A show dated March 1 at
23:30 Denver time is still today at 23:45 Denver time even though UTC has
already reached March 2.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime

from pydantic import BaseModel, Field

from ..calendar.civil_time import business_date
from ..calendar.expander import occurrence_sort_key
from ..calendar.models import Occurrence


class DayClassification(BaseModel):
    """Occurrences split around the current business day."""

    business_date: date = Field(..., description="Today's date in the business timezone")
    today: list[Occurrence] = Field(default_factory=list, description="Occurrences dated today")
    upcoming: list[Occurrence] = Field(
        default_factory=list, description="Occurrences dated after today"
    )


def _aware(now: datetime) -> datetime:
    return now if now.tzinfo is not None else now.replace(tzinfo=UTC)


def classify(
    occurrences: Iterable[Occurrence],
    now: datetime,
    business_timezone: str,
) -> DayClassification:
    """Split occurrences into today and upcoming.

    Occurrences from earlier days are dropped. Occurrences dated today stay
    in ``today`` even after they end; use ``filter_not_ended`` for widgets
    that should hide them.

    Args:
        occurrences: Occurrences from one or more expansions
        now: Current instant (naive values are taken as UTC)
        business_timezone: IANA zone that defines "today"

    Returns:
        DayClassification with both lists ordered by (start instant, event id)
    """
    today = business_date(_aware(now), business_timezone)
    ordered = sorted(occurrences, key=occurrence_sort_key)

    return DayClassification(
        business_date=today,
        today=[occ for occ in ordered if occ.occurrence_date == today],
        upcoming=[occ for occ in ordered if occ.occurrence_date > today],
    )


def filter_not_ended(occurrences: Iterable[Occurrence], now: datetime) -> list[Occurrence]:
    """Drop occurrences that are already over at ``now``.

    Occurrences without an end are dropped once they have started.
    """
    current = _aware(now)
    return [occ for occ in occurrences if not occ.has_ended(current)]
