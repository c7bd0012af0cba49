"""Data models for event definitions and their expanded occurrences."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

from ..exceptions import InvalidCivilTime
from .civil_time import CivilDateTime, resolve_to_instant


class EventDefinition(BaseModel):
    """Stored event as the recurrence engine sees it.

    Owned by the persistence layer and read-only here. The end may fall on a
    later calendar day than the start (a late show running past midnight),
    but must not resolve to an earlier instant.
    """

    id: str = Field(..., description="Event ID")
    title: str = Field(default="", description="Event title")
    start_civil: CivilDateTime = Field(..., description="Wall-clock start")
    end_civil: Optional[CivilDateTime] = Field(default=None, description="Wall-clock end")
    is_all_day: bool = Field(default=False, description="All-day event flag")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> EventDefinition:
        if self.end_civil is not None and resolve_to_instant(self.end_civil) < resolve_to_instant(
            self.start_civil
        ):
            raise InvalidCivilTime(
                f"Event {self.id!r} ends ({self.end_civil}) before it starts ({self.start_civil})",
                field="end",
            )
        return self

    @property
    def start_date(self) -> date:
        return self.start_civil.date

    @property
    def day_span(self) -> int:
        """Calendar days between the start date and end date (0 if same day)."""
        if self.end_civil is None:
            return 0
        return (self.end_civil.date - self.start_civil.date).days

    @property
    def spans_midnight(self) -> bool:
        return self.day_span > 0


class Occurrence(BaseModel):
    """One concrete instance of an event, built fresh for each expansion."""

    event_id: str = Field(..., description="ID of the event definition")
    title: str = Field(default="", description="Event title")
    occurrence_date: date = Field(..., description="Business-timezone date of the start")
    start_instant: datetime = Field(..., description="Absolute start (UTC)")
    end_instant: Optional[datetime] = Field(default=None, description="Absolute end (UTC)")
    is_all_day: bool = Field(default=False, description="All-day event flag")

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> str:
        """Stable identifier for this occurrence within its series."""
        return f"{self.event_id}:{self.occurrence_date.isoformat()}"

    def has_ended(self, now: datetime) -> bool:
        """Whether the occurrence is over at ``now``.

        Occurrences without an end count as ended once they have started.
        """
        return (self.end_instant or self.start_instant) < now

    @field_serializer("start_instant", "end_instant", when_used="unless-none")
    def serialize_instant(self, dt: datetime) -> str:
        """Serialize instants to ISO format."""
        return dt.isoformat()
