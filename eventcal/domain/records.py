"""Stored event rows and their conversion to engine inputs.

The persistence layer keeps start/end as datetime-local form strings (rows
written through the JSON API may hold ISO timestamps instead), the recurrence
as an RRULE string and skipped dates as a JSON list. This module turns such
rows into validated ``(EventDefinition, RecurrenceRule)`` pairs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..calendar.civil_time import parse_stored_datetime
from ..calendar.models import EventDefinition
from ..calendar.recurrence import RecurrenceRule
from ..calendar.rrule_codec import parse_rrule_string
from ..exceptions import EventCalError

logger = logging.getLogger(__name__)


class EventRecord(BaseModel):
    """Event row as stored by the persistence layer."""

    id: str = Field(..., description="Event ID")
    title: str = Field(default="", description="Event title")
    start_date_time: str = Field(..., description="Start as YYYY-MM-DDTHH:mm or ISO timestamp")
    end_date_time: Optional[str] = Field(default=None, description="End as YYYY-MM-DDTHH:mm or ISO timestamp")
    is_all_day: bool = Field(default=False, description="All-day event flag")
    is_active: bool = Field(default=True, description="Inactive events are not shown")
    recurrence_rule: Optional[str] = Field(default=None, description="RRULE subset")
    exceptions: Optional[str] = Field(default=None, description="JSON list of skipped dates")

    # Rows arrive camelCased from the API (startDateTime, recurrenceRule, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_definition(self, business_timezone: str) -> tuple[EventDefinition, RecurrenceRule]:
        """Convert to engine inputs, reading start/end in the business zone.

        Raises:
            InvalidCivilTime: If a date/time string is malformed
            InvalidRecurrenceRule: If the stored rule or exceptions are malformed
        """
        start = parse_stored_datetime(self.start_date_time, business_timezone)
        end = (
            parse_stored_datetime(self.end_date_time, business_timezone)
            if self.end_date_time
            else None
        )
        event = EventDefinition(
            id=self.id,
            title=self.title,
            start_civil=start,
            end_civil=end,
            is_all_day=self.is_all_day,
        )
        rule = parse_rrule_string(self.recurrence_rule, self.exceptions, start_date=start.date)
        return event, rule


def load_event_records(path: Path) -> list[EventRecord]:
    """Read event rows from a JSON file holding a list of objects.

    Raises:
        EventCalError: If the file is not a JSON list of event rows
        OSError: If the file cannot be read
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise EventCalError(f"{path} is not valid JSON: {e}", field="events") from e

    if not isinstance(raw, list):
        raise EventCalError(f"{path} must contain a JSON list of events", field="events")

    try:
        records = [EventRecord.model_validate(item) for item in raw]
    except ValidationError as e:
        raise EventCalError(f"{path} has invalid event rows: {e}", field="events") from e

    logger.debug("Loaded %d event records from %s", len(records), path)
    return records


def to_definitions(
    records: list[EventRecord],
    business_timezone: str,
    include_inactive: bool = False,
) -> list[tuple[EventDefinition, RecurrenceRule]]:
    """Convert rows to engine inputs, skipping inactive events by default.

    Raises:
        EventCalError: On the first row that fails validation
    """
    items = []
    for record in records:
        if not record.is_active and not include_inactive:
            continue
        items.append(record.to_definition(business_timezone))
    return items
