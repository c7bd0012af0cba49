"""Custom exception hierarchy for event recurrence validation.

All input validation happens at the boundary where form strings or stored
values become civil times and recurrence rules. Once a well-formed event
definition and rule reach the expander, expansion cannot fail, so nothing
in this module is raised by ``expand`` or ``classify``.
"""

from __future__ import annotations

from typing import Optional


class EventCalError(Exception):
    """Base exception for all eventcal validation errors.

    Carries an optional ``field`` naming the form input that caused the
    error so the UI layer can attach a field-level message.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidCivilTime(EventCalError):
    """Civil date/time fields are malformed or out of range.

    Raised when:
    - A ``YYYY-MM-DDTHH:mm`` or ``YYYY-MM-DD`` string cannot be parsed
    - Day/month combination does not exist for the year (e.g. Feb 30)
    - Hour or minute is outside its range
    - The timezone name is not a known IANA zone
    - An event's end resolves to an instant before its start
    """


class InvalidRecurrenceRule(EventCalError):
    """Recurrence rule is not constructible.

    Raised when:
    - A weekly rule has no weekdays
    - A monthly day-of-month is outside 1-31
    - The UNTIL date falls before the event's start date
    - A stored RRULE string uses an unsupported frequency or is malformed
    """
