"""Shared fixtures for eventcal tests."""

from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import pytest

from eventcal.calendar.civil_time import CivilDateTime
from eventcal.calendar.models import EventDefinition

_EVENTCAL_ENV_VARS = (
    "EVENTCAL_BUSINESS_TIMEZONE",
    "EVENTCAL_LOOKAHEAD_DAYS",
    "EVENTCAL_UPCOMING_LIMIT",
    "EVENTCAL_MAX_OCCURRENCES",
    "EVENTCAL_LOG_LEVEL",
    "EVENTCAL_DEBUG",
    "EVENTCAL_TEST_TIME",
)


def pytest_configure(config: Any) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "critical_path: Core functionality tests")


@pytest.fixture
def business_timezone() -> str:
    """Return the restaurant's timezone.

    Mountain Time observes DST, so tests that use it exercise both the
    UTC-7 and UTC-6 offsets.
    """
    return "America/Denver"


@pytest.fixture
def frozen_now() -> datetime:
    """Fixed instant: 2026-03-01 23:30 in Denver, already March 2 in UTC."""
    return datetime(2026, 3, 2, 6, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_event(business_timezone: str):
    """Factory for event definitions from form-style wall-clock values."""

    def _make(
        event_id: str = "evt",
        start: tuple[int, int, int, int, int] = (2026, 1, 7, 19, 0),
        end: tuple[int, int, int, int, int] | None = None,
        is_all_day: bool = False,
        title: str = "",
    ) -> EventDefinition:
        return EventDefinition(
            id=event_id,
            title=title or event_id,
            start_civil=CivilDateTime(*start, business_timezone),
            end_civil=CivilDateTime(*end, business_timezone) if end else None,
            is_all_day=is_all_day,
        )

    return _make


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear EVENTCAL_* variables so host settings never leak into tests."""
    for key in _EVENTCAL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    yield
