"""Timezone lookup and clock utilities for eventcal."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from functools import lru_cache
from typing import ClassVar, Optional

logger = logging.getLogger(__name__)

# The restaurant operates on Mountain Time
DEFAULT_BUSINESS_TIMEZONE = "America/Denver"

TEST_TIME_ENV_VAR = "EVENTCAL_TEST_TIME"
BUSINESS_TIMEZONE_ENV_VAR = "EVENTCAL_BUSINESS_TIMEZONE"


class TimezoneResolver:
    """Resolves configured timezone names to canonical IANA identifiers."""

    # Obsolete or informal names admins tend to type into the settings form
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Mountain": "America/Denver",
        "US/Arizona": "America/Phoenix",
        "US/Pacific": "America/Los_Angeles",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "Mountain Time": "America/Denver",
        "MST7MDT": "America/Denver",
        "GMT": "UTC",
        "Etc/UTC": "UTC",
        "Z": "UTC",
    }

    def resolve_alias(self, tz_name: str) -> str:
        """Return the canonical name for an alias, or the name unchanged."""
        return self.TZ_ALIAS_MAP.get(tz_name.strip(), tz_name.strip())

    def normalize(self, tz_name: Optional[str]) -> Optional[str]:
        """Normalize a timezone string to a valid IANA identifier.

        Args:
            tz_name: Alias or IANA identifier

        Returns:
            Canonical IANA identifier, or None if it cannot be resolved
        """
        if not tz_name or not tz_name.strip():
            return None

        resolved = self.resolve_alias(tz_name)
        try:
            get_zone(resolved)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown timezone name: %r", tz_name)
            return None
        return resolved


class TimeProvider:
    """Provides current time with test time override support."""

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the EVENTCAL_TEST_TIME environment
        variable (ISO 8601, e.g. "2026-03-01T23:30:00-07:00"). A naive value is
        taken as UTC.

        Returns:
            Current time in UTC with timezone info
        """
        test_time = os.environ.get(TEST_TIME_ENV_VAR)
        if test_time:
            try:
                from dateutil import parser as date_parser

                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.timezone.utc)
                return dt.replace(tzinfo=datetime.timezone.utc)
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV_VAR, test_time, e)

        return datetime.datetime.now(datetime.timezone.utc)


@lru_cache(maxsize=32)
def get_zone(tz_name: str) -> zoneinfo.ZoneInfo:
    """Look up a ZoneInfo by IANA name.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the zone is unknown
        ValueError: If the name is malformed (e.g. absolute path)
    """
    return zoneinfo.ZoneInfo(tz_name)


_resolver = TimezoneResolver()
_time_provider = TimeProvider()


def normalize_timezone_name(tz_name: Optional[str]) -> Optional[str]:
    """Normalize a timezone string (convenience function).

    Examples:
        >>> normalize_timezone_name("US/Mountain")
        'America/Denver'
        >>> normalize_timezone_name("Invalid/Timezone") is None
        True
    """
    return _resolver.normalize(tz_name)


def get_business_timezone(fallback: str = DEFAULT_BUSINESS_TIMEZONE) -> str:
    """Get the business timezone from the environment with validation.

    Reads EVENTCAL_BUSINESS_TIMEZONE and falls back to ``fallback`` when
    unset or invalid. This is only called while building configuration;
    expansion and classification take the zone as an explicit argument.

    Returns:
        Valid IANA timezone string
    """
    configured = os.environ.get(BUSINESS_TIMEZONE_ENV_VAR)
    if not configured:
        return fallback

    normalized = normalize_timezone_name(configured)
    if normalized is None:
        logger.warning("Invalid timezone %r, falling back to %r", configured, fallback)
        return fallback
    return normalized


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function)."""
    return _time_provider.now_utc()
