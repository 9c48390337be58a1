"""Household timezone resolution and the overridable clock."""

from __future__ import annotations

import datetime
import logging
import os
import zoneinfo
from functools import lru_cache

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DEFAULT_HOUSEHOLD_TIMEZONE = "UTC"
TEST_TIME_ENV = "HOUSEHOLD_SCHEDULE_TEST_TIME"


def get_default_timezone(fallback: str = DEFAULT_HOUSEHOLD_TIMEZONE) -> str:
    """Get default timezone from environment with validation.

    Checks HOUSEHOLD_SCHEDULE_DEFAULT_TIMEZONE first and falls back to
    ``fallback`` when it is unset or not a valid IANA name.
    """
    timezone = os.environ.get("HOUSEHOLD_SCHEDULE_DEFAULT_TIMEZONE", fallback)
    try:
        zoneinfo.ZoneInfo(timezone)
        return timezone
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.warning("Invalid timezone %r, falling back to %r", timezone, fallback)
        return fallback


@lru_cache(maxsize=20)
def resolve_timezone(tz_name: str | None) -> datetime.tzinfo:
    """Resolve an IANA name to a tzinfo, falling back to UTC.

    Examples:
        >>> resolve_timezone("America/New_York")
        zoneinfo.ZoneInfo(key='America/New_York')
        >>> resolve_timezone(None)
        datetime.timezone.utc
    """
    if not tz_name:
        return datetime.UTC
    try:
        return zoneinfo.ZoneInfo(tz_name)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        logger.warning("Invalid timezone %r, falling back to UTC", tz_name)
        return datetime.UTC


class TimeProvider:
    """Provides current time with test time override support."""

    def __init__(self, tz_name: str | None = None):
        """Initialize time provider.

        Args:
            tz_name: Household timezone used by ``today()``
        """
        self.tz = resolve_timezone(tz_name)

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via HOUSEHOLD_SCHEDULE_TEST_TIME
        (ISO 8601, e.g. "2025-03-04T08:20:00-08:00"). Naive values are
        treated as UTC.
        """
        test_time = os.environ.get(TEST_TIME_ENV)
        if test_time:
            try:
                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is not None:
                    return dt.astimezone(datetime.UTC)
                return dt.replace(tzinfo=datetime.UTC)
            except ValueError as e:
                logger.warning("Failed to parse %s=%r: %s", TEST_TIME_ENV, test_time, e)

        return datetime.datetime.now(datetime.UTC)

    def now(self) -> datetime.datetime:
        """Current time in the household timezone."""
        return self.now_utc().astimezone(self.tz)

    def today(self) -> datetime.date:
        """Current calendar date in the household timezone (drives ``is_overdue``)."""
        return self.now().date()
