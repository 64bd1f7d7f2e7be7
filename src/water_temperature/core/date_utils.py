"""
Date and timezone utilities.

Centralizes all date/time operations with proper timezone handling. Weather
payloads mix zone-naive local wall-clock strings (what forecast APIs return for
timezone=auto) with fully zoned ISO strings, so both shapes are supported.
"""

import logging
import re
from datetime import date, datetime
from typing import Optional, Union
import pytz
from pytz.tzinfo import BaseTzInfo

from . import constants


_ZONE_SUFFIX = re.compile(r"(?:Z|[+-]\d\d:?\d\d)$")


class DateUtils:
    """Utilities for date and timezone handling."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize date utilities.

        Args:
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def parse_timezone(timezone_str: str) -> BaseTzInfo:
        """
        Parse timezone string to pytz timezone object.

        Args:
            timezone_str: Timezone string (e.g., 'America/Chicago', 'UTC')

        Returns:
            pytz timezone object

        Raises:
            ValueError: If timezone is invalid
        """
        try:
            return pytz.timezone(timezone_str)
        except (pytz.exceptions.UnknownTimeZoneError, AttributeError):
            raise ValueError(f"Invalid timezone: {timezone_str}")

    def resolve_timezone(self, timezone_str: Optional[str]) -> str:
        """
        Resolve a timezone name, falling back to UTC when it is unusable.

        Args:
            timezone_str: Candidate timezone name

        Returns:
            A timezone name pytz accepts
        """
        if not timezone_str:
            return constants.DEFAULT_TIMEZONE
        try:
            self.parse_timezone(timezone_str)
            return timezone_str
        except ValueError:
            self.logger.warning(f"Invalid timezone '{timezone_str}', using UTC")
            return constants.DEFAULT_TIMEZONE

    @staticmethod
    def has_zone_suffix(value: str) -> bool:
        """Check whether an ISO string carries an explicit zone (Z or ±HH:MM)."""
        return bool(_ZONE_SUFFIX.search(str(value).strip()))

    @staticmethod
    def parse_timestamp(value: Union[str, datetime, date, None]) -> Optional[datetime]:
        """
        Parse an ISO timestamp, keeping zone-naive strings naive.

        Args:
            value: ISO string ('2026-02-19T07:00', '2026-02-20T00:00:00.000Z', ...),
                   datetime or date

        Returns:
            Parsed datetime (naive or aware), or None if unparseable
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if not isinstance(value, str):
            return None

        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"

        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    @staticmethod
    def to_utc(dt: datetime) -> datetime:
        """
        Convert datetime to UTC.

        Args:
            dt: Datetime object (can be naive or aware)

        Returns:
            Datetime in UTC (timezone-aware)
        """
        if dt.tzinfo is None:
            # Assume UTC if no timezone
            return pytz.UTC.localize(dt)
        return dt.astimezone(pytz.UTC)

    @staticmethod
    def to_local_naive(dt: datetime, timezone_str: str) -> datetime:
        """
        Express a datetime as local wall-clock time without tzinfo.

        Aware datetimes are converted into the timezone; naive datetimes are
        already local wall-clock values and are returned unchanged.

        Args:
            dt: Datetime object
            timezone_str: Target timezone string

        Returns:
            Naive local datetime
        """
        if dt.tzinfo is None:
            return dt
        tz = DateUtils.parse_timezone(timezone_str)
        return dt.astimezone(tz).replace(tzinfo=None)

    @staticmethod
    def instant_to_local_naive(dt: datetime, timezone_str: str) -> datetime:
        """
        Convert an instant to local wall-clock time, treating naive input as UTC.

        Args:
            dt: Datetime object (naive means UTC)
            timezone_str: Target timezone string

        Returns:
            Naive local datetime
        """
        return DateUtils.to_local_naive(DateUtils.to_utc(dt), timezone_str)

    @staticmethod
    def fractional_hour(dt: datetime) -> float:
        """Get the hour of day including minutes (e.g. 6:35 -> 6.583)."""
        return dt.hour + dt.minute / 60.0 + dt.second / 3600.0

    @staticmethod
    def hours_between(earlier: datetime, later: datetime) -> float:
        """
        Get elapsed hours between two instants (naive values are UTC).

        Args:
            earlier: Start instant
            later: End instant

        Returns:
            Hours from earlier to later (negative if earlier is after later)
        """
        delta = DateUtils.to_utc(later) - DateUtils.to_utc(earlier)
        return delta.total_seconds() / 3600.0

    @staticmethod
    def day_of_year(value: Union[datetime, date]) -> int:
        """Get day of year (1-366)."""
        return value.timetuple().tm_yday

    @staticmethod
    def parse_day_key(day_key: Optional[str]) -> Optional[date]:
        """Parse a 'YYYY-MM-DD' prefix into a date."""
        if not isinstance(day_key, str):
            return None
        match = re.match(r"^(\d{4}-\d{2}-\d{2})", day_key.strip())
        if not match:
            return None
        try:
            return datetime.strptime(match.group(1), "%Y-%m-%d").date()
        except ValueError:
            return None

    @staticmethod
    def calendar_date(value: Union[str, datetime, date, None]) -> Optional[date]:
        """Get the date of a bare calendar-day input ('2026-02-19' or a date), else None."""
        if isinstance(value, datetime):
            return None
        if isinstance(value, date):
            return value
        if isinstance(value, str) and re.fullmatch(r"\d{4}-\d{2}-\d{2}", value.strip()):
            return DateUtils.parse_day_key(value)
        return None

    @staticmethod
    def local_noon(day: date, timezone_str: str) -> datetime:
        """
        Get local noon of a calendar day as a UTC instant.

        Args:
            day: Local calendar day
            timezone_str: Timezone string

        Returns:
            Timezone-aware UTC datetime
        """
        tz = DateUtils.parse_timezone(timezone_str)
        noon = tz.localize(datetime.combine(day, datetime.min.time()).replace(hour=12))
        return noon.astimezone(pytz.UTC)

    @staticmethod
    def to_iso_z(dt: datetime) -> str:
        """
        Format an instant as ISO-8601 UTC with a 'Z' suffix.

        Args:
            dt: Datetime object (naive means UTC)

        Returns:
            ISO string such as '2026-02-19T12:35:00Z'
        """
        return DateUtils.to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")

