"""Timezone utilities for company-local calendar arithmetic.

Every "what day is it" / "what time is it" question in the eligibility engine
goes through CalendarClock so that date-line and DST behaviour lives in one
place and tests can pin the current instant.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional
import pytz


DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class InvalidTimezoneError(ValueError):
    """Raised when a company carries a timezone name pytz does not know."""

    def __init__(self, timezone_name: str):
        self.timezone_name = timezone_name
        super().__init__(f"Invalid timezone: {timezone_name!r}")


@dataclass(frozen=True)
class PrecomputedDate:
    """One calendar day of a materialized date range."""

    date_str: str
    instant: datetime  # local midnight, expressed in UTC
    weekday: int  # 0=Sunday .. 6=Saturday


@lru_cache(maxsize=256)
def get_timezone(timezone_name: str):
    """Resolve an IANA zone name, failing loudly on unknown names."""
    if not timezone_name:
        raise InvalidTimezoneError(timezone_name)
    try:
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        raise InvalidTimezoneError(timezone_name) from None


def to_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are assumed to be UTC."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def parse_date_str(date_str: str) -> date:
    """Parse a YYYY-MM-DD string into a date."""
    return datetime.strptime(date_str, DATE_FORMAT).date()


def weekday_code(d: date) -> int:
    """Weekday with Sunday as 0 (Python's weekday() has Monday as 0)."""
    return (d.weekday() + 1) % 7


def time_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" to minutes past midnight."""
    hours, minutes = time_str.split(":")
    return int(hours) * 60 + int(minutes)


def format_time_12h(time_24h: str) -> str:
    """
    Format a 24-hour "HH:MM" string as 12-hour time.

    Examples:
        "06:00" -> "6:00 AM", "18:00" -> "6:00 PM", "00:30" -> "12:30 AM"
    """
    hours, minutes = (int(part) for part in time_24h.split(":"))
    period = "PM" if hours >= 12 else "AM"
    hours_12 = 12 if hours % 12 == 0 else hours % 12
    return f"{hours_12}:{minutes:02d} {period}"


def days_between(date_a: str, date_b: str) -> int:
    """Absolute number of calendar days between two YYYY-MM-DD strings."""
    return abs((parse_date_str(date_b) - parse_date_str(date_a)).days)


class CalendarClock:
    """Timezone-correct date/time primitives keyed by IANA zone name.

    Args:
        now_fn: Optional callable returning the current instant. Defaults to
            the system clock in UTC. Tests inject a fixed instant here.
    """

    def __init__(self, now_fn: Optional[Callable[[], datetime]] = None):
        self._now_fn = now_fn or (lambda: datetime.now(pytz.UTC))

    def now(self) -> datetime:
        """Current instant as aware UTC."""
        return to_utc(self._now_fn())

    def now_in_timezone(self, timezone_name: str) -> datetime:
        """Current instant viewed from the given zone."""
        return self.now().astimezone(get_timezone(timezone_name))

    def to_timezone(self, instant: datetime, timezone_name: str) -> datetime:
        """Convert an instant to the given zone."""
        return to_utc(instant).astimezone(get_timezone(timezone_name))

    def today(self, timezone_name: str) -> str:
        """Calendar date (YYYY-MM-DD) in the zone at the current instant."""
        return self.now_in_timezone(timezone_name).strftime(DATE_FORMAT)

    def current_time(self, timezone_name: str) -> str:
        """Zero-padded 24-hour "HH:MM" in the zone at the current instant."""
        return self.now_in_timezone(timezone_name).strftime(TIME_FORMAT)

    def day_of_week(self, timezone_name: str, date_str: Optional[str] = None) -> int:
        """Day of week (0=Sunday .. 6=Saturday) for date_str, or today in the zone."""
        if date_str is None:
            date_str = self.today(timezone_name)
        else:
            # Validate the zone even though a calendar date has no zone
            get_timezone(timezone_name)
        return weekday_code(parse_date_str(date_str))

    def parse_date_in_timezone(self, date_str: str, timezone_name: str) -> datetime:
        """
        Return local midnight of date_str in the zone, as an aware UTC instant.

        The same calendar date yields different instants for different zones,
        e.g. '2026-01-28' in Asia/Manila -> 2026-01-27T16:00:00Z.
        """
        tz = get_timezone(timezone_name)
        local_midnight = tz.localize(datetime.combine(parse_date_str(date_str), datetime.min.time()))
        return tz.normalize(local_midnight).astimezone(pytz.UTC)

    def format_in_timezone(self, instant: datetime, timezone_name: str) -> str:
        """Calendar date (YYYY-MM-DD) the instant falls on when viewed from the zone."""
        return self.to_timezone(instant, timezone_name).strftime(DATE_FORMAT)

    def days_between(self, date_a: str, date_b: str) -> int:
        """Absolute number of calendar days between two YYYY-MM-DD strings."""
        return days_between(date_a, date_b)

    def precompute_date_range(
        self, start_instant: datetime, count: int, timezone_name: str
    ) -> List[PrecomputedDate]:
        """
        Materialize `count` consecutive calendar days starting at the day
        start_instant falls on in the zone. Ordered oldest first.
        """
        start_date = parse_date_str(self.format_in_timezone(start_instant, timezone_name))

        result = []
        for offset in range(count):
            day = start_date + timedelta(days=offset)
            date_str = day.strftime(DATE_FORMAT)
            result.append(
                PrecomputedDate(
                    date_str=date_str,
                    instant=self.parse_date_in_timezone(date_str, timezone_name),
                    weekday=weekday_code(day),
                )
            )
        return result

    def build_date_lookup(
        self, instants: Iterable[datetime], timezone_name: str
    ) -> Dict[datetime, str]:
        """Map each distinct instant to its calendar date in the zone."""
        lookup: Dict[datetime, str] = {}
        for instant in instants:
            if instant not in lookup:
                lookup[instant] = self.format_in_timezone(instant, timezone_name)
        return lookup


# Shared clock for production code paths
default_clock = CalendarClock()
