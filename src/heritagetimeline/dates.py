"""Date helpers — UTC normalisation, ISO parsing, and calendar arithmetic."""

import calendar
from datetime import date, datetime, timedelta

from pytz import utc

DAY_MS = 24 * 60 * 60 * 1000
_EPOCH = datetime(1970, 1, 1, tzinfo=utc)


def to_utc(value: datetime | date) -> datetime:
    """Return a tz-aware UTC datetime.

    Naive datetimes are interpreted as UTC. Plain dates map to UTC midnight.
    """
    if not isinstance(value, datetime):
        return utc.localize(datetime(value.year, value.month, value.day))
    if value.tzinfo is None:
        return utc.localize(value)
    return value.astimezone(utc)


def parse_date(text: str) -> datetime:
    """Parse an ISO date or datetime string ("2024-01-01", "2024-01-01T10:00:00Z")."""
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def now_utc() -> datetime:
    return datetime.now(utc)


def today_utc() -> datetime:
    """UTC midnight of the current day."""
    return to_utc(now_utc().date())


def to_ms(value: datetime) -> int:
    """Epoch milliseconds for a datetime (naive treated as UTC)."""
    return (to_utc(value) - _EPOCH) // timedelta(milliseconds=1)


def from_ms(ms: float) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


def subtract_days(value: datetime, days: int) -> datetime:
    return value - timedelta(days=days)


def subtract_years(value: datetime, years: int) -> datetime:
    """Move a datetime back by whole calendar years.

    Feb 29 maps to Feb 28 when the target year is not a leap year.
    """
    year = value.year - years
    day = value.day
    if value.month == 2 and day == 29 and not calendar.isleap(year):
        day = 28
    return value.replace(year=year, day=day)
