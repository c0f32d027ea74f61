"""Local calendar keys for instants.

All same-day and same-month checks in the engine go through
``local_day_key`` / ``local_month_key`` so the calendar grid, the daily
totals and the trend series agree on where a day starts.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from engine import config

Instant = Union[str, datetime]


def parse_instant(value: Instant) -> datetime:
    if isinstance(value, datetime):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_local(value: Instant, tz: Optional[tzinfo] = None) -> datetime:
    """Aware datetime in the observer's zone.

    ``tz=None`` falls back to the configured zone, then to the host zone.
    A naive value is taken as wall time in that zone.
    """
    dt = parse_instant(value)
    if tz is None:
        tz = config.local_zone()
    if tz is None:
        return dt.astimezone()
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def local_day_key(value: Instant, tz: Optional[tzinfo] = None) -> date:
    return to_local(value, tz).date()


def local_month_key(value: Instant, tz: Optional[tzinfo] = None) -> tuple[int, int]:
    local = to_local(value, tz)
    return local.year, local.month


def same_local_day(a: Instant, b: Instant, tz: Optional[tzinfo] = None) -> bool:
    return local_day_key(a, tz) == local_day_key(b, tz)


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def parse_month_key(key: str) -> tuple[int, int]:
    year, month = key.split("-")
    return int(year), int(month)


def trailing_days(now: Instant, n: int, tz: Optional[tzinfo] = None) -> list[date]:
    """The ``n`` local days ending with the day of ``now``, oldest first."""
    today = local_day_key(now, tz)
    return [today - timedelta(days=i) for i in reversed(range(n))]


def trailing_months(now: Instant, n: int, tz: Optional[tzinfo] = None) -> list[tuple[int, int]]:
    """The ``n`` (year, month) pairs ending with the month of ``now``, oldest first."""
    year, month = local_month_key(now, tz)
    first = date(year, month, 1)
    months = (first - relativedelta(months=i) for i in reversed(range(n)))
    return [(d.year, d.month) for d in months]


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    d = date(year, month, 1) + relativedelta(months=offset)
    return d.year, d.month
