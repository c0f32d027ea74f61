"""Expense trend series at three granularities.

Daily and monthly buckets match on local calendar keys. Weekly buckets
match on the raw instant against a 7-day range ending at ``now``, so a
weekly boundary falls at the time of day of ``now`` rather than at
midnight. Moving a weekly boundary changes which transactions land in the
edge buckets; keep the two rules as they are.
"""

from datetime import date, timedelta, timezone, tzinfo
from typing import Iterable, NamedTuple, Optional

from engine import config
from engine.dates import Instant, local_day_key, local_month_key, to_local, trailing_days, trailing_months
from engine.domain import EXPENSE, Transaction

DAILY = "Daily"
WEEKLY = "Weekly"
MONTHLY = "Monthly"

GRANULARITIES = (DAILY, WEEKLY, MONTHLY)


class SeriesPoint(NamedTuple):
    label: str
    amount: float


def _daily(expenses: list[Transaction], now: Instant, tz: Optional[tzinfo]) -> list[SeriesPoint]:
    days = trailing_days(now, config.DAILY_BUCKETS, tz)
    totals = {d: 0.0 for d in days}
    for t in expenses:
        key = local_day_key(t.date, tz)
        if key in totals:
            totals[key] += t.amount
    return [SeriesPoint(d.strftime("%a"), totals[d]) for d in days]


def _weekly(expenses: list[Transaction], now: Instant, tz: Optional[tzinfo]) -> list[SeriesPoint]:
    end_all = to_local(now, tz)
    n = config.WEEKLY_BUCKETS
    points = []
    for i in reversed(range(n)):
        # 7-day steps in wall time, membership by instant
        end_wall = end_all - timedelta(days=7 * i)
        end = end_wall.astimezone(timezone.utc)
        start = (end_wall - timedelta(days=7)).astimezone(timezone.utc)
        newest = i == 0
        amount = 0.0
        for t in expenses:
            ts = to_local(t.date, tz).astimezone(timezone.utc)
            if start <= ts < end or (newest and ts == end):
                amount += t.amount
        points.append(SeriesPoint(f"W{n - i}", amount))
    return points


def _monthly(expenses: list[Transaction], now: Instant, tz: Optional[tzinfo]) -> list[SeriesPoint]:
    months = trailing_months(now, config.MONTHLY_BUCKETS, tz)
    totals = {m: 0.0 for m in months}
    for t in expenses:
        key = local_month_key(t.date, tz)
        if key in totals:
            totals[key] += t.amount
    return [SeriesPoint(date(year, month, 1).strftime("%b"), totals[(year, month)]) for year, month in months]


_BUILDERS = {
    DAILY: _daily,
    WEEKLY: _weekly,
    MONTHLY: _monthly,
}


def build_series(
    trans: Iterable[Transaction],
    granularity: str,
    now: Instant,
    tz: Optional[tzinfo] = None,
) -> list[SeriesPoint]:
    """Expense totals per bucket, oldest first.

    Always 7 (daily), 4 (weekly) or 6 (monthly) points; empty buckets are 0.
    Income never counts.
    """
    try:
        builder = _BUILDERS[granularity]
    except KeyError:
        raise ValueError(f"Unknown granularity: {granularity!r}") from None
    expenses = [t for t in trans if t.type == EXPENSE]
    return builder(expenses, now, tz)


def period_total(series: Iterable[SeriesPoint]) -> float:
    return sum(p.amount for p in series)
