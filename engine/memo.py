"""Cached views over state snapshots.

Snapshots are tuples of frozen dataclasses, so the arguments themselves are
the content fingerprint. Returned objects are shared between callers and
must be treated as read-only.
"""

from datetime import date, datetime, time, tzinfo
from functools import lru_cache
from typing import Optional

from engine.aggregate import DashboardStats, category_breakdown, dashboard_stats
from engine.budget import BudgetReport, report_from_stats
from engine.dates import Instant, local_day_key
from engine.domain import AppState, Category, Transaction
from engine.trends import WEEKLY, SeriesPoint, build_series


@lru_cache(maxsize=64)
def cached_dashboard_stats(trans: tuple[Transaction, ...], today: date, tz: Optional[tzinfo] = None) -> DashboardStats:
    # stats only depend on the local day of "now"
    return dashboard_stats(trans, datetime.combine(today, time(12)), tz)


@lru_cache(maxsize=64)
def cached_series(
    trans: tuple[Transaction, ...], granularity: str, now: Instant, tz: Optional[tzinfo] = None
) -> tuple[SeriesPoint, ...]:
    return tuple(build_series(trans, granularity, now, tz))


@lru_cache(maxsize=64)
def cached_breakdown(trans: tuple[Transaction, ...], cats: tuple[Category, ...]):
    return tuple(category_breakdown(trans, cats))


def snapshot_stats(state: AppState, now: Instant, tz: Optional[tzinfo] = None) -> DashboardStats:
    return cached_dashboard_stats(state.transactions, local_day_key(now, tz), tz)


def snapshot_series(
    trans: tuple[Transaction, ...], granularity: str, now: Instant, tz: Optional[tzinfo] = None
) -> tuple[SeriesPoint, ...]:
    if granularity == WEEKLY:
        return cached_series(trans, granularity, now, tz)
    # daily and monthly buckets only depend on the local day of "now"
    return cached_series(trans, granularity, datetime.combine(local_day_key(now, tz), time(12)), tz)


def snapshot_budget(state: AppState, now: Instant, tz: Optional[tzinfo] = None) -> BudgetReport:
    return report_from_stats(snapshot_stats(state, now, tz), state.budget, state.categories)


def clear_caches() -> None:
    cached_dashboard_stats.cache_clear()
    cached_series.cache_clear()
    cached_breakdown.cache_clear()
