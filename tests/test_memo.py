from datetime import date
from zoneinfo import ZoneInfo

from engine.aggregate import category_breakdown, dashboard_stats
from engine.domain import EXPENSE, INCOME, AppState, Budget, Category, Transaction
from engine.memo import (
    cached_breakdown,
    cached_dashboard_stats,
    cached_series,
    clear_caches,
    snapshot_budget,
    snapshot_series,
    snapshot_stats,
)
from engine.trends import DAILY, MONTHLY, WEEKLY, build_series

UTC = ZoneInfo("UTC")


def make_state():
    return AppState(
        transactions=(
            Transaction("t1", 500, EXPENSE, "2024-03-01T10:00:00Z", "food"),
            Transaction("t2", 1500, INCOME, "2024-03-01T09:00:00Z", "salary"),
            Transaction("t3", 200, EXPENSE, "2024-02-28T09:00:00Z", "gone"),
        ),
        categories=(Category("food", "Food", budget=600), Category("salary", "Salary")),
        budget=Budget(total_monthly=1000, daily_limit=400),
    )


def test_cached_values_equal_uncached():
    clear_caches()
    state = make_state()
    now = "2024-03-01T12:00:00Z"
    assert snapshot_stats(state, now, UTC) == dashboard_stats(state.transactions, now, UTC)
    assert list(cached_series(state.transactions, WEEKLY, now, UTC)) == build_series(state.transactions, WEEKLY, now, UTC)
    assert list(cached_breakdown(state.transactions, state.categories)) == category_breakdown(
        state.transactions, state.categories
    )


def test_same_day_reuses_cached_stats():
    clear_caches()
    state = make_state()
    snapshot_stats(state, "2024-03-01T08:00:00Z", UTC)
    snapshot_stats(state, "2024-03-01T22:00:00Z", UTC)
    info = cached_dashboard_stats.cache_info()
    assert info.hits == 1
    assert info.misses == 1


def test_cache_rolls_over_with_the_day():
    clear_caches()
    state = make_state()
    assert snapshot_stats(state, "2024-03-01T12:00:00Z", UTC).today_expense == 500
    assert snapshot_stats(state, "2024-03-02T12:00:00Z", UTC).today_expense == 0


def test_changed_snapshot_is_recomputed():
    clear_caches()
    state = make_state()
    before = cached_dashboard_stats(state.transactions, date(2024, 3, 1), UTC)
    extra = Transaction("t4", 100, EXPENSE, "2024-03-01T11:00:00Z", "food")
    after = cached_dashboard_stats((extra,) + state.transactions, date(2024, 3, 1), UTC)
    assert after.today_expense == before.today_expense + 100


def test_snapshot_budget():
    clear_caches()
    report = snapshot_budget(make_state(), "2024-03-01T12:00:00Z", UTC)
    assert report.daily.exceeded
    assert report.monthly.usage == 50
    assert [a.category.id for a in report.critical] == ["food"]


def test_daily_and_monthly_series_are_cached_per_local_day():
    clear_caches()
    trans = make_state().transactions
    for granularity in (DAILY, MONTHLY):
        morning = snapshot_series(trans, granularity, "2024-03-01T08:00:00Z", UTC)
        evening = snapshot_series(trans, granularity, "2024-03-01T22:00:00Z", UTC)
        assert morning == evening
        assert list(evening) == build_series(trans, granularity, "2024-03-01T22:00:00Z", UTC)
    info = cached_series.cache_info()
    assert info.hits == 2
    assert info.misses == 2


def test_weekly_series_follows_the_exact_instant():
    clear_caches()
    trans = make_state().transactions
    snapshot_series(trans, WEEKLY, "2024-03-08T08:00:00Z", UTC)
    later = snapshot_series(trans, WEEKLY, "2024-03-08T11:00:00Z", UTC)
    assert cached_series.cache_info().misses == 2
    # t1 at 10:00 on the 1st has left the newest week by 11:00 on the 8th
    assert later[-1].amount == 0
    assert later[-2].amount == 700
