from datetime import date
from zoneinfo import ZoneInfo

import pytest

from engine.calendar_index import (
    day_aggregate,
    grid_cells,
    intensity,
    leading_blanks,
    month_grid,
    month_index,
)
from engine.domain import EXPENSE, INCOME, Transaction

UTC = ZoneInfo("UTC")
DHAKA = ZoneInfo("Asia/Dhaka")


def make_tx(id, amount, type, ts):
    return Transaction(id=id, amount=amount, type=type, date=ts, category_id="food")


@pytest.mark.parametrize("year,month,days", [(2024, 2, 29), (2023, 2, 28), (2024, 4, 30), (2024, 12, 31)])
def test_month_grid_has_every_day(year, month, days):
    grid = month_grid(year, month)
    assert len(grid) == days
    assert grid[0] == date(year, month, 1)
    assert all(d.month == month for d in grid)


@pytest.mark.parametrize("year,month,blanks", [(2024, 3, 5), (2024, 9, 0), (2024, 4, 1), (2024, 6, 6)])
def test_leading_blanks_is_sunday_based_weekday(year, month, blanks):
    assert leading_blanks(year, month) == blanks


def test_grid_cells_pads_first_week():
    cells = grid_cells(2024, 3)
    assert cells[:5] == [None] * 5
    assert cells[5] == date(2024, 3, 1)
    assert len(cells) == 5 + 31


def test_day_aggregate_uses_local_day():
    trans = (
        make_tx("t1", 300, EXPENSE, "2024-03-01T20:00:00Z"),
        make_tx("t2", 1000, INCOME, "2024-03-02T03:00:00Z"),
    )
    dhaka = day_aggregate(trans, date(2024, 3, 2), DHAKA)
    assert (dhaka.income, dhaka.expense) == (1000, 300)
    assert len(dhaka.transactions) == 2

    utc = day_aggregate(trans, date(2024, 3, 2), UTC)
    assert (utc.income, utc.expense) == (1000, 0)


def test_empty_day_is_zero():
    day = day_aggregate((), date(2024, 3, 2), UTC)
    assert (day.income, day.expense, day.transactions) == (0, 0, ())


def test_month_index_matches_day_aggregate():
    trans = (
        make_tx("t1", 300, EXPENSE, "2024-03-01T20:00:00Z"),
        make_tx("t2", 1000, INCOME, "2024-03-15T03:00:00Z"),
        make_tx("t3", 50, EXPENSE, "2024-03-15T05:00:00Z"),
        make_tx("t4", 70, EXPENSE, "2024-04-01T05:00:00Z"),
    )
    index = month_index(trans, 2024, 3, DHAKA)
    assert len(index) == 31
    for day, agg in index.items():
        assert agg == day_aggregate(trans, day, DHAKA)
    assert index[date(2024, 3, 15)].expense == 50


def test_intensity_tiers_are_monotonic():
    assert intensity(0) == 0
    assert intensity(1) == 1
    assert intensity(2000) == 1
    assert intensity(2000.01) == 2
    assert intensity(5000) == 2
    assert intensity(5001) == 3
    values = [0, 10, 1999, 2500, 4999, 7000, 100000]
    tiers = [intensity(v) for v in values]
    assert tiers == sorted(tiers)
