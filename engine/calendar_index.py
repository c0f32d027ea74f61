import calendar
from datetime import date, tzinfo
from typing import Iterable, NamedTuple, Optional

from engine import config
from engine.dates import local_day_key
from engine.domain import EXPENSE, INCOME, Transaction


class DayAggregate(NamedTuple):
    income: float
    expense: float
    transactions: tuple[Transaction, ...]


EMPTY_DAY = DayAggregate(0.0, 0.0, ())


def month_grid(year: int, month: int) -> list[date]:
    _, days = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, days + 1)]


def leading_blanks(year: int, month: int) -> int:
    """Empty cells before day 1 in a Sunday-first 7-column grid."""
    return (date(year, month, 1).weekday() + 1) % 7


def grid_cells(year: int, month: int) -> list[Optional[date]]:
    return [None] * leading_blanks(year, month) + month_grid(year, month)


def _collect(trans: Iterable[Transaction]) -> DayAggregate:
    income = expense = 0.0
    txs = []
    for t in trans:
        txs.append(t)
        if t.type == INCOME:
            income += t.amount
        elif t.type == EXPENSE:
            expense += t.amount
    return DayAggregate(income, expense, tuple(txs))


def day_aggregate(trans: Iterable[Transaction], day: date, tz: Optional[tzinfo] = None) -> DayAggregate:
    return _collect(t for t in trans if local_day_key(t.date, tz) == day)


def month_index(
    trans: Iterable[Transaction], year: int, month: int, tz: Optional[tzinfo] = None
) -> dict[date, DayAggregate]:
    """Every day of the month mapped to its totals, in one pass over ``trans``."""
    buckets: dict[date, list[Transaction]] = {d: [] for d in month_grid(year, month)}
    for t in trans:
        key = local_day_key(t.date, tz)
        if key in buckets:
            buckets[key].append(t)
    return {d: _collect(txs) if txs else EMPTY_DAY for d, txs in buckets.items()}


def intensity(expense: float) -> int:
    """Heat tier 0-3 for a day's expense."""
    return sum(1 for threshold in config.INTENSITY_THRESHOLDS if expense > threshold)
