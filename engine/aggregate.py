"""Rollups over a transaction log.

Income and expense are kept as separate non-negative sums; the net balance
is only ever a subtraction of the two. Order of the input is irrelevant,
every date check goes through the local-day key.
"""

from collections import defaultdict
from datetime import date, tzinfo
from functools import reduce
from typing import Callable, Iterable, NamedTuple, Optional

from engine import config
from engine.dates import Instant, local_day_key, local_month_key
from engine.domain import EXPENSE, INCOME, Category, Saving, Transaction
from engine.functional import safe_category

OTHER = "Other"

Predicate = Callable[[Transaction], bool]


class Totals(NamedTuple):
    income: float
    expense: float


class BreakdownRow(NamedTuple):
    key: str                      # category id, "" for the Other bucket
    name: str
    amount: float
    share: float                  # percent of all expense
    category: Optional[Category]


class DashboardStats(NamedTuple):
    monthly_income: float
    monthly_expense: float
    today_expense: float
    total_income: float
    total_expense: float
    category_spend: dict          # category id -> current month expense

    @property
    def balance(self) -> float:
        return self.total_income - self.total_expense


def is_expense(t: Transaction) -> bool:
    return t.type == EXPENSE


def is_income(t: Transaction) -> bool:
    return t.type == INCOME


def on_local_day(day: date, tz: Optional[tzinfo] = None) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return local_day_key(t.date, tz) == day

    return _filter


def in_local_month(year: int, month: int, tz: Optional[tzinfo] = None) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return local_month_key(t.date, tz) == (year, month)

    return _filter


def aggregate(trans: Iterable[Transaction], predicate: Optional[Predicate] = None) -> Totals:
    income = expense = 0.0
    for t in trans:
        if predicate is not None and not predicate(t):
            continue
        if t.type == INCOME:
            income += t.amount
        elif t.type == EXPENSE:
            expense += t.amount
    return Totals(income, expense)


def balance(trans: Iterable[Transaction]) -> float:
    return reduce(
        lambda acc, t: acc + t.amount if t.type == INCOME else acc - t.amount if t.type == EXPENSE else acc,
        trans,
        0.0,
    )


def expense_by_category(trans: Iterable[Transaction], cats: tuple[Category, ...]) -> dict[str, float]:
    """Expense per existing category. Spend on deleted categories is left out."""
    known = {c.id for c in cats}
    totals: dict[str, float] = defaultdict(float)
    for t in trans:
        if t.type == EXPENSE and t.category_id in known:
            totals[t.category_id] += t.amount
    return dict(totals)


def category_breakdown(trans: Iterable[Transaction], cats: tuple[Category, ...]) -> list[BreakdownRow]:
    """Expense per category for display, largest first.

    Spend on deleted categories is pooled into one "Other" row so the rows
    always add up to the total expense. Ties are ordered by category id with
    "Other" after real categories.
    """
    totals: dict[str, float] = defaultdict(float)
    resolved: dict[str, Optional[Category]] = {}
    for t in trans:
        if t.type != EXPENSE:
            continue
        cat = safe_category(cats, t.category_id).get_or_else(None)
        key = cat.id if cat is not None else ""
        resolved[key] = cat
        totals[key] += t.amount

    grand_total = sum(totals.values())
    rows = []
    for key, amount in totals.items():
        cat = resolved[key]
        rows.append(BreakdownRow(
            key=key,
            name=cat.name if cat is not None else OTHER,
            amount=amount,
            share=amount / grand_total * 100 if grand_total else 0.0,
            category=cat,
        ))
    rows.sort(key=lambda r: (-r.amount, r.category is None, r.key))
    return rows


def dashboard_stats(trans: Iterable[Transaction], now: Instant, tz: Optional[tzinfo] = None) -> DashboardStats:
    """Headline numbers for the day and month containing ``now``."""
    today = local_day_key(now, tz)
    this_month = (today.year, today.month)

    monthly_income = monthly_expense = today_expense = 0.0
    total_income = total_expense = 0.0
    category_spend: dict[str, float] = defaultdict(float)

    for t in trans:
        day = local_day_key(t.date, tz)
        in_month = (day.year, day.month) == this_month
        if t.type == INCOME:
            total_income += t.amount
            if in_month:
                monthly_income += t.amount
        elif t.type == EXPENSE:
            total_expense += t.amount
            if day == today:
                today_expense += t.amount
            if in_month:
                monthly_expense += t.amount
                category_spend[t.category_id] += t.amount

    return DashboardStats(
        monthly_income=monthly_income,
        monthly_expense=monthly_expense,
        today_expense=today_expense,
        total_income=total_income,
        total_expense=total_expense,
        category_spend=dict(category_spend),
    )


def recent(trans: tuple[Transaction, ...], limit: int = config.RECENT_LIMIT) -> tuple[Transaction, ...]:
    return trans[: max(0, limit)]


def savings_for_month(savings: Iterable[Saving], month: str) -> tuple[Saving, ...]:
    return tuple(s for s in savings if s.month == month)


def savings_total(savings: Iterable[Saving], month: str) -> float:
    return sum(s.amount for s in savings if s.month == month)
