from datetime import tzinfo
from typing import NamedTuple, Optional

from engine import config
from engine.aggregate import DashboardStats, dashboard_stats
from engine.dates import Instant
from engine.domain import AppState, Budget, Category
from engine.functional import Either, Left, Right

DISABLED = "disabled"
OK = "ok"
WARNING = "warning"
EXCEEDED = "exceeded"


class LimitUsage(NamedTuple):
    spent: float
    limit: float
    usage: float   # percent, 0 when the limit is disabled
    tier: str

    @property
    def enabled(self) -> bool:
        return self.tier != DISABLED

    @property
    def exceeded(self) -> bool:
        return self.tier == EXCEEDED

    @property
    def remaining(self) -> float:
        return max(0.0, self.limit - self.spent) if self.enabled else 0.0

    @property
    def over_by(self) -> float:
        return max(0.0, self.spent - self.limit) if self.enabled else 0.0


class CategoryAlert(NamedTuple):
    category: Category
    spent: float
    usage: float

    @property
    def exceeded(self) -> bool:
        return self.usage >= config.EXCEEDED_THRESHOLD


class BudgetReport(NamedTuple):
    daily: LimitUsage
    monthly: LimitUsage
    critical: list[CategoryAlert]


def usage_ratio(spent: float, limit: float) -> float:
    if limit <= 0:
        return 0.0
    return spent / limit * 100


def classify(usage: float, enabled: bool = True) -> str:
    if not enabled:
        return DISABLED
    if usage >= config.EXCEEDED_THRESHOLD:
        return EXCEEDED
    if usage >= config.WARNING_THRESHOLD:
        return WARNING
    return OK


def limit_usage(spent: float, limit: float) -> LimitUsage:
    usage = usage_ratio(spent, limit)
    return LimitUsage(spent, limit, usage, classify(usage, limit > 0))


def category_alerts(cats: tuple[Category, ...], category_spend: dict) -> list[CategoryAlert]:
    """Budgeted categories at or above the warning threshold, worst first."""
    alerts = []
    for c in cats:
        if c.budget <= 0:
            continue
        spent = category_spend.get(c.id, 0.0)
        usage = usage_ratio(spent, c.budget)
        if usage >= config.WARNING_THRESHOLD:
            alerts.append(CategoryAlert(c, spent, usage))
    alerts.sort(key=lambda a: (-a.usage, a.category.id))
    return alerts


def check_daily_limit(stats: DashboardStats, budget: Budget) -> Either[dict, LimitUsage]:
    daily = limit_usage(stats.today_expense, budget.daily_limit)
    if daily.exceeded:
        return Left({
            "error": "daily_limit_exceeded",
            "message": f"Today's budget exceeded by {daily.over_by:,.2f}",
            "spent": daily.spent,
            "limit": daily.limit,
            "over_by": daily.over_by,
        })
    return Right(daily)


def report_from_stats(stats: DashboardStats, budget: Budget, cats: tuple[Category, ...]) -> BudgetReport:
    return BudgetReport(
        daily=limit_usage(stats.today_expense, budget.daily_limit),
        monthly=limit_usage(stats.monthly_expense, budget.total_monthly),
        critical=category_alerts(cats, stats.category_spend),
    )


def evaluate_budget(state: AppState, now: Instant, tz: Optional[tzinfo] = None) -> BudgetReport:
    """Daily, monthly and per-category usage for the day containing ``now``.

    An exceeded daily limit stays exceeded for every ``now`` on the same
    local day and clears once the day changes.
    """
    stats = dashboard_stats(state.transactions, now, tz)
    return report_from_stats(stats, state.budget, state.categories)
