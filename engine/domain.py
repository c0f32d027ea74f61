from dataclasses import dataclass, field
from typing import Optional

EXPENSE = "EXPENSE"
INCOME = "INCOME"
ALL = "ALL"

TRANSACTION_TYPES = (EXPENSE, INCOME)
PAYMENT_METHODS = ("Cash", "Card", "bKash", "Nagad", "Bank")


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float        # always positive, direction comes from type
    type: str            # EXPENSE or INCOME
    date: str            # ISO-8601 instant, e.g. "2024-03-01T10:00:00Z"
    category_id: str     # may point to a deleted category
    payment_method: str = "Cash"
    note: str = ""
    location: str = ""


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str = "📦"
    color: str = "#10B981"
    is_private: bool = False  # enforced by the UI layer
    budget: float = 0.0       # monthly limit, 0 = unlimited


# Global limits, 0 disables a limit
@dataclass(frozen=True)
class Budget:
    total_monthly: float = 0.0
    daily_limit: float = 0.0


@dataclass(frozen=True)
class Saving:
    id: str
    amount: float
    month: str      # "YYYY-MM"
    note: str = ""
    date: str = ""


DEFAULT_CATEGORIES = (
    Category("food", "Food", "🍔", "#F59E0B"),
    Category("transport", "Transport", "🚗", "#3B82F6"),
    Category("shopping", "Shopping", "🛍️", "#EC4899"),
    Category("bills", "Bills", "📄", "#EF4444"),
    Category("health", "Health", "🏥", "#14B8A6"),
    Category("entertainment", "Entertainment", "🎬", "#8B5CF6"),
    Category("salary", "Salary", "💰", "#10B981"),
)


@dataclass(frozen=True)
class AppState:
    transactions: tuple[Transaction, ...] = ()   # most recent first
    categories: tuple[Category, ...] = DEFAULT_CATEGORIES
    budget: Budget = field(default_factory=Budget)
    savings: tuple[Saving, ...] = ()
    pin: Optional[str] = None
    selected_month: str = ""
