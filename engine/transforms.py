"""State transitions and the persistence boundary.

Everything here returns a new ``AppState``; nothing mutates in place.
Validation of user input happens here, before anything reaches the
derivation engine.
"""

import json
import logging
import math
from dataclasses import replace
from typing import Any
from uuid import uuid4

from engine.dates import parse_instant
from engine.domain import (
    DEFAULT_CATEGORIES,
    EXPENSE,
    INCOME,
    PAYMENT_METHODS,
    TRANSACTION_TYPES,
    AppState,
    Budget,
    Category,
    Saving,
    Transaction,
)
from engine.functional import Either, Left, Right

logger = logging.getLogger(__name__)

RESET_ALL = "ALL"
RESET_EXPENSES = "EXPENSES"
RESET_INCOME = "INCOME"
RESET_BALANCE = "BALANCE"
RESET_CATEGORIES = "CATEGORIES"

BUDGET_FIELDS = ("total_monthly", "daily_limit")


def new_id() -> str:
    return uuid4().hex[:9]


def validate_transaction(t: Transaction) -> Either[dict, Transaction]:
    if isinstance(t.amount, bool) or not isinstance(t.amount, (int, float)) \
            or not math.isfinite(t.amount) or t.amount <= 0:
        return Left({
            "error": "invalid_amount",
            "message": f"Amount must be a positive number, got {t.amount!r}",
            "amount": t.amount,
        })
    if t.type not in TRANSACTION_TYPES:
        return Left({
            "error": "invalid_type",
            "message": f"Unknown transaction type {t.type!r}",
            "type": t.type,
        })
    if t.payment_method not in PAYMENT_METHODS:
        return Left({
            "error": "invalid_payment_method",
            "message": f"Unknown payment method {t.payment_method!r}",
            "payment_method": t.payment_method,
        })
    try:
        parse_instant(t.date)
    except (TypeError, ValueError):
        return Left({
            "error": "invalid_date",
            "message": f"Malformed date {t.date!r}",
            "date": t.date,
        })
    return Right(t)


def validate_pin(pin: str) -> Either[dict, str]:
    if len(pin) == 4 and pin.isascii() and pin.isdigit():
        return Right(pin)
    return Left({"error": "invalid_pin", "message": "PIN must be exactly 4 digits"})


def add_transaction(state: AppState, t: Transaction) -> AppState:
    return replace(state, transactions=(t,) + state.transactions)


def replace_transaction(state: AppState, t: Transaction) -> AppState:
    return replace(state, transactions=tuple(t if old.id == t.id else old for old in state.transactions))


def delete_transaction(state: AppState, tx_id: str) -> AppState:
    return replace(state, transactions=tuple(t for t in state.transactions if t.id != tx_id))


def upsert_category(state: AppState, cat: Category) -> AppState:
    if any(c.id == cat.id for c in state.categories):
        cats = tuple(cat if c.id == cat.id else c for c in state.categories)
    else:
        cats = state.categories + (cat,)
    return replace(state, categories=cats)


def delete_category(state: AppState, cat_id: str) -> AppState:
    # transactions keep their dangling category_id
    return replace(state, categories=tuple(c for c in state.categories if c.id != cat_id))


def update_budget(state: AppState, field: str, value: float) -> AppState:
    if field not in BUDGET_FIELDS:
        raise ValueError(f"Unknown budget field: {field!r}")
    if not math.isfinite(value) or value < 0:
        value = 0.0
    return replace(state, budget=replace(state.budget, **{field: value}))


def add_saving(state: AppState, s: Saving) -> AppState:
    return replace(state, savings=(s,) + state.savings)


def delete_saving(state: AppState, saving_id: str) -> AppState:
    return replace(state, savings=tuple(s for s in state.savings if s.id != saving_id))


def select_month(state: AppState, key: str) -> AppState:
    return replace(state, selected_month=key)


def set_pin(state: AppState, pin: str) -> AppState:
    return replace(state, pin=pin)


def clear_pin(state: AppState) -> AppState:
    return replace(state, pin=None)


def verify_pin(state: AppState, attempt: str) -> bool:
    return state.pin is None or attempt == state.pin


def reset_state(state: AppState, scope: str) -> AppState:
    if scope == RESET_ALL:
        return AppState(selected_month=state.selected_month)
    if scope == RESET_EXPENSES:
        return replace(state, transactions=tuple(t for t in state.transactions if t.type != EXPENSE))
    if scope == RESET_INCOME:
        return replace(state, transactions=tuple(t for t in state.transactions if t.type != INCOME))
    if scope == RESET_BALANCE:
        return replace(state, transactions=())
    if scope == RESET_CATEGORIES:
        return replace(state, categories=DEFAULT_CATEGORIES)
    raise ValueError(f"Unknown reset scope: {scope!r}")


# JSON keys follow the exported backup format
_TX_KEYS = {
    "id": "id",
    "amount": "amount",
    "type": "type",
    "date": "date",
    "categoryId": "category_id",
    "paymentMethod": "payment_method",
    "note": "note",
    "location": "location",
}
_CAT_KEYS = {
    "id": "id",
    "name": "name",
    "icon": "icon",
    "color": "color",
    "isPrivate": "is_private",
    "budget": "budget",
}
_SAVING_KEYS = {"id": "id", "amount": "amount", "month": "month", "note": "note", "date": "date"}


def _load(cls, data: dict, keys: dict):
    return cls(**{attr: data[k] for k, attr in keys.items() if data.get(k) is not None})


def _dump(obj, keys: dict) -> dict:
    return {k: getattr(obj, attr) for k, attr in keys.items()}


def state_from_dict(data: dict[str, Any]) -> AppState:
    budget = data.get("budget") or {}
    categories = data.get("categories")
    return AppState(
        transactions=tuple(_load(Transaction, t, _TX_KEYS) for t in data.get("transactions", [])),
        categories=(
            tuple(_load(Category, c, _CAT_KEYS) for c in categories)
            if categories is not None
            else DEFAULT_CATEGORIES
        ),
        budget=Budget(
            total_monthly=float(budget.get("totalMonthly") or 0),
            daily_limit=float(budget.get("dailyLimit") or 0),
        ),
        savings=tuple(_load(Saving, s, _SAVING_KEYS) for s in data.get("savings", [])),
        pin=data.get("pin"),
        selected_month=data.get("selectedMonth", ""),
    )


def state_to_dict(state: AppState) -> dict[str, Any]:
    return {
        "transactions": [_dump(t, _TX_KEYS) for t in state.transactions],
        "categories": [_dump(c, _CAT_KEYS) for c in state.categories],
        "budget": {
            "totalMonthly": state.budget.total_monthly,
            "dailyLimit": state.budget.daily_limit,
        },
        "savings": [_dump(s, _SAVING_KEYS) for s in state.savings],
        "pin": state.pin,
        "selectedMonth": state.selected_month,
    }


def load_state(path: str) -> AppState:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    state = state_from_dict(data)
    logger.info(
        "Loaded state from %s: %d transactions, %d categories",
        path, len(state.transactions), len(state.categories),
    )
    return state


def dump_state(state: AppState, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(state), f, ensure_ascii=False, indent=2)
    logger.info("Saved state to %s", path)
