from dataclasses import replace
from zoneinfo import ZoneInfo

from engine.domain import EXPENSE, AppState, Budget, Category, Transaction
from engine.events import (
    BUDGET_ALERT,
    DAILY_LIMIT_EXCEEDED,
    TRANSACTION_ADDED,
    TRANSACTION_UPDATED,
    Event,
    EventBus,
)
from engine.store import StateStore

UTC = ZoneInfo("UTC")
NOW = "2024-03-01T12:00:00Z"


def make_tx(id, amount, cat="food", ts="2024-03-01T10:00:00Z"):
    return Transaction(id=id, amount=amount, type=EXPENSE, date=ts, category_id=cat)


def make_store():
    state = AppState(
        categories=(Category("food", "Food", budget=600), Category("bills", "Bills")),
        budget=Budget(daily_limit=400),
    )
    store = StateStore(state, tz=UTC)
    seen = []
    for name in (TRANSACTION_ADDED, TRANSACTION_UPDATED, BUDGET_ALERT, DAILY_LIMIT_EXCEEDED):
        store.bus.subscribe(name, seen.append)
    return store, seen


def names(events):
    return [e.name for e in events]


def test_event_bus_subscribe_publish_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event: Event):
        calls.append(event)
        return {"ok": True}

    bus.subscribe(TRANSACTION_ADDED, handler)
    assert bus.publish(TRANSACTION_ADDED, {"amount": 10}, NOW) == [{"ok": True}]
    assert calls[0].ts == "2024-03-01T12:00:00+00:00"
    assert calls[0].payload == {"amount": 10}

    bus.unsubscribe(TRANSACTION_ADDED, handler)
    assert bus.publish(TRANSACTION_ADDED, {"amount": 20}, NOW) == []
    assert len(calls) == 1


def test_save_transaction_adds_and_publishes():
    store, seen = make_store()
    result = store.save_transaction(make_tx("t1", 100, "bills"), NOW)
    assert result.is_right()
    assert [t.id for t in store.snapshot().transactions] == ["t1"]
    assert names(seen) == [TRANSACTION_ADDED]
    assert seen[0].payload["id"] == "t1"


def test_invalid_transaction_leaves_state_alone():
    store, seen = make_store()
    before = store.snapshot()
    result = store.save_transaction(make_tx("t1", -5), NOW)
    assert result.is_left()
    assert store.snapshot() is before
    assert seen == []


def test_saving_existing_id_replaces():
    store, seen = make_store()
    store.save_transaction(make_tx("t1", 100, "bills"), NOW)
    store.save_transaction(make_tx("t1", 150, "bills"), NOW)
    assert [t.amount for t in store.snapshot().transactions] == [150]
    assert names(seen) == [TRANSACTION_ADDED, TRANSACTION_UPDATED]


def test_editing_keeps_position_and_rejects_invalid_edit():
    store, seen = make_store()
    store.save_transaction(make_tx("t1", 100, "bills"), NOW)
    store.save_transaction(make_tx("t2", 50, "bills"), NOW)
    original = store.snapshot().transactions[1]
    edited = replace(original, amount=80, note="corrected", category_id="food")
    assert store.save_transaction(edited, NOW).is_right()
    assert [t.id for t in store.snapshot().transactions] == ["t2", "t1"]
    assert store.snapshot().transactions[1] == edited
    assert store.save_transaction(replace(edited, amount=0), NOW).is_left()
    assert store.snapshot().transactions[1] == edited
    assert names(seen) == [TRANSACTION_ADDED, TRANSACTION_ADDED, TRANSACTION_UPDATED]


def test_budget_alert_published_once_when_category_turns_critical():
    store, seen = make_store()
    store.save_transaction(make_tx("t1", 300), NOW)
    assert BUDGET_ALERT not in names(seen)

    store.save_transaction(make_tx("t2", 200), NOW)
    alerts = [e for e in seen if e.name == BUDGET_ALERT]
    assert len(alerts) == 1
    assert alerts[0].payload["category_id"] == "food"
    assert not alerts[0].payload["exceeded"]

    store.save_transaction(make_tx("t3", 10, ts="2024-02-01T10:00:00Z"), NOW)
    assert len([e for e in seen if e.name == BUDGET_ALERT]) == 1


def test_daily_limit_event_fires_on_crossing_only():
    store, seen = make_store()
    store.save_transaction(make_tx("t1", 300, "bills"), NOW)
    store.save_transaction(make_tx("t2", 200, "bills"), NOW)
    store.save_transaction(make_tx("t3", 50, "bills"), NOW)
    exceeded = [e for e in seen if e.name == DAILY_LIMIT_EXCEEDED]
    assert len(exceeded) == 1
    assert exceeded[0].payload["over_by"] == 100


def test_delete_transaction():
    store, _ = make_store()
    store.save_transaction(make_tx("t1", 100, "bills"), NOW)
    store.delete_transaction("t1")
    assert store.snapshot().transactions == ()


def test_pin_lock_cycle():
    store, _ = make_store()
    assert not store.locked
    assert store.enable_pin("12").is_left()
    assert store.enable_pin("1234").is_right()

    store.lock()
    assert store.locked
    assert not store.unlock("0000")
    assert store.locked
    assert store.unlock("1234")
    assert not store.locked

    store.disable_pin()
    store.lock()
    assert not store.locked
    assert store.snapshot().pin is None


def test_update_with_functional_updater():
    store, _ = make_store()
    store.update(lambda s: AppState(categories=s.categories, budget=Budget(total_monthly=5)))
    assert store.snapshot().budget.total_monthly == 5
