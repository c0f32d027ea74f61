import logging
from datetime import tzinfo
from typing import Callable, Optional

from engine import transforms
from engine.dates import Instant
from engine.domain import AppState, Transaction
from engine.events import (
    BUDGET_ALERT,
    DAILY_LIMIT_EXCEEDED,
    TRANSACTION_ADDED,
    TRANSACTION_UPDATED,
    EventBus,
)
from engine.functional import Either, Right
from engine.memo import snapshot_budget

logger = logging.getLogger(__name__)


class StateStore:
    """Holds the canonical AppState for the application controller.

    Views read immutable snapshots; every change goes through ``update`` with
    a function from old state to new state.
    """

    def __init__(self, state: Optional[AppState] = None, bus: Optional[EventBus] = None,
                 tz: Optional[tzinfo] = None):
        self._state = state if state is not None else AppState()
        self.bus = bus if bus is not None else EventBus()
        self.tz = tz
        self.locked = self._state.pin is not None

    def snapshot(self) -> AppState:
        return self._state

    def update(self, updater: Callable[[AppState], AppState]) -> AppState:
        self._state = updater(self._state)
        return self._state

    def unlock(self, attempt: str) -> bool:
        if transforms.verify_pin(self._state, attempt):
            self.locked = False
        else:
            logger.warning("Rejected PIN attempt")
        return not self.locked

    def lock(self) -> None:
        self.locked = self._state.pin is not None

    def enable_pin(self, pin: str) -> Either[dict, str]:
        result = transforms.validate_pin(pin)
        if result.is_right():
            self.update(lambda s: transforms.set_pin(s, pin))
        return result

    def disable_pin(self) -> None:
        self.update(transforms.clear_pin)
        self.locked = False

    def save_transaction(self, t: Transaction, now: Instant) -> Either[dict, Transaction]:
        """Validate, add or replace by id, then publish what changed.

        Budget alerts are published only for categories that became critical
        with this change, and for a daily limit that was not exceeded before.
        """
        result = transforms.validate_transaction(t)
        if result.is_left():
            logger.warning("Rejected transaction %s: %s", t.id, result.get_error()["message"])
            return result

        before = snapshot_budget(self._state, now, self.tz)
        existing = any(old.id == t.id for old in self._state.transactions)
        if existing:
            self.update(lambda s: transforms.replace_transaction(s, t))
        else:
            self.update(lambda s: transforms.add_transaction(s, t))
        after = snapshot_budget(self._state, now, self.tz)

        self.bus.publish(
            TRANSACTION_UPDATED if existing else TRANSACTION_ADDED,
            {"id": t.id, "amount": t.amount, "type": t.type, "category_id": t.category_id},
            now,
        )

        already_critical = {a.category.id for a in before.critical}
        for alert in after.critical:
            if alert.category.id in already_critical:
                continue
            self.bus.publish(BUDGET_ALERT, {
                "category_id": alert.category.id,
                "name": alert.category.name,
                "spent": alert.spent,
                "limit": alert.category.budget,
                "usage": alert.usage,
                "exceeded": alert.exceeded,
            }, now)

        if after.daily.exceeded and not before.daily.exceeded:
            logger.info("Daily limit exceeded by %.2f", after.daily.over_by)
            self.bus.publish(DAILY_LIMIT_EXCEEDED, {
                "spent": after.daily.spent,
                "limit": after.daily.limit,
                "over_by": after.daily.over_by,
            }, now)

        return Right(t)

    def delete_transaction(self, tx_id: str) -> None:
        self.update(lambda s: transforms.delete_transaction(s, tx_id))
        logger.debug("Deleted transaction %s", tx_id)
