import logging
from typing import Callable, Dict, List, NamedTuple

from engine.dates import Instant, parse_instant

logger = logging.getLogger(__name__)

__all__ = [
    'Event', 'EventBus',
    'TRANSACTION_ADDED', 'TRANSACTION_UPDATED', 'BUDGET_ALERT', 'DAILY_LIMIT_EXCEEDED',
]

TRANSACTION_ADDED = "TRANSACTION_ADDED"
TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
BUDGET_ALERT = "BUDGET_ALERT"
DAILY_LIMIT_EXCEEDED = "DAILY_LIMIT_EXCEEDED"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event], object]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict, now: Instant) -> list:
        """Deliver to every subscriber of ``name`` and return their results.

        ``now`` stamps the event; the bus never reads the clock.
        """
        handlers = self._subscribers.get(name, [])
        if not handlers:
            return []
        event = Event(name=name, ts=parse_instant(now).isoformat(), payload=payload)
        logger.debug("Publishing %s to %d handler(s)", name, len(handlers))
        return [handler(event) for handler in list(handlers)]
