"""
Events - simple synchronous observer registry
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event types published by the store and the refresher"""
    STATE_CHANGED = "state_changed"
    REFRESH_STARTED = "refresh_started"
    REFRESH_COMPLETED = "refresh_completed"
    REFRESH_FAILED = "refresh_failed"
    REFRESH_CANCELLED = "refresh_cancelled"
    PLAYER_ACTIVITY = "player_activity"


class EventManager:
    """Dispatches events to handlers synchronously, in subscription order.

    Handlers run inline and should return quickly. A handler that raises
    is logged and skipped; the remaining handlers still run.
    """

    def __init__(self):
        self._handlers: Dict[EventType, List[Callable]] = {}

    def subscribe(self, event_type: EventType, handler: Callable[[Any], None]):
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable[[Any], None]):
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def has_handlers(self, event_type: EventType) -> bool:
        return bool(self._handlers.get(event_type))

    def emit(self, event_type: EventType, data: Any = None):
        # Copy so handlers may unsubscribe while we iterate
        for handler in list(self._handlers.get(event_type, [])):
            try:
                handler(data)
            except Exception:
                logger.exception(f"Handler {handler!r} failed for {event_type.value}")
