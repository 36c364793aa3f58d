"""
A minimal, synchronous event bus to decouple the save backend from its observers.
Listeners are invoked in registration order; a failing listener is logged and skipped.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]

# Notification names
CONNECTION_CHANGED = "ConnectionChanged"  # {"connected": bool}
SAVE_COMPLETED = "SaveCompleted"  # {"success": bool, "message": str}
LOAD_COMPLETED = "LoadCompleted"  # {"success": bool, "message": str}
SERVER_STARTED = "ServerStarted"  # {"port": int}
SERVER_STOPPED = "ServerStopped"  # {}
REQUEST_RECEIVED = "RequestReceived"  # {"path": str, "method": str}
DATA_INTEGRITY_VIOLATION = "DataIntegrityViolation"  # {"details": str}


class EventBus:
    """Simple publish/subscribe event bus."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Listener]] = {}

    def subscribe(self, event_name: str, callback: Listener) -> None:
        logger.debug("Subscribing to event '%s': %s", event_name, callback)
        self._subscribers.setdefault(event_name, []).append(callback)

    def unsubscribe(self, event_name: str, callback: Listener) -> bool:
        """Remove one registration of ``callback``. Returns False if it was not registered."""
        subs = self._subscribers.get(event_name)
        if not subs or callback not in subs:
            return False
        subs.remove(callback)
        if not subs:
            del self._subscribers[event_name]
        logger.debug("Unsubscribed from event '%s': %s", event_name, callback)
        return True

    def subscriber_count(self, event_name: Optional[str] = None) -> int:
        if event_name is not None:
            return len(self._subscribers.get(event_name, []))
        return sum(len(subs) for subs in self._subscribers.values())

    def publish(self, event_name: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if payload is None:
            payload = {}
        subs = list(self._subscribers.get(event_name, []))
        logger.debug("Publishing event '%s' to %d subscribers", event_name, len(subs))
        for cb in subs:
            try:
                cb(payload)
            except Exception as exc:
                logger.exception("Error in event subscriber for '%s': %s", event_name, exc)
