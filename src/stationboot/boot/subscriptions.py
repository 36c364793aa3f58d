from __future__ import annotations

import logging
from typing import List, Tuple

from ..core.events import EventBus, Listener

logger = logging.getLogger(__name__)


class SubscriptionScope:
    """Tracks event subscriptions so they can be released together, exactly once.

    Usable as a context manager; ``close()`` is idempotent.
    """

    def __init__(self) -> None:
        self._entries: List[Tuple[EventBus, str, Listener]] = []
        self.closed = False
        self.close_count = 0

    def subscribe(self, bus: EventBus, event_name: str, listener: Listener) -> None:
        if self.closed:
            raise RuntimeError("Cannot subscribe through a closed scope")
        bus.subscribe(event_name, listener)
        self._entries.append((bus, event_name, listener))

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> int:
        """Unsubscribe everything registered so far. Returns how many were released."""
        if self.closed:
            return 0
        self.closed = True
        self.close_count += 1
        released = 0
        while self._entries:
            bus, event_name, listener = self._entries.pop()
            if bus.unsubscribe(event_name, listener):
                released += 1
        logger.debug("Released %d subscriptions", released)
        return released

    def __enter__(self) -> "SubscriptionScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
