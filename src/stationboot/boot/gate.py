from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .session import LoadingSession

logger = logging.getLogger(__name__)


class ContinuationGate:
    """Hands control to the next application state exactly once.

    ``trigger`` is a no-op until the session allows continuing, and after the
    first successful fire. Teardown always runs before the handoff.
    """

    def __init__(
        self,
        session: LoadingSession,
        teardown: Callable[[], None],
        handoff: Callable[[], None],
    ) -> None:
        self._session: Optional[LoadingSession] = session
        self._teardown = teardown
        self._handoff = handoff
        self._lock = threading.Lock()
        self.fired = False
        self.fired_by: Optional[str] = None

    @property
    def ready(self) -> bool:
        session = self._session
        return not self.fired and session is not None and session.can_continue

    def disarm(self) -> None:
        """Refuse every later trigger, e.g. once the owning screen has gone away."""
        with self._lock:
            self._session = None

    def trigger(self, source: str = "key") -> bool:
        with self._lock:
            if self.fired:
                logger.debug("Continuation already fired; ignoring %s", source)
                return False
            session = self._session
            if session is None or not session.can_continue:
                return False
            self.fired = True
            self.fired_by = source
            self._session = None

        logger.info("Continuation triggered by %s", source)
        self._teardown()
        self._handoff()
        return True
