from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

if TYPE_CHECKING:
    from .backend import BackendService

logger = logging.getLogger(__name__)


class AutoSaver:
    """Periodically saves the current player's record while the backend is reachable."""

    def __init__(
        self,
        backend: "BackendService",
        interval: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("Auto-save interval must be positive")
        self.backend = backend
        self.interval = interval
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.saves = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Auto-save enabled with %.1fs interval", self.interval)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            if self.backend.is_reachable() and not self.backend.is_saving:
                if await self.backend.save_current():
                    self.saves += 1
