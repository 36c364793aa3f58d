from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .boot.orchestrator import COMPLETED, LoadingOrchestrator
from .boot.view import LoggingView
from .core.navigation import MAIN_MENU, SceneRouter
from .server.backend import BackendService
from .settings import Settings

logger = logging.getLogger(__name__)


async def run_headless(
    settings: Settings,
    backend: BackendService,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    view: Optional[LoggingView] = None,
) -> Optional[str]:
    """Run the whole boot sequence without a window and continue automatically.

    Returns the state the sequence handed off to, or None if nothing was reached.
    """
    shown: List[str] = []
    router = SceneRouter(show=shown.append)
    router.register(MAIN_MENU, lambda: MAIN_MENU)

    view = view if view is not None else LoggingView()
    outcome: Optional[str] = None
    try:
        async with LoadingOrchestrator(backend, view, router.go, settings.loading, sleep=sleep) as orchestrator:
            outcome = await orchestrator.run()
            if outcome == COMPLETED:
                orchestrator.gate.trigger("headless")
    finally:
        backend.stop()

    destination = router.history[-1] if router.history else None
    logger.info("Boot sequence finished: %s -> %s", outcome, destination)
    return destination
