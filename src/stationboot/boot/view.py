from __future__ import annotations

import logging
from typing import Protocol

from .session import LogEntry

logger = logging.getLogger(__name__)


class ProgressView(Protocol):
    """What the orchestrator needs from the loading screen."""

    def set_status(self, text: str) -> None: ...

    def set_progress(self, value: int) -> None: ...

    def append_log(self, entry: LogEntry) -> None: ...

    def show_continue(self) -> None: ...

    def pulse(self, alpha: float) -> None: ...


class LoggingView:
    """Headless view: forwards status and log lines to the logging module."""

    def __init__(self) -> None:
        self.status = ""
        self.progress = 0
        self.continue_visible = False
        self.alpha = 1.0

    def set_status(self, text: str) -> None:
        self.status = text
        logger.info("%s", text)

    def set_progress(self, value: int) -> None:
        self.progress = value
        if value % 10 == 0:
            logger.debug("Progress %d%%", value)

    def append_log(self, entry: LogEntry) -> None:
        logger.info("%s", entry.format())

    def show_continue(self) -> None:
        self.continue_visible = True

    def pulse(self, alpha: float) -> None:
        self.alpha = alpha
