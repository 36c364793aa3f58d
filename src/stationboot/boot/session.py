from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

# Log levels as shown in the loading screen log panel
LEVEL_COLORS = {
    "green": (0, 255, 0),
    "red": (255, 0, 0),
    "yellow": (255, 255, 0),
    "blue": (0, 128, 255),
    "orange": (255, 128, 0),
}
DEFAULT_COLOR = (255, 255, 255)


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    message: str
    level: str = "white"

    @property
    def color(self) -> tuple:
        return LEVEL_COLORS.get(self.level, DEFAULT_COLOR)

    def format(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"


@dataclass
class LoadingSession:
    """State of the single in-flight boot sequence.

    Only the orchestrator writes ``stage_index``, ``progress``, ``status`` and the
    flags. Notification handlers may only call ``add_log``.
    """

    stage_index: int = 0
    progress: int = 0
    status: str = ""
    complete: bool = False
    can_continue: bool = False
    log: List[LogEntry] = field(default_factory=list)

    def add_log(self, message: str, level: str = "white") -> LogEntry:
        entry = LogEntry(timestamp=datetime.now(), message=message, level=level)
        self.log.append(entry)
        return entry

    def step_progress(self) -> int:
        """Advance one percent, never past 100."""
        self.progress = min(100, self.progress + 1)
        return self.progress

    def messages(self) -> List[str]:
        return [e.message for e in self.log]
