from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True)
class Stage:
    """One named step of the loading sequence."""

    key: str
    label: str
    target: int


STAGES: Tuple[Stage, ...] = (
    Stage("init", "Initializing station systems...", 15),
    Stage("start_server", "Starting save server...", 30),
    Stage("connect", "Connecting to server...", 40),
    Stage("check_status", "Checking server status...", 50),
    Stage("load_data", "Loading save data...", 70),
    Stage("verify", "Verifying data integrity...", 85),
    Stage("prepare", "Preparing game systems...", 95),
    Stage("complete", "Loading complete!", 100),
)


def validate_stages(stages: Sequence[Stage]) -> None:
    """Targets must rise strictly, stay within 0..100 and finish at exactly 100."""
    if not stages:
        raise ValueError("At least one stage is required")
    previous = 0
    for stage in stages:
        if not previous < stage.target <= 100:
            raise ValueError(f"Stage {stage.key!r} target {stage.target} must be in ({previous}, 100]")
        previous = stage.target
    if previous != 100:
        raise ValueError("The last stage must target 100")


validate_stages(STAGES)
