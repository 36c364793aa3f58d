from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Set, Tuple

from ..errors import SaveValidationError

# Increment when making breaking schema changes
SCHEMA_VERSION = 1

DEFAULT_MAX_HEALTH = 100.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PlayerState:
    """Where the player is and how healthy they are."""

    health: float = DEFAULT_MAX_HEALTH
    max_health: float = DEFAULT_MAX_HEALTH
    position: Tuple[float, float] = (0.0, 0.0)
    current_scene: str = ""

    def __post_init__(self) -> None:
        if self.max_health < 0:
            raise SaveValidationError("PlayerState.max_health must not be negative")
        if not 0 <= self.health <= self.max_health:
            raise SaveValidationError(
                f"PlayerState.health must be within [0, {self.max_health}], got {self.health}"
            )
        self.position = (float(self.position[0]), float(self.position[1]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health": self.health,
            "max_health": self.max_health,
            "position": {"x": self.position[0], "y": self.position[1]},
            "current_scene": self.current_scene,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PlayerState":
        pos = data.get("position") or {}
        return PlayerState(
            health=float(data.get("health", DEFAULT_MAX_HEALTH)),
            max_health=float(data.get("max_health", DEFAULT_MAX_HEALTH)),
            position=(float(pos.get("x", 0.0)), float(pos.get("y", 0.0))),
            current_scene=str(data.get("current_scene", "")),
        )


@dataclass
class ProgressState:
    """Long-lived progression: unlocks, missions, discoveries and counters."""

    play_time: float = 0.0
    unlocked_modules: Set[str] = field(default_factory=set)
    completed_missions: Set[str] = field(default_factory=set)
    discovered_locations: Set[str] = field(default_factory=set)
    stats: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "play_time": self.play_time,
            "unlocked_modules": sorted(self.unlocked_modules),
            "completed_missions": sorted(self.completed_missions),
            "discovered_locations": sorted(self.discovered_locations),
            "stats": dict(self.stats),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ProgressState":
        return ProgressState(
            play_time=float(data.get("play_time", 0.0)),
            unlocked_modules=set(data.get("unlocked_modules", [])),
            completed_missions=set(data.get("completed_missions", [])),
            discovered_locations=set(data.get("discovered_locations", [])),
            stats={str(k): float(v) for k, v in (data.get("stats") or {}).items()},
        )


@dataclass
class SaveRecord:
    """The persisted unit of player state, keyed by ``player_id``."""

    player_id: str
    version: int = SCHEMA_VERSION
    created_at: str = field(default_factory=_now)
    last_modified: str = field(default_factory=_now)
    data_hash: str = ""
    player: PlayerState = field(default_factory=PlayerState)
    progress: ProgressState = field(default_factory=ProgressState)
    inventory: Dict[str, Any] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.player_id, str) or not self.player_id:
            raise SaveValidationError("player_id must be a non-empty string")
        if any(sep in self.player_id for sep in ("/", "\\")) or self.player_id in (".", ".."):
            raise SaveValidationError(f"player_id may not contain path separators: {self.player_id!r}")
        if not isinstance(self.version, int) or self.version < 1:
            raise SaveValidationError("version must be a positive integer")

    def touch(self) -> None:
        self.last_modified = _now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "version": self.version,
            "created_at": self.created_at,
            "last_modified": self.last_modified,
            "data_hash": self.data_hash,
            "player": self.player.to_dict(),
            "progress": self.progress.to_dict(),
            "inventory": dict(self.inventory),
            "settings": dict(self.settings),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SaveRecord":
        return SaveRecord(
            player_id=data.get("player_id", ""),
            version=int(data.get("version", SCHEMA_VERSION)),
            created_at=data.get("created_at") or _now(),
            last_modified=data.get("last_modified") or _now(),
            data_hash=data.get("data_hash", ""),
            player=PlayerState.from_dict(data.get("player") or {}),
            progress=ProgressState.from_dict(data.get("progress") or {}),
            inventory=dict(data.get("inventory") or {}),
            settings=dict(data.get("settings") or {}),
        )


def create_default(player_id: str) -> SaveRecord:
    """Fresh record for an unseen player: version 1, full health, nothing unlocked."""
    now = _now()
    return SaveRecord(player_id=player_id, version=SCHEMA_VERSION, created_at=now, last_modified=now)
