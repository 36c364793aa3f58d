from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ServerSettings:
    port: int = 8080
    address: str = "127.0.0.1"
    auto_start: bool = True
    auto_connect: bool = True
    # None means "use AppPaths.data_dir"
    data_root: Optional[str] = None
    player_id: str = "local_player"
    connect_delay: float = 1.0
    enable_data_protection: bool = True
    autosave_enabled: bool = True
    autosave_interval: float = 30.0


@dataclass
class LoadingSettings:
    tick_interval: float = 0.05
    poll_interval: float = 0.1
    max_poll_attempts: int = 50
    missing_backend_delay: float = 1.0
    data_load_delay: float = 1.0
    # None waits for the data load indefinitely
    data_load_timeout: Optional[float] = None
    pulse_interval: float = 0.8
    next_state: str = "main_menu"
    fallback_state: str = "main_menu"


@dataclass
class VideoSettings:
    width: int = 1280
    height: int = 720
    fullscreen: bool = False
    vsync: bool = True


@dataclass
class Settings:
    server: ServerSettings = field(default_factory=ServerSettings)
    loading: LoadingSettings = field(default_factory=LoadingSettings)
    video: VideoSettings = field(default_factory=VideoSettings)

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        return Settings(
            server=ServerSettings(**data.get("server", {})),
            loading=LoadingSettings(**data.get("loading", {})),
            video=VideoSettings(**data.get("video", {})),
        )

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load settings from built-in defaults and optional user override file.

        If user_path is provided and exists, overlay values onto defaults.
        """
        try:
            with resources.files("stationboot.config").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
                default_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default settings not found; falling back to dataclass defaults.")
            default_data = dataclasses.asdict(Settings())

        user_data = {}
        if user_path is not None:
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user settings from %s", user_path)
            else:
                logger.warning("User settings file not found: %s", user_path)

        merged = cls._deep_merge(default_data, user_data)
        settings = cls._from_dict(merged)
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(dataclasses.asdict(self), f, sort_keys=False)
        logger.info("Saved settings to %s", path)
