from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import PlatformDirs

logger = logging.getLogger(__name__)

APP_NAME = "StationBoot"

# Environment variable overrides (useful for tests and power users)
ENV_CONFIG_DIR = "STATIONBOOT_CONFIG_DIR"
ENV_DATA_DIR = "STATIONBOOT_DATA_DIR"
ENV_LOG_DIR = "STATIONBOOT_LOG_DIR"


class AppPaths:
    """Resolve platform-appropriate directories for the app.

    - config_dir: user settings YAML
    - data_dir: save backend data root (``server_data`` under the user data dir)
    - log_dir: log files

    Environment variables take precedence over the platformdirs defaults.
    """

    def __init__(self, app_name: str = APP_NAME) -> None:
        self._dirs = PlatformDirs(appname=app_name, appauthor=False)
        self._config_dir = self._compute_dir(ENV_CONFIG_DIR, Path(self._dirs.user_config_dir))
        self._data_dir = self._compute_dir(ENV_DATA_DIR, Path(self._dirs.user_data_dir) / "server_data")
        self._log_dir = self._compute_dir(ENV_LOG_DIR, Path(self._dirs.user_log_dir))

    @staticmethod
    def _compute_dir(env_var: str, default: Path) -> Path:
        override = os.getenv(env_var)
        if override:
            return Path(override).expanduser().resolve()
        return Path(default).expanduser().resolve()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    @property
    def settings_file(self) -> Path:
        return self._config_dir / "settings.yaml"

    @property
    def log_file(self) -> Path:
        return self._log_dir / "stationboot.log"

    def ensure_dirs(self) -> None:
        for d in (self.config_dir, self.data_dir, self.log_dir):
            d.mkdir(parents=True, exist_ok=True)
        logger.debug("App directories ready: config=%s data=%s logs=%s", self.config_dir, self.data_dir, self.log_dir)
