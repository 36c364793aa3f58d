from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from ..core.events import CONNECTION_CHANGED, SERVER_STARTED, SERVER_STOPPED, EventBus
from ..errors import PersistenceIOError
from ..paths import AppPaths
from ..persistence.models import SaveRecord
from ..persistence.store import PersistenceStore
from ..settings import ServerSettings
from .autosave import AutoSaver
from .routes import BackendResponse, RequestRouter

logger = logging.getLogger(__name__)


class BackendState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class BackendService:
    """Lifecycle wrapper around the PersistenceStore.

    Running/stopped and reachable are tracked separately: ``start()`` only flips
    the running state and publishes ``ServerStarted``. Reachability changes
    later, when ``connect()`` finishes, and is announced with
    ``ConnectionChanged``. With ``auto_connect`` enabled, ``start()`` schedules
    ``connect()`` on the running event loop.

    Construct one instance at the application root and pass it to consumers.
    """

    def __init__(
        self,
        store: PersistenceStore,
        settings: Optional[ServerSettings] = None,
        events: Optional[EventBus] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.settings = settings or ServerSettings()
        self.events = events or store.events
        self._sleep = sleep
        self._state = BackendState.STOPPED
        self._reachable = False
        self._started_at: Optional[float] = None
        self._connect_task: Optional[asyncio.Task] = None
        self._load_done = asyncio.Event()
        self._router = RequestRouter(self)
        self.autosaver: Optional[AutoSaver] = None
        if self.settings.autosave_enabled:
            self.autosaver = AutoSaver(self, self.settings.autosave_interval, sleep=sleep)

        self.player_id = self.settings.player_id
        self.is_saving = False
        self.is_loading = False
        self.last_save_time: Optional[datetime] = None

    # Lifecycle

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is BackendState.RUNNING

    def is_reachable(self) -> bool:
        return self._reachable

    @property
    def url(self) -> str:
        return f"http://{self.settings.address}:{self.settings.port}"

    @property
    def uptime(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.monotonic() - self._started_at

    def start(self) -> None:
        if self.is_running:
            logger.warning("Server is already running")
            return
        self._state = BackendState.RUNNING
        self._started_at = time.monotonic()
        self._load_done.clear()
        logger.info("Save server started on %s:%d", self.settings.address, self.settings.port)
        self.events.publish(SERVER_STARTED, {"port": self.settings.port})

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; connect() and auto-save must be started explicitly")
            return
        if self.settings.auto_connect:
            self._connect_task = loop.create_task(self.connect())
        if self.autosaver is not None:
            self.autosaver.start()

    def stop(self) -> None:
        if not self.is_running:
            return
        if self._connect_task is not None:
            self._connect_task.cancel()
            self._connect_task = None
        if self.autosaver is not None:
            self.autosaver.stop()
        if self._reachable:
            self._set_reachable(False)
        self._state = BackendState.STOPPED
        self._started_at = None
        self._load_done.clear()
        logger.info("Save server stopped")
        self.events.publish(SERVER_STOPPED, {})

    # Connection

    async def connect(self) -> bool:
        """Bring the backend to the reachable state and load the current player's record."""
        if not self.is_running:
            logger.warning("Cannot connect: save server is not running")
            return False
        logger.info("Connecting to save server at %s", self.url)
        try:
            self.store.ensure_data_root()
            await self._sleep(self.settings.connect_delay)
        except PersistenceIOError as e:
            logger.error("Failed to connect to save server: %s", e)
            self._set_reachable(False)
            return False
        if not self.is_running:
            return False

        self._set_reachable(True)
        logger.info("Connected to save server successfully")
        await self.load_current()
        return True

    def disconnect(self) -> None:
        if not self._reachable:
            return
        self._set_reachable(False)
        logger.info("Disconnected from save server")

    def _set_reachable(self, reachable: bool) -> None:
        self._reachable = reachable
        self.events.publish(CONNECTION_CHANGED, {"connected": reachable})

    async def wait_until_loaded(self) -> Optional[SaveRecord]:
        """Resolve once the current player's load attempt has finished (successfully or not)."""
        await self._load_done.wait()
        return self.store.get(self.player_id)

    @property
    def data_loaded(self) -> bool:
        return self._load_done.is_set()

    # Save / load of the current player

    async def save_current(self) -> bool:
        if self.is_saving:
            logger.warning("Save already in progress")
            return False
        self.is_saving = True
        try:
            record = self.store.get(self.player_id) or self.store.create_default(self.player_id)
            success = self.store.save(record)
            if success:
                self.last_save_time = datetime.now(timezone.utc)
            return success
        finally:
            self.is_saving = False

    async def load_current(self) -> bool:
        if self.is_loading:
            logger.warning("Load already in progress")
            return False
        self.is_loading = True
        try:
            return self.store.load(self.player_id) is not None
        finally:
            self.is_loading = False
            self._load_done.set()

    def set_player_id(self, player_id: str) -> None:
        self.player_id = player_id
        self._load_done.clear()
        logger.info("Player ID set to: %s", player_id)

    def stats(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "is_connected": self._reachable,
            "is_saving": self.is_saving,
            "is_loading": self.is_loading,
            "last_save_time": self.last_save_time.isoformat() if self.last_save_time else None,
            "player_id": self.player_id,
            "data_protected": self.store.protect_data,
        }

    # In-process request handling

    def handle(
        self,
        method: str,
        path: str,
        body: str = "",
        query: Optional[Dict[str, str]] = None,
    ) -> BackendResponse:
        return self._router.dispatch(method, path, body, query or {})


def create_backend(settings: ServerSettings, events: Optional[EventBus] = None) -> BackendService:
    """Build the app-wide backend and its store from settings.

    ``settings.data_root`` wins; otherwise the platform user data directory is used.
    """
    data_root = Path(settings.data_root).expanduser() if settings.data_root else AppPaths().data_dir
    events = events or EventBus()
    store = PersistenceStore(data_root, events, protect_data=settings.enable_data_protection)
    return BackendService(store, settings, events)
