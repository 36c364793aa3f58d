from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from ..core.events import (
    CONNECTION_CHANGED,
    DATA_INTEGRITY_VIOLATION,
    LOAD_COMPLETED,
    SAVE_COMPLETED,
)
from ..errors import BootstrapError
from ..persistence.models import SaveRecord
from ..server.backend import BackendService
from ..settings import LoadingSettings
from .gate import ContinuationGate
from .session import LoadingSession
from .stages import STAGES, Stage, validate_stages
from .subscriptions import SubscriptionScope
from .view import ProgressView

logger = logging.getLogger(__name__)

COMPLETED = "completed"
FALLBACK = "fallback"

_LOG_LEVELS = {"red": logging.WARNING, "orange": logging.WARNING}

Sleep = Callable[[float], Awaitable[None]]


class LoadingOrchestrator:
    """Drives the boot sequence from "initializing" to "loading complete".

    Stages run one after another; each ramps the progress bar one percent per
    tick up to its target. Waiting on the backend is bounded: if it never
    becomes reachable the sequence logs a timeout and carries on offline. A
    missing view or any unexpected exception sends the player straight to the
    fallback state.

    Event handlers registered on the backend only append log lines; the
    session's stage, progress and flags are written by ``run`` alone.
    """

    def __init__(
        self,
        backend: Optional[BackendService],
        view: Optional[ProgressView],
        navigate: Callable[[str], None],
        settings: Optional[LoadingSettings] = None,
        stages: Sequence[Stage] = STAGES,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        validate_stages(stages)
        self.backend = backend
        self.view = view
        self.settings = settings or LoadingSettings()
        self.stages = tuple(stages)
        self._navigate = navigate
        self._sleep = sleep

        self.session: Optional[LoadingSession] = LoadingSession()
        self.scope = SubscriptionScope()
        self.gate = ContinuationGate(self.session, teardown=self._teardown_for_continue, handoff=self._continue)
        self.outcome: Optional[str] = None
        self.poll_attempts = 0
        self.record: Optional[SaveRecord] = None
        self._pulse_task: Optional[asyncio.Task] = None
        self._closed = False

    async def __aenter__(self) -> "LoadingOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Sequence

    async def run(self) -> str:
        """Run every stage. Returns COMPLETED or FALLBACK; never raises except on cancellation."""
        try:
            if self.view is None:
                raise BootstrapError("Loading view is not available")
            self.log("Loading screen initialized", "green")
            self.log("Starting loading sequence...", "yellow")

            await self.advance(self._stage("init"))
            self.log("Systems initialized successfully", "green")

            await self.advance(self._stage("start_server"))
            self._start_backend()

            await self.advance(self._stage("connect"))
            self.log("Connecting to save server...", "blue")
            connected = await self._connect()

            await self.advance(self._stage("check_status"))
            if connected:
                self.log("Server status verified", "green")
            else:
                self.log("Server unavailable, continuing offline", "orange")

            await self.advance(self._stage("load_data"))
            self.log("Loading save data...", "blue")
            self.record = await self._wait_for_data_load(connected)

            await self.advance(self._stage("verify"))
            self._verify(self.record)

            await self.advance(self._stage("prepare"))
            self.log("Game systems prepared", "green")

            await self.advance(self._stage("complete"))
            self.log("Loading complete! Ready to launch!", "green")

            self._complete()
            return COMPLETED
        except asyncio.CancelledError:
            self.close()
            raise
        except Exception as exc:
            logger.exception("Loading sequence failed")
            self._fail(exc)
            return FALLBACK

    def _stage(self, key: str) -> Stage:
        for stage in self.stages:
            if stage.key == key:
                return stage
        raise BootstrapError(f"Unknown loading stage: {key}")

    async def advance(self, stage: Stage) -> None:
        """Show ``stage``'s label, then ramp progress to its target one unit per tick."""
        session = self._require_session()
        session.stage_index = self.stages.index(stage)
        session.status = stage.label
        self.view.set_status(stage.label)
        while session.progress < stage.target:
            self.view.set_progress(session.step_progress())
            await self._sleep(self.settings.tick_interval)

    def _start_backend(self) -> None:
        if self.backend is None:
            return
        if self.backend.is_running:
            self.log("Save server already running", "blue")
        elif self.backend.settings.auto_start:
            self.backend.start()
            self.log("Save server starting...", "blue")
        else:
            self.log("Save server auto-start disabled", "orange")

    async def _connect(self) -> bool:
        if self.backend is None:
            self.log("WARNING: save backend not found!", "red")
            await self._sleep(self.settings.missing_backend_delay)
            return False

        events = self.backend.events
        self.scope.subscribe(events, CONNECTION_CHANGED, self._on_connection_changed)
        self.scope.subscribe(events, SAVE_COMPLETED, self._on_save_completed)
        self.scope.subscribe(events, LOAD_COMPLETED, self._on_load_completed)
        self.scope.subscribe(events, DATA_INTEGRITY_VIOLATION, self._on_integrity_violation)
        return await self.wait_for_backend()

    async def wait_for_backend(self) -> bool:
        """Poll reachability up to ``max_poll_attempts`` times, ``poll_interval`` apart."""
        for attempt in range(1, self.settings.max_poll_attempts + 1):
            if self.backend.is_reachable():
                self.log("Successfully connected to save server", "green")
                return True
            self.poll_attempts = attempt
            await self._sleep(self.settings.poll_interval)
        self.log("Failed to connect to server (timeout)", "red")
        return False

    async def _wait_for_data_load(self, connected: bool) -> Optional[SaveRecord]:
        if connected:
            waiter = self.backend.wait_until_loaded()
        else:
            waiter = self._simulated_load()

        timeout = self.settings.data_load_timeout
        try:
            if timeout is None:
                record = await waiter
            else:
                record = await asyncio.wait_for(waiter, timeout)
        except asyncio.TimeoutError:
            self.log(f"Save data load timed out after {timeout:.1f}s", "red")
            return None

        if record is not None:
            self.log("Save data loaded successfully", "green")
        elif connected:
            self.log("Save data could not be loaded", "red")
        else:
            self.log("Using local defaults (server offline)", "orange")
        return record

    async def _simulated_load(self) -> Optional[SaveRecord]:
        await self._sleep(self.settings.data_load_delay)
        return None

    def _verify(self, record: Optional[SaveRecord]) -> None:
        if record is None:
            self.log("Data integrity check skipped", "orange")
        elif not record.data_hash:
            self.log("New save data, nothing to verify", "green")
        elif self.backend.store.verify(record):
            self.log("Data integrity verified", "green")
        else:
            self.log("Data integrity check failed", "red")

    def _complete(self) -> None:
        session = self._require_session()
        session.complete = True
        session.can_continue = True
        self.outcome = COMPLETED
        self.view.show_continue()
        self.log("Press any key or click CONTINUE to proceed", "yellow")
        self._pulse_task = asyncio.get_running_loop().create_task(self._pulse())

    async def _pulse(self) -> None:
        bright = True
        while True:
            await asyncio.sleep(self.settings.pulse_interval)
            bright = not bright
            self.view.pulse(1.0 if bright else 0.3)

    def _fail(self, exc: Exception) -> None:
        self.log(f"Loading failed: {exc}", "red")
        self.outcome = FALLBACK
        self.close()
        self._go(self.settings.fallback_state)

    # Continuation

    def _teardown_for_continue(self) -> None:
        self.log(f"Transitioning to {self.settings.next_state}...", "blue")
        self.close()

    def _continue(self) -> None:
        self._go(self.settings.next_state)

    def _go(self, state: str) -> None:
        try:
            self._navigate(state)
        except Exception:
            logger.exception("Navigation to %r failed", state)

    def close(self) -> None:
        """Release subscriptions, timers and the session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.scope.close()
        self.gate.disarm()
        if self._pulse_task is not None:
            self._pulse_task.cancel()
            self._pulse_task = None
        self.session = None

    @property
    def closed(self) -> bool:
        return self._closed

    # Logging and notification handlers

    def log(self, message: str, level: str = "white") -> None:
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message)
        session = self.session
        if session is None:
            return
        entry = session.add_log(message, level)
        if self.view is not None:
            self.view.append_log(entry)

    def _require_session(self) -> LoadingSession:
        if self.session is None:
            raise BootstrapError("Loading session has already been released")
        return self.session

    def _on_connection_changed(self, payload: Dict[str, Any]) -> None:
        connected = bool(payload.get("connected"))
        self.log(f"Server {'connected' if connected else 'disconnected'}", "green" if connected else "red")

    def _on_save_completed(self, payload: Dict[str, Any]) -> None:
        self.log(f"Save: {payload.get('message', '')}", "green" if payload.get("success") else "red")

    def _on_load_completed(self, payload: Dict[str, Any]) -> None:
        self.log(f"Load: {payload.get('message', '')}", "green" if payload.get("success") else "red")

    def _on_integrity_violation(self, payload: Dict[str, Any]) -> None:
        self.log(f"Integrity: {payload.get('details', '')}", "red")
