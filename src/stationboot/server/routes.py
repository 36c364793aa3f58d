from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Tuple

from pydantic import BaseModel, Field

from ..core.events import REQUEST_RECEIVED
from ..errors import SaveError
from ..persistence.codec import decode_record

if TYPE_CHECKING:
    from .backend import BackendService

logger = logging.getLogger(__name__)

SERVER_NAME = "Station Save Server"
SERVER_VERSION = "1.0.0"
DEFAULT_PLAYER_ID = "local_player"


class ErrorBody(BaseModel):
    error: str
    status_code: int = Field(alias="statusCode")

    model_config = {"populate_by_name": True}


class SaveAck(BaseModel):
    success: bool
    message: str


class StatusReport(BaseModel):
    server: str = SERVER_NAME
    version: str = SERVER_VERSION
    status: str
    port: int
    address: str
    players: int
    uptime: float


class HealthReport(BaseModel):
    status: str = "healthy"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class BackendResponse:
    status_code: int = 200
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _error(status_code: int, message: str) -> BackendResponse:
    body = ErrorBody(error=message, status_code=status_code).model_dump(mode="json", by_alias=True)
    return BackendResponse(status_code=status_code, body=body)


Handler = Callable[[str, Dict[str, str]], BackendResponse]


class RequestRouter:
    """Dispatch of the save server's endpoints without any socket transport.

    - POST /save    body: a SaveRecord as JSON
    - GET  /load    query: playerId (defaults to local_player)
    - GET  /status
    - GET  /health
    """

    def __init__(self, backend: "BackendService") -> None:
        self.backend = backend
        self._routes: Dict[str, Tuple[str, Handler]] = {
            "/save": ("POST", self._handle_save),
            "/load": ("GET", self._handle_load),
            "/status": ("GET", self._handle_status),
            "/health": ("GET", self._handle_health),
        }

    def dispatch(self, method: str, path: str, body: str, query: Dict[str, str]) -> BackendResponse:
        method = method.upper()
        self.backend.events.publish(REQUEST_RECEIVED, {"path": path, "method": method})
        if not self.backend.is_running:
            return _error(503, "Server is not running")

        route = self._routes.get(path)
        if route is None:
            return _error(404, "Endpoint not found")
        allowed, handler = route
        if method != allowed:
            return _error(405, "Method not allowed")
        try:
            return handler(body, query)
        except Exception:
            logger.exception("Error handling request %s %s", method, path)
            return _error(500, "Internal server error")

    def _handle_save(self, body: str, query: Dict[str, str]) -> BackendResponse:
        try:
            record = decode_record(body)
        except SaveError as e:
            logger.warning("Rejected save request: %s", e)
            return _error(400, "Invalid JSON data")
        if not self.backend.store.save(record):
            return _error(500, "Save failed")
        return BackendResponse(body=SaveAck(success=True, message="Save completed").model_dump())

    def _handle_load(self, body: str, query: Dict[str, str]) -> BackendResponse:
        player_id = query.get("playerId", DEFAULT_PLAYER_ID)
        try:
            record = self.backend.store.load(player_id)
        except SaveError as e:
            logger.warning("Rejected load request for %r: %s", player_id, e)
            return _error(400, "Invalid player id")
        if record is None:
            return _error(500, "Load failed")
        return BackendResponse(body=record.to_dict())

    def _handle_status(self, body: str, query: Dict[str, str]) -> BackendResponse:
        backend = self.backend
        report = StatusReport(
            status=backend.state.value,
            port=backend.settings.port,
            address=backend.settings.address,
            players=backend.store.player_count,
            uptime=round(backend.uptime, 3),
        )
        return BackendResponse(body=report.model_dump())

    def _handle_health(self, body: str, query: Dict[str, str]) -> BackendResponse:
        return BackendResponse(body=HealthReport().model_dump(mode="json"))
