"""
Station boot flow.

This package provides the headless logic that takes the game from launch to
the main menu:
- PersistenceStore: per-player save records on disk with tamper detection
- BackendService: lifecycle, reachability and request handling around the store
- LoadingOrchestrator: the staged loading sequence with bounded waits
- ContinuationGate: the one-shot hand-off once loading completes

The Arcade window (``stationboot.app``) composes these services.
"""
from .boot import ContinuationGate, LoadingOrchestrator, LoadingSession
from .core.events import EventBus
from .errors import (
    BootstrapError,
    CorruptSaveError,
    PersistenceIOError,
    RouteNotFound,
    SaveError,
    SaveValidationError,
    StationBootError,
)
from .persistence import PersistenceStore, SaveRecord
from .server import BackendService, create_backend
from .settings import Settings

__all__ = [
    "ContinuationGate",
    "LoadingOrchestrator",
    "LoadingSession",
    "EventBus",
    "BootstrapError",
    "CorruptSaveError",
    "PersistenceIOError",
    "RouteNotFound",
    "SaveError",
    "SaveValidationError",
    "StationBootError",
    "PersistenceStore",
    "SaveRecord",
    "BackendService",
    "create_backend",
    "Settings",
]
