from __future__ import annotations


class StationBootError(Exception):
    """Base error for stationboot domain exceptions."""


class SaveError(StationBootError):
    """Base exception for save/load errors."""


class SaveValidationError(SaveError):
    """Raised when validation of save data fails."""


class PersistenceIOError(SaveError):
    """Raised when a record cannot be written to or read from the data root."""


class CorruptSaveError(SaveError):
    """Raised when a save file exists but cannot be decoded."""


class BootstrapError(StationBootError):
    """Raised when the loading sequence is missing a required dependency."""


class RouteNotFound(StationBootError):
    """Raised when a destination state has no registered scene."""
