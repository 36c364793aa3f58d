"""Local save backend: lifecycle, reachability, request handling and auto-save."""

from .autosave import AutoSaver
from .backend import BackendService, BackendState, create_backend
from .routes import BackendResponse, RequestRouter

__all__ = ["AutoSaver", "BackendService", "BackendState", "BackendResponse", "RequestRouter", "create_backend"]
