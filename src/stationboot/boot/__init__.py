"""Staged loading sequence: session state, orchestrator and continuation gate."""

from .gate import ContinuationGate
from .orchestrator import COMPLETED, FALLBACK, LoadingOrchestrator
from .session import LoadingSession, LogEntry
from .stages import STAGES, Stage, validate_stages
from .subscriptions import SubscriptionScope
from .view import LoggingView, ProgressView

__all__ = [
    "COMPLETED",
    "FALLBACK",
    "ContinuationGate",
    "LoadingOrchestrator",
    "LoadingSession",
    "LogEntry",
    "LoggingView",
    "ProgressView",
    "STAGES",
    "Stage",
    "SubscriptionScope",
    "validate_stages",
]
