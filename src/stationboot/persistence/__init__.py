"""Persistence subsystem for stationboot.

This package provides:
- SaveRecord / PlayerState / ProgressState data models
- Encoding/decoding to a stable, human-readable JSON file per player
- Content hashing for tamper detection
- PersistenceStore, which owns the records and publishes completion events
"""

from .codec import compute_hash, decode_record, encode_record, verify_hash
from .models import SCHEMA_VERSION, PlayerState, ProgressState, SaveRecord, create_default
from .store import PersistenceStore

__all__ = [
    "SCHEMA_VERSION",
    "PlayerState",
    "ProgressState",
    "SaveRecord",
    "create_default",
    "encode_record",
    "decode_record",
    "compute_hash",
    "verify_hash",
    "PersistenceStore",
]
