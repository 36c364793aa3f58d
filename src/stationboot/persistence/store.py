from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from ..core.events import DATA_INTEGRITY_VIOLATION, LOAD_COMPLETED, SAVE_COMPLETED, EventBus
from ..errors import CorruptSaveError, PersistenceIOError, SaveError
from .codec import compute_hash, decode_record, encode_record, verify_hash
from .models import SaveRecord, create_default

logger = logging.getLogger(__name__)

SAVE_FILE_PREFIX = "save_"
SAVE_FILE_SUFFIX = ".json"


class PersistenceStore:
    """Owns save records keyed by player id and writes them under ``data_root``.

    ``save`` and ``load`` never raise for I/O or file content problems; they log,
    publish ``SaveCompleted`` / ``LoadCompleted`` with ``success=False`` and
    leave the in-memory records as they are.
    """

    def __init__(self, data_root: Path, events: Optional[EventBus] = None, protect_data: bool = True) -> None:
        self.data_root = Path(data_root)
        self.events = events or EventBus()
        self.protect_data = protect_data
        self.lock = threading.RLock()
        self._records: Dict[str, SaveRecord] = {}
        # Highest version written or read per player id
        self._versions: Dict[str, int] = {}

    # Public API

    @staticmethod
    def create_default(player_id: str) -> SaveRecord:
        return create_default(player_id)

    def path_for(self, player_id: str) -> Path:
        return self.data_root / f"{SAVE_FILE_PREFIX}{player_id}{SAVE_FILE_SUFFIX}"

    def ensure_data_root(self) -> Path:
        """Create the data root if needed. Safe to call repeatedly."""
        try:
            self.data_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceIOError(f"Cannot create data root {self.data_root}: {e}") from e
        return self.data_root

    def get(self, player_id: str) -> Optional[SaveRecord]:
        with self.lock:
            return self._records.get(player_id)

    @property
    def player_count(self) -> int:
        with self.lock:
            return len(self._records)

    def persist(self, record: SaveRecord) -> Path:
        """Write ``record`` to its per-player file. Raises PersistenceIOError."""
        return self._write(record.player_id, self._encode(record))

    def read(self, player_id: str) -> SaveRecord:
        """Read a persisted record back from disk.

        Raises:
            PersistenceIOError if the file is missing or unreadable.
            CorruptSaveError / SaveValidationError if the contents are invalid.
        """
        path = self.path_for(player_id)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceIOError(f"Cannot read {path}: {e}") from e
        record = decode_record(text)
        if record.player_id != player_id:
            raise CorruptSaveError(f"{path} holds a record for {record.player_id!r}, expected {player_id!r}")
        return record

    def verify(self, record: SaveRecord) -> bool:
        """Integrity check. Records without a hash pass unless data protection is on."""
        if not record.data_hash:
            return not self.protect_data
        return verify_hash(record)

    def save(self, record: SaveRecord) -> bool:
        """Store ``record`` in memory and on disk, then publish SaveCompleted.

        A version lower than the highest one seen for the player (in memory,
        saved earlier by this store, or already on disk) is refused.
        """
        with self.lock:
            stored = self._stored_version(record.player_id)
            if stored is not None and record.version < stored:
                return self._save_finished(
                    False,
                    f"Save failed: version {record.version} is older than stored version {stored}",
                )
            record.touch()
            try:
                if self.protect_data:
                    record.data_hash = self._hash(record)
                text = self._encode(record)
            except PersistenceIOError as e:
                return self._save_finished(False, f"Save failed: {e}")
            # In-memory state is kept even if the write below fails
            self._records[record.player_id] = record
            self._versions[record.player_id] = record.version
            try:
                self._write(record.player_id, text)
            except PersistenceIOError as e:
                return self._save_finished(False, f"Save failed: {e}")
        return self._save_finished(True, f"Save completed for {record.player_id}")

    def load(self, player_id: str) -> Optional[SaveRecord]:
        """Return the record for ``player_id``: memory first, then disk, then a new default.

        Publishes LoadCompleted. Returns None when the persisted file is corrupt
        or fails the integrity check.
        """
        with self.lock:
            record = self._records.get(player_id)
            if record is not None:
                return self._load_finished(record, f"Load completed for {player_id}")

            if not self.path_for(player_id).exists():
                record = self.create_default(player_id)
                self._records[player_id] = record
                return self._load_finished(record, f"New save data created for {player_id}")

            try:
                record = self.read(player_id)
            except SaveError as e:
                logger.error("Load failed for %s: %s", player_id, e)
                self.events.publish(LOAD_COMPLETED, {"success": False, "message": f"Load failed: {e}"})
                return None

            if self.protect_data and record.data_hash and not verify_hash(record):
                details = f"Data integrity check failed for {player_id} - possible tampering detected"
                logger.error(details)
                self.events.publish(DATA_INTEGRITY_VIOLATION, {"details": details})
                self.events.publish(LOAD_COMPLETED, {"success": False, "message": f"Load failed: {details}"})
                return None

            self._records[player_id] = record
            self._versions[player_id] = max(record.version, self._versions.get(player_id, 0))
            return self._load_finished(record, f"Load completed for {player_id}")

    # Internal utilities

    def _stored_version(self, player_id: str) -> Optional[int]:
        versions = [self._versions.get(player_id)]
        existing = self._records.get(player_id)
        if existing is not None:
            versions.append(existing.version)
        elif player_id not in self._versions and self.path_for(player_id).exists():
            try:
                versions.append(self.read(player_id).version)
            except SaveError as e:
                logger.warning("Ignoring unreadable save for %s when checking its version: %s", player_id, e)
        known = [v for v in versions if v is not None]
        return max(known) if known else None

    def _hash(self, record: SaveRecord) -> str:
        try:
            return compute_hash(record)
        except (TypeError, ValueError) as e:
            raise PersistenceIOError(f"Cannot hash record for {record.player_id}: {e}") from e

    def _encode(self, record: SaveRecord) -> str:
        try:
            return encode_record(record)
        except (TypeError, ValueError) as e:
            raise PersistenceIOError(f"Cannot serialize record for {record.player_id}: {e}") from e

    def _write(self, player_id: str, text: str) -> Path:
        path = self.path_for(player_id)
        with self.lock:
            self.ensure_data_root()
            self._atomic_write(path, text)
        logger.debug("Persisted save for %s to %s", player_id, path)
        return path

    def _save_finished(self, success: bool, message: str) -> bool:
        if success:
            logger.info(message)
        else:
            logger.error(message)
        self.events.publish(SAVE_COMPLETED, {"success": success, "message": message})
        return success

    def _load_finished(self, record: SaveRecord, message: str) -> SaveRecord:
        logger.info(message)
        self.events.publish(LOAD_COMPLETED, {"success": True, "message": message})
        return record

    def _atomic_write(self, path: Path, text: str) -> None:
        """Write to path.tmp, fsync, then replace path in one rename."""
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            try:
                tmp.unlink()
            except OSError:
                pass
            raise PersistenceIOError(f"Cannot write {path}: {e}") from e

