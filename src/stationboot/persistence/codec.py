from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict

from ..errors import CorruptSaveError, SaveValidationError
from .models import SaveRecord


def encode_record(record: SaveRecord) -> str:
    """Encode a SaveRecord to a pretty-printed JSON string."""
    return json.dumps(record.to_dict(), ensure_ascii=False, sort_keys=True, indent=2)


def decode_record(text: str) -> SaveRecord:
    """Decode JSON text into a SaveRecord."""
    try:
        data: Dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise CorruptSaveError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise CorruptSaveError("Save file root must be a JSON object")
    try:
        return SaveRecord.from_dict(data)
    except (TypeError, ValueError, AttributeError) as e:
        raise SaveValidationError(f"Malformed save record: {e}") from e


def compute_hash(record: SaveRecord) -> str:
    """SHA-256 (base64) over the compact JSON form, with the hash field itself blanked."""
    data = record.to_dict()
    data["data_hash"] = ""
    compact = json.dumps(data, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(compact.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_hash(record: SaveRecord) -> bool:
    """True if the record carries a hash and it matches its contents."""
    return bool(record.data_hash) and record.data_hash == compute_hash(record)
