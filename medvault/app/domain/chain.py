"""Hash chaining for the notification log."""
from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional


def canonical_bytes(data: Mapping[str, Any]) -> bytes:
    """Serialize data with deterministic ordering for hashing."""
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def compute_chain_hash(payload: Mapping[str, Any], prev_hash_hex: Optional[str]) -> str:
    """sha256(canonical(payload) || prev_hash), hex encoded."""
    hasher = hashlib.sha256(canonical_bytes(payload))
    if prev_hash_hex:
        hasher.update(bytes.fromhex(prev_hash_hex))
    return hasher.hexdigest()
