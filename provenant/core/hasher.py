"""Canonical serialization and hashing helpers.

Canonical JSON is used for three things: the stored form of every state
value, collision-free composite keys, and receipt hash chaining.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def canonical_json_text(obj: Any) -> str:
    """Canonical JSON as ``str`` (ASCII-only, so decoding cannot fail)."""
    return canonical_json_bytes(obj).decode("ascii")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_arguments_hash(args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """SHA-256 of canonical(positional + keyword call arguments)."""
    payload = {"args": list(args), "kwargs": kwargs}
    return sha256_hex(canonical_json_bytes(payload))


def compute_receipt_hash(receipt_dict: dict[str, Any]) -> str:
    """SHA-256 of a receipt (excluding the receipt_hash field itself).

    This is the seal that makes each receipt tamper-evident.
    """
    d = {k: v for k, v in receipt_dict.items() if k != "receipt_hash"}
    return sha256_hex(canonical_json_bytes(d))
