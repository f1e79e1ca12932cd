"""Transaction receipt model (append-only, hash-chained)."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class TransactionReceipt(BaseModel):
    """Record of one call executed by the host, successful or not.

    Receipts are journaled, never edited.  ``receipt_hash`` seals every
    other field, including the link to the previous receipt.
    """

    model_config = ConfigDict(frozen=True)

    receipt_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    caller: str
    block_height: int
    operation: str  # e.g. "ArtifactRegistry.register"
    arguments_hash: str = ""  # SHA-256 of canonical call arguments
    succeeded: bool
    error_code: str = ""  # ErrorCode value when not succeeded
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    previous_receipt_hash: str = ""
    receipt_hash: str = ""  # computed on append
