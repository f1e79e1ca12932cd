"""Append-only, hash-chained transaction receipt journal backed by SQLite.

Every call the host executes (successful or rejected) leaves one receipt.
The journal is an audit trail next to the state store; it never feeds
back into registry state.

Design:
- Append-only: only ``append()`` writes; no update, no delete.
- Hash-chained: each receipt includes the hash of the previous receipt.
- WAL journal mode for concurrent readers.
- receipt_hash UNIQUE constraint for tamper detection.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from provenant.core.hasher import compute_receipt_hash
from provenant.models.receipts import TransactionReceipt


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_RECEIPTS = """
CREATE TABLE IF NOT EXISTS receipts (
    id                     INTEGER PRIMARY KEY AUTOINCREMENT,
    receipt_id             TEXT NOT NULL UNIQUE,
    caller                 TEXT NOT NULL,
    block_height           INTEGER NOT NULL,
    operation              TEXT NOT NULL,
    arguments_hash         TEXT NOT NULL DEFAULT '',
    succeeded              INTEGER NOT NULL,
    error_code             TEXT NOT NULL DEFAULT '',
    timestamp_utc          TEXT NOT NULL,
    previous_receipt_hash  TEXT NOT NULL DEFAULT '',
    receipt_hash           TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_CALLER = """
CREATE INDEX IF NOT EXISTS idx_receipts_caller ON receipts(caller, id);
"""

_COLUMNS = (
    "receipt_id, caller, block_height, operation, arguments_hash, succeeded, "
    "error_code, timestamp_utc, previous_receipt_hash, receipt_hash"
)


class ReceiptIntegrityError(RuntimeError):
    """Raised when the receipt hash chain is broken."""


class ReceiptJournal:
    """Append-only, hash-chained receipt journal.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_RECEIPTS)
            conn.execute(_CREATE_IDX_CALLER)
            conn.commit()

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append(self, receipt: TransactionReceipt) -> TransactionReceipt:
        """Append a receipt, computing its hash chain link and seal.

        Returns the receipt with ``previous_receipt_hash`` and
        ``receipt_hash`` set.  This is the ONLY write method.
        """
        previous_hash = self._get_latest_hash()

        receipt_dict = receipt.model_dump(mode="json")
        receipt_dict["previous_receipt_hash"] = previous_hash
        receipt_dict["receipt_hash"] = ""

        sealed = receipt.model_copy(
            update={
                "previous_receipt_hash": previous_hash,
                "receipt_hash": compute_receipt_hash(receipt_dict),
            }
        )
        self._insert(sealed)
        return sealed

    def _insert(self, receipt: TransactionReceipt) -> None:
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO receipts ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    receipt.receipt_id,
                    receipt.caller,
                    receipt.block_height,
                    receipt.operation,
                    receipt.arguments_hash,
                    int(receipt.succeeded),
                    receipt.error_code,
                    receipt.timestamp_utc.isoformat()
                    if isinstance(receipt.timestamp_utc, datetime)
                    else receipt.timestamp_utc,
                    receipt.previous_receipt_hash,
                    receipt.receipt_hash,
                ),
            )
            conn.commit()

    def _get_latest_hash(self) -> str:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT receipt_hash FROM receipts ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return row[0] if row else ""

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def get_latest(self) -> TransactionReceipt | None:
        """Return the most recent receipt, or None."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM receipts ORDER BY id DESC LIMIT 1"
            ).fetchone()
        return self._row_to_receipt(row) if row else None

    def get_receipts(self, caller: str | None = None) -> list[TransactionReceipt]:
        """Return receipts in append order, optionally for one caller."""
        with self._connect() as conn:
            if caller is None:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM receipts ORDER BY id ASC"
                ).fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM receipts WHERE caller = ? ORDER BY id ASC",
                    (caller,),
                ).fetchall()
        return [self._row_to_receipt(row) for row in rows]

    def count(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM receipts").fetchone()
        return n

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """Walk every receipt, re-hash it, and check the previous-hash links.

        Returns True if the chain is valid, raises ReceiptIntegrityError otherwise.
        """
        prev_hash = ""
        for receipt in self.get_receipts():
            if receipt.previous_receipt_hash != prev_hash:
                raise ReceiptIntegrityError(
                    f"Chain broken at receipt {receipt.receipt_id}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {receipt.previous_receipt_hash!r}"
                )

            expected_hash = compute_receipt_hash(receipt.model_dump(mode="json"))
            if receipt.receipt_hash != expected_hash:
                raise ReceiptIntegrityError(
                    f"Tampered receipt {receipt.receipt_id}: "
                    f"expected hash={expected_hash!r}, "
                    f"got {receipt.receipt_hash!r}"
                )

            prev_hash = receipt.receipt_hash

        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_receipt(row: tuple) -> TransactionReceipt:
        (
            receipt_id,
            caller,
            block_height,
            operation,
            arguments_hash,
            succeeded,
            error_code,
            timestamp_utc,
            previous_receipt_hash,
            receipt_hash,
        ) = row
        return TransactionReceipt(
            receipt_id=receipt_id,
            caller=caller,
            block_height=block_height,
            operation=operation,
            arguments_hash=arguments_hash,
            succeeded=bool(succeeded),
            error_code=error_code,
            timestamp_utc=timestamp_utc,
            previous_receipt_hash=previous_receipt_hash,
            receipt_hash=receipt_hash,
        )
