"""Key-value state store backends for the registries.

The registries only need ``get``/``set``/``has`` with read-your-writes
consistency.  An absent key is a normal outcome: ``get`` returns ``None``.

Values are JSON-compatible (mappings, lists, strings, numbers, booleans)
and always round-trip through canonical JSON, so a caller mutating a
value it read never changes stored state.

Every read-modify-write runs inside ``transaction()``: the reads and the
writes made through the yielded view commit together or not at all, and
no other transaction on the same backing state interleaves with them.

Backends:

* ``InMemoryStateStore``: process-local dict, for tests and ephemeral hosts.
* ``SqliteStateStore``: one ``state`` table in a WAL-journaled SQLite file.
  Transactions take the database write lock up front (``BEGIN IMMEDIATE``),
  so they serialize across store instances and processes sharing the file.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from provenant.core.hasher import canonical_json_text

ModelT = TypeVar("ModelT", bound=BaseModel)


class StateCorruptedError(RuntimeError):
    """Raised when a stored value does not decode into its record model."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"Corrupted state at {key!r}: {reason}")


@runtime_checkable
class StateView(Protocol):
    """Read/write access to state: a whole store or one open transaction."""

    def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None`` if absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    def has(self, key: str) -> bool:
        """Return ``True`` if *key* holds a value."""
        ...


@runtime_checkable
class StateStore(StateView, Protocol):
    """Protocol for the ledger state store.

    Any object with these methods satisfies it.
    """

    def transaction(self) -> AbstractContextManager[StateView]:
        """Open an atomic, serialized unit of reads and writes.

        Writes made through the yielded view are applied when the block
        exits normally and discarded if it raises.
        """
        ...


class _BufferedTransaction:
    """Transaction view over an ``InMemoryStateStore``: writes are buffered."""

    def __init__(self, store: InMemoryStateStore) -> None:
        self._store = store
        self.pending: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        if key in self.pending:
            return json.loads(self.pending[key])
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self.pending[key] = canonical_json_text(value)

    def has(self, key: str) -> bool:
        return key in self.pending or self._store.has(key)


class InMemoryStateStore:
    """Dict-backed state store holding canonical JSON text."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        # Reentrant: an open transaction reads through get()/has().
        self._lock = threading.RLock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        encoded = canonical_json_text(value)
        with self._lock:
            self._data[key] = encoded

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    @contextmanager
    def transaction(self) -> Iterator[StateView]:
        with self._lock:
            txn = _BufferedTransaction(self)
            yield txn
            self._data.update(txn.pending)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


def load_record(view: StateView, key: str, model: type[ModelT]) -> ModelT | None:
    """Read *key* and validate it as *model*.

    Returns ``None`` when the key is absent.

    Raises
    ------
    StateCorruptedError
        If a value is present but fails model validation.
    """
    raw = view.get(key)
    if raw is None:
        return None
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise StateCorruptedError(key, f"{exc.error_count()} validation error(s)") from exc


def save_record(view: StateView, key: str, record: BaseModel) -> None:
    """Write *record* under *key* in its JSON form."""
    view.set(key, record.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# SQLite backend
# ---------------------------------------------------------------------------

_CREATE_STATE = """
CREATE TABLE IF NOT EXISTS state (
    key    TEXT PRIMARY KEY,
    value  TEXT NOT NULL
);
"""

_UPSERT = """
INSERT INTO state (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value
"""

# Seconds a connection waits for another writer to release the database.
_BUSY_TIMEOUT_S = 30.0


class _SqliteView:
    """State view over one open connection (inside a transaction or not)."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str) -> Any | None:
        row = self._conn.execute(
            "SELECT value FROM state WHERE key = ?", (key,)
        ).fetchone()
        return json.loads(row[0]) if row else None

    def set(self, key: str, value: Any) -> None:
        self._conn.execute(_UPSERT, (key, canonical_json_text(value)))

    def has(self, key: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM state WHERE key = ?", (key,)
        ).fetchone()
        return row is not None


class SqliteStateStore:
    """SQLite-backed state store.

    Several instances (or processes) may open the same file; transactions
    are serialized by SQLite's database write lock.

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
        conn = sqlite3.connect(
            str(self._db_path), timeout=_BUSY_TIMEOUT_S, check_same_thread=False
        )
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_STATE)
            conn.commit()

    @property
    def path(self) -> Path:
        return self._db_path

    def get(self, key: str) -> Any | None:
        with self._connect() as conn:
            return _SqliteView(conn).get(key)

    def set(self, key: str, value: Any) -> None:
        with self._connect() as conn:
            conn.execute(_UPSERT, (key, canonical_json_text(value)))
            conn.commit()

    def has(self, key: str) -> bool:
        with self._connect() as conn:
            return _SqliteView(conn).has(key)

    @contextmanager
    def transaction(self) -> Iterator[StateView]:
        conn = self._connect()
        # Autocommit mode: the BEGIN/COMMIT below are the only boundaries.
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield _SqliteView(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()
