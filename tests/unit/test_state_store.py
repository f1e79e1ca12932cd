"""Tests for the state store backends and record helpers."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from provenant.core.keys import authentication_key, verifier_key
from provenant.core.state_store import (
    InMemoryStateStore,
    SqliteStateStore,
    StateCorruptedError,
    StateStore,
    load_record,
    save_record,
)
from provenant.models.authentication import Verifier


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path: Path) -> StateStore:
    if request.param == "memory":
        return InMemoryStateStore()
    return SqliteStateStore(tmp_path / "state.db")


class TestStateStoreBackends:
    def test_satisfies_protocol(self, any_store: StateStore):
        assert isinstance(any_store, StateStore)

    def test_absent_key(self, any_store: StateStore):
        assert any_store.get("missing") is None
        assert any_store.has("missing") is False

    def test_set_then_get(self, any_store: StateStore):
        any_store.set("k", {"a": 1, "b": [True, "x"]})
        assert any_store.has("k") is True
        assert any_store.get("k") == {"a": 1, "b": [True, "x"]}

    def test_overwrite(self, any_store: StateStore):
        any_store.set("counter", 1)
        any_store.set("counter", 2)
        assert any_store.get("counter") == 2

    def test_values_not_aliased(self, any_store: StateStore):
        value = {"name": "original"}
        any_store.set("k", value)
        value["name"] = "mutated"
        read = any_store.get("k")
        read["name"] = "mutated again"
        assert any_store.get("k") == {"name": "original"}


class TestSqlitePersistence:
    def test_reopen_keeps_state(self, tmp_path: Path):
        path = tmp_path / "state.db"
        SqliteStateStore(path).set("artifact:last-id", 3)
        assert SqliteStateStore(path).get("artifact:last-id") == 3

    def test_creates_parent_directories(self, tmp_path: Path):
        store = SqliteStateStore(tmp_path / "nested" / "dir" / "state.db")
        assert store.path.parent.is_dir()


class TestTransactions:
    def test_commit_applies_writes(self, any_store: StateStore):
        with any_store.transaction() as txn:
            txn.set("a", 1)
            txn.set("b", {"x": [1, 2]})
        assert any_store.get("a") == 1
        assert any_store.get("b") == {"x": [1, 2]}

    def test_reads_see_own_writes(self, any_store: StateStore):
        any_store.set("counter", 1)
        with any_store.transaction() as txn:
            txn.set("counter", txn.get("counter") + 1)
            assert txn.get("counter") == 2
            assert txn.has("fresh") is False
            txn.set("fresh", True)
            assert txn.has("fresh") is True
        assert any_store.get("counter") == 2

    def test_exception_discards_all_writes(self, any_store: StateStore):
        any_store.set("counter", 5)
        with pytest.raises(OSError, match="disk full"):
            with any_store.transaction() as txn:
                txn.set("counter", 6)
                txn.set("record:6", {"id": 6})
                raise OSError("disk full")
        assert any_store.get("counter") == 5
        assert any_store.has("record:6") is False

    def test_store_usable_after_rollback(self, any_store: StateStore):
        with pytest.raises(RuntimeError):
            with any_store.transaction() as txn:
                txn.set("k", 1)
                raise RuntimeError("abort")
        with any_store.transaction() as txn:
            txn.set("k", 2)
        assert any_store.get("k") == 2

    def test_increments_serialize_across_sqlite_instances(self, tmp_path: Path):
        """Separate store objects over one file must not lose updates."""
        path = tmp_path / "state.db"
        stores = [SqliteStateStore(path), SqliteStateStore(path)]

        def worker(store: SqliteStateStore) -> None:
            for _ in range(25):
                with store.transaction() as txn:
                    txn.set("counter", (txn.get("counter") or 0) + 1)

        threads = [threading.Thread(target=worker, args=(s,)) for s in stores]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert SqliteStateStore(path).get("counter") == 50


class TestRecordHelpers:
    def test_round_trip(self, store: InMemoryStateStore):
        verifier = Verifier(identity="v", name="n", organization="o", credentials="c")
        save_record(store, verifier_key("v"), verifier)
        assert load_record(store, verifier_key("v"), Verifier) == verifier

    def test_absent_returns_none(self, store: InMemoryStateStore):
        assert load_record(store, verifier_key("v"), Verifier) is None

    def test_invalid_value_raises(self, store: InMemoryStateStore):
        store.set(verifier_key("v"), {"name": "missing fields"})
        with pytest.raises(StateCorruptedError, match="verifier:v"):
            load_record(store, verifier_key("v"), Verifier)


class TestCompositeKeys:
    def test_distinct_pairs_distinct_keys(self):
        assert authentication_key(1, "A") != authentication_key(1, "B")
        assert authentication_key(1, "A") != authentication_key(2, "A")

    def test_separator_characters_cannot_collide(self):
        """Identities containing delimiters must not alias another pair."""
        assert authentication_key(1, "2-X") != authentication_key(12, "X")
        assert authentication_key(1, '","X') != authentication_key(1, "X")
        assert authentication_key(1, "1:X") != authentication_key(11, "X")
