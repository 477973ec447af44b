from __future__ import annotations

import pytest

from luckytable.storage import MemoryStore, SqliteStore, StorageError


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteStore(str(tmp_path / "data" / "kv.db"))


def test_sqlite_get_set_remove(sqlite_store):
    assert sqlite_store.get("wallet_balance") is None
    sqlite_store.set("wallet_balance", "1000")
    sqlite_store.set("wallet_balance", "1200")
    assert sqlite_store.get("wallet_balance") == "1200"

    sqlite_store.remove("wallet_balance")
    assert sqlite_store.get("wallet_balance") is None


def test_sqlite_write_many_sets_and_removes(sqlite_store):
    sqlite_store.write_many({"a": "1", "b": "2"})
    sqlite_store.write_many({"a": None, "b": "3", "c": "4"})
    assert sqlite_store.get("a") is None
    assert sqlite_store.get("b") == "3"
    assert sqlite_store.get("c") == "4"


def test_namespaces_are_isolated(sqlite_store):
    alice = sqlite_store.scoped("player:1")
    bob = sqlite_store.scoped("player:2")
    alice.set("wallet_balance", "10")
    bob.set("wallet_balance", "20")

    assert alice.get("wallet_balance") == "10"
    assert bob.get("wallet_balance") == "20"
    assert sqlite_store.get("wallet_balance") is None


def test_data_persists_across_instances(tmp_path):
    path = str(tmp_path / "kv.db")
    SqliteStore(path).set("last_bonus_date", "2024-03-09")
    assert SqliteStore(path).get("last_bonus_date") == "2024-03-09"


def test_sqlite_errors_are_wrapped(sqlite_store, tmp_path):
    sqlite_store.db_path = tmp_path
    with pytest.raises(StorageError):
        sqlite_store.get("anything")
    with pytest.raises(StorageError):
        sqlite_store.write_many({"k": "v"})


def test_memory_store():
    store = MemoryStore({"a": "1"})
    store.write_many({"a": None, "b": "2"})
    store.set("c", "3")
    store.remove("missing")
    assert store.data == {"b": "2", "c": "3"}
