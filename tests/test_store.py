from __future__ import annotations

import json
from pathlib import Path

import pytest

from medledger.engine import AccessService, JsonStateStore, MemoryStateStore, Record
from medledger.errors import NotAuthorized, StoreError


def test_transaction_commits_on_clean_exit(store: MemoryStateStore) -> None:
    with store.transaction() as state:
        state.admin = "root"
    assert store.snapshot().admin == "root"


def test_transaction_rolls_back_on_error(store: MemoryStateStore) -> None:
    record = Record(record_id="p1", owner="alice", content_ref=b"\x00" * 32, updated_at=1)

    with pytest.raises(RuntimeError):
        with store.transaction() as state:
            state.records["p1"] = record
            state.admin = "someone-else"
            raise RuntimeError("boom")

    snap = store.snapshot()
    assert snap.records == {}
    assert snap.admin == "admin"


def test_nested_transaction_joins_outer(store: MemoryStateStore) -> None:
    with pytest.raises(RuntimeError):
        with store.transaction() as outer:
            with store.transaction() as inner:
                assert inner is outer
                inner.admin = "inner"
            raise RuntimeError("abort outer")
    assert store.snapshot().admin == "admin"


def test_snapshot_is_private(store: MemoryStateStore) -> None:
    snap = store.snapshot()
    snap.admin = "tampered"
    assert store.snapshot().admin == "admin"


def test_memory_store_requires_admin() -> None:
    with pytest.raises(StoreError):
        MemoryStateStore(admin="")


def test_json_store_round_trip(tmp_path: Path, h1: bytes) -> None:
    path = tmp_path / "state.json"
    svc = AccessService(JsonStateStore.create(path, admin="admin"))
    svc.create("p1", h1, caller="alice", now=1000)
    svc.grant("p1", "bob", can_edit=True, duration=100, caller="alice", now=1001)

    reopened = AccessService(JsonStateStore(path))
    assert reopened.get("p1", caller="bob", now=1050).content_ref == h1
    assert reopened.check("p1", "bob", now=1050).can_edit is True
    assert [e.access_type for e in reopened.audit_entries()] == ["create", "grant", "read"]
    assert not path.with_suffix(".json.tmp").exists()


def test_json_store_document_is_readable(tmp_path: Path, h1: bytes) -> None:
    path = tmp_path / "state.json"
    svc = AccessService(JsonStateStore.create(path, admin="admin"))
    svc.create("p1", h1, caller="alice", now=1000)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["format"] == 1
    assert data["admin"] == "admin"
    assert data["records"][0]["content_ref"] == h1.hex()
    assert data["audit"][0]["access_type"] == "create"


def test_failed_operation_leaves_file_untouched(tmp_path: Path, h1: bytes, h2: bytes) -> None:
    path = tmp_path / "state.json"
    svc = AccessService(JsonStateStore.create(path, admin="admin"))
    svc.create("p1", h1, caller="alice", now=1000)
    before = path.read_bytes()

    with pytest.raises(NotAuthorized):
        svc.update("p1", h2, caller="mallory", now=1001)
    assert path.read_bytes() == before


def test_create_refuses_existing_file(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    JsonStateStore.create(path, admin="admin")
    with pytest.raises(StoreError, match="already exists"):
        JsonStateStore.create(path, admin="other")


def test_create_makes_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "a" / "b" / "state.json"
    store = JsonStateStore.create(path, admin="admin")
    assert path.exists()
    assert store.snapshot().admin == "admin"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(StoreError, match="medledger init"):
        JsonStateStore(tmp_path / "nope.json")


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        '{"format": 99, "admin": "admin"}',
        '{"format": 1}',
        '{"format": 1, "admin": "a", "records": [{"record_id": "p1"}]}',
        '{"format": 1, "admin": "a", "records": [{"record_id": "p1", "owner": "x", "content_ref": "zz", "updated_at": 1}]}',
        '{"format": 1, "admin": "a", "records": [{"record_id": "p1", "owner": "x", "content_ref": "' + "ab" * 31 + '", "updated_at": 1}]}',
    ],
)
def test_corrupt_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "state.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(StoreError):
        JsonStateStore(path)
