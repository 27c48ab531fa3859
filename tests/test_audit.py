from __future__ import annotations

import pytest

from medledger.engine import AccessService, AuditEntry, AuditLogger, MemoryStateStore, State
from medledger.engine.audit import format_audit_entry
from medledger.errors import InvalidInput, NotAuthorized


def _trail(svc: AccessService, record_id: str) -> list[tuple[int, str, str]]:
    return [(e.timestamp, e.access_type, e.accessor) for e in svc.audit_entries(record_id=record_id)]


def test_each_operation_logs_one_entry(svc: AccessService, h1: bytes, h2: bytes) -> None:
    svc.create("p1", h1, caller="alice", now=1000)
    svc.grant("p1", "bob", can_edit=True, duration=100, caller="alice", now=1001)
    svc.update("p1", h2, caller="bob", now=1002)
    svc.get("p1", caller="bob", now=1003)
    svc.revoke("p1", "bob", caller="alice", now=1004)
    svc.transfer_ownership("p1", "carol", caller="alice", now=1005)

    assert _trail(svc, "p1") == [
        (1000, "create", "alice"),
        (1001, "grant", "alice"),
        (1002, "update", "bob"),
        (1003, "read", "bob"),
        (1004, "revoke", "alice"),
        (1005, "transfer", "alice"),
    ]


def test_reads_not_logged_when_disabled(store: MemoryStateStore, h1: bytes) -> None:
    svc = AccessService(store, audit_reads=False)
    svc.create("p1", h1, caller="alice", now=1000)
    svc.get("p1", caller="alice", now=1001)

    assert [e.access_type for e in svc.audit_entries()] == ["create"]


def test_check_is_never_logged(svc: AccessService, alice_record: str) -> None:
    svc.grant(alice_record, "bob", can_edit=False, duration=100, caller="alice", now=1000)
    before = len(svc.audit_entries())
    svc.check(alice_record, "bob", now=1010)
    assert len(svc.audit_entries()) == before


def test_failed_operations_leave_no_entry(svc: AccessService, alice_record: str, h2: bytes) -> None:
    before = svc.audit_entries()

    with pytest.raises(NotAuthorized):
        svc.update(alice_record, h2, caller="mallory", now=1001)
    with pytest.raises(NotAuthorized):
        svc.get(alice_record, caller="mallory", now=1001)
    with pytest.raises(NotAuthorized):
        svc.grant(alice_record, "eve", can_edit=False, duration=10, caller="mallory", now=1001)
    with pytest.raises(InvalidInput):
        svc.grant(alice_record, "bob", can_edit=False, duration=0, caller="alice", now=1001)

    assert svc.audit_entries() == before


def test_same_time_events_get_sequence_numbers(svc: AccessService, h1: bytes, h2: bytes) -> None:
    svc.create("p1", h1, caller="alice", now=1000)
    svc.update("p1", h2, caller="alice", now=1000)
    svc.update("p1", h1, caller="alice", now=1000)

    entries = svc.audit_entries(record_id="p1")
    assert [(e.access_type, e.sequence) for e in entries] == [("create", 0), ("update", 1), ("update", 2)]


def test_overwrite_mode_keeps_last_event(store: MemoryStateStore, h1: bytes, h2: bytes) -> None:
    svc = AccessService(store, audit_collisions="overwrite")
    svc.create("p1", h1, caller="alice", now=1000)
    svc.update("p1", h2, caller="alice", now=1000)

    entries = svc.audit_entries(record_id="p1")
    assert len(entries) == 1
    assert entries[0].access_type == "update"


def test_unknown_collision_mode() -> None:
    with pytest.raises(ValueError, match="Invalid collision mode"):
        AuditLogger(collisions="drop")  # type: ignore[arg-type]


def test_append_rejects_unknown_type() -> None:
    with pytest.raises(InvalidInput, match="Unknown access type"):
        AuditLogger().append(State(admin="admin"), "p1", 1, "alice", "delete")


def test_entries_filters(svc: AccessService, h1: bytes) -> None:
    svc.create("p1", h1, caller="alice", now=1000)
    svc.create("p2", h1, caller="bob", now=1005)
    svc.grant("p1", "bob", can_edit=False, duration=100, caller="alice", now=1010)
    svc.get("p1", caller="bob", now=1020)

    assert [e.record_id for e in svc.audit_entries(accessor="bob")] == ["p2", "p1"]
    assert [e.timestamp for e in svc.audit_entries(access_type="create")] == [1000, 1005]
    assert [e.timestamp for e in svc.audit_entries(since=1005, until=1010)] == [1005, 1010]
    assert [e.timestamp for e in svc.audit_entries(order="desc", limit=2)] == [1020, 1010]
    assert svc.audit_entries(record_id="p3") == []


def test_format_audit_entry() -> None:
    entry = AuditEntry(record_id="p1", timestamp=1000, accessor="bob", access_type="read")
    assert format_audit_entry(entry) == "[1000] p1 read by bob"

    entry = AuditEntry(record_id="p1", timestamp=1000, accessor="bob", access_type="read", sequence=2)
    assert format_audit_entry(entry) == "[1000#2] p1 read by bob"


def test_entry_rejects_unknown_type() -> None:
    with pytest.raises(ValueError, match="Invalid access_type"):
        AuditEntry(record_id="p1", timestamp=1, accessor="a", access_type="bogus")


def test_entry_json_is_single_line() -> None:
    entry = AuditEntry(record_id="p1", timestamp=7, accessor="alice", access_type="create")
    assert entry.to_json() == '{"record_id":"p1","timestamp":7,"sequence":0,"accessor":"alice","access_type":"create"}'
    assert AuditEntry.from_dict(entry.to_dict()) == entry


def test_overwrite_mode_read_keeps_write_entry(store: MemoryStateStore, h1: bytes, h2: bytes) -> None:
    svc = AccessService(store, audit_collisions="overwrite")
    svc.create("p1", h1, caller="alice", now=1000)
    svc.grant("p1", "bob", can_edit=True, duration=100, caller="alice", now=1001)
    svc.update("p1", h2, caller="bob", now=1050)
    svc.get("p1", caller="alice", now=1050)

    trail = [(e.timestamp, e.access_type) for e in svc.audit_entries(record_id="p1")]
    assert trail == [(1000, "create"), (1001, "grant"), (1050, "update")]

    # A read at a fresh time is still logged
    svc.get("p1", caller="alice", now=1060)
    assert svc.audit_entries(record_id="p1")[-1].access_type == "read"
