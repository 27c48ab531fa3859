"""
End-to-end walkthroughs of the record-access lifecycle.

Each test drives one AccessService through a realistic sequence and checks
both the returned values and the resulting audit trail.
"""

from __future__ import annotations

import pytest

from medledger.engine import AccessService, CheckResult, ManualClock
from medledger.errors import InvalidInput, NotAuthorized


def test_create_and_owner_update(svc: AccessService, h1: bytes, h2: bytes) -> None:
    created = svc.create("p1", h1, caller="alice", now=1000)
    assert (created.owner, created.version, created.updated_at) == ("alice", 1, 1000)

    updated = svc.update("p1", h2, caller="alice", now=1010)
    assert (updated.content_ref, updated.version, updated.updated_at) == (h2, 2, 1010)

    trail = [(e.access_type, e.accessor) for e in svc.audit_entries(record_id="p1")]
    assert trail == [("create", "alice"), ("update", "alice")]


def test_view_grant_lifetime(svc: AccessService, alice_record: str, h2: bytes) -> None:
    svc.grant(alice_record, "bob", can_edit=False, duration=100, caller="alice", now=1000)

    assert svc.check(alice_record, "bob", now=1050) == CheckResult(True, False, 50)
    with pytest.raises(NotAuthorized):
        svc.update(alice_record, h2, caller="bob", now=1050)

    assert svc.check(alice_record, "bob", now=1100) == CheckResult(False, False, 0)
    # The expired grant row is still stored
    assert svc.list_grants(alice_record, caller="alice", now=1100)[0].live is False


def test_edit_grant_then_revoke(svc: AccessService, alice_record: str, h2: bytes) -> None:
    svc.grant(alice_record, "bob", can_edit=True, duration=100, caller="alice", now=1000)
    assert svc.update(alice_record, h2, caller="bob", now=1020).version == 2

    svc.revoke(alice_record, "bob", caller="alice", now=1030)
    with pytest.raises(NotAuthorized):
        svc.update(alice_record, h2, caller="bob", now=1040)

    trail = [(e.timestamp, e.access_type, e.accessor) for e in svc.audit_entries(record_id=alice_record)]
    assert trail == [
        (1000, "create", "alice"),
        (1000, "grant", "alice"),
        (1020, "update", "bob"),
        (1030, "revoke", "alice"),
    ]


def test_transfer_hands_over_control(svc: AccessService, alice_record: str, h2: bytes) -> None:
    transferred = svc.transfer_ownership(alice_record, "carol", caller="alice", now=1000)
    assert (transferred.owner, transferred.version) == ("carol", 1)

    with pytest.raises(NotAuthorized):
        svc.update(alice_record, h2, caller="alice", now=1001)
    assert svc.update(alice_record, h2, caller="carol", now=1002).version == 2


def test_invalid_inputs_change_nothing(svc: AccessService, alice_record: str) -> None:
    before = svc.store.snapshot()

    with pytest.raises(InvalidInput):
        svc.grant(alice_record, "bob", can_edit=False, duration=0, caller="alice", now=1000)
    with pytest.raises(InvalidInput):
        svc.grant(alice_record, "alice", can_edit=True, duration=100, caller="alice", now=1000)

    after = svc.store.snapshot()
    assert after.grants == before.grants
    assert after.audit == before.audit


def test_expiry_is_monotonic(svc: AccessService, alice_record: str) -> None:
    svc.grant(alice_record, "bob", can_edit=False, duration=30, caller="alice", now=1000)
    clock = ManualClock(start=1000)

    seen = []
    for _ in range(10):
        seen.append(svc.check(alice_record, "bob", now=clock.now()).has_access)
        clock.advance(7)

    # Once access is gone it never comes back without a new grant
    first_denied = seen.index(False)
    assert all(seen[:first_denied])
    assert not any(seen[first_denied:])
