from __future__ import annotations

import pytest

from medledger.engine import AccessService
from medledger.errors import InvalidInput, NotAuthorized


def test_admin_handover(svc: AccessService) -> None:
    assert svc.admin() == "admin"

    assert svc.change_admin("admin2", caller="admin") == "admin2"
    assert svc.admin() == "admin2"

    # The old admin has no say any more
    with pytest.raises(NotAuthorized):
        svc.change_admin("admin", caller="admin")


def test_non_admin_cannot_change(svc: AccessService) -> None:
    with pytest.raises(NotAuthorized, match="not the admin"):
        svc.change_admin("mallory", caller="mallory2")
    assert svc.admin() == "admin"


@pytest.mark.parametrize("new_admin", ["", "   ", "admin"])
def test_invalid_successor(svc: AccessService, new_admin: str) -> None:
    with pytest.raises(InvalidInput):
        svc.change_admin(new_admin, caller="admin")
    assert svc.admin() == "admin"


def test_admin_has_no_record_rights(svc: AccessService, alice_record: str, h2: bytes) -> None:
    with pytest.raises(NotAuthorized):
        svc.get(alice_record, caller="admin", now=1001)
    with pytest.raises(NotAuthorized):
        svc.update(alice_record, h2, caller="admin", now=1001)


def test_admin_change_is_not_audited(svc: AccessService) -> None:
    svc.change_admin("admin2", caller="admin")
    assert svc.audit_entries() == []
