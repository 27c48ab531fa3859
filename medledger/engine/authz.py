"""
Authorization engine.

Answers "may `caller` touch `record_id` right now, and how?" from two
sources of authority:

- Ownership: permanent, full authority over a record.
- Grants: delegated, time-bounded, capability-scoped access.

Expiry is evaluated lazily against the caller-supplied `now`. There is no
sweep and no "expired" state transition; a stale grant row simply stops
conveying access.
"""

from __future__ import annotations

from ..errors import ExpiredAccess, NotAuthorized
from .store import State


class Authorizer:
    """Pure decision functions over one state snapshot at one instant."""

    def __init__(self, state: State, now: int):
        self.state = state
        self.now = now

    def is_owner(self, record_id: str, caller: str) -> bool:
        """True iff the record exists and `caller` owns it. Absence is not an error."""
        record = self.state.records.get(record_id)
        return record is not None and record.owner == caller

    def has_access(self, record_id: str, caller: str, require_edit: bool) -> bool:
        grant = self.state.grants.get((record_id, caller))
        if grant is None or not grant.is_live(self.now):
            return False
        if require_edit:
            return grant.can_edit
        return grant.can_view

    def authorize(self, record_id: str, caller: str, require_edit: bool) -> bool:
        """The single gate used by update and get."""
        return self.is_owner(record_id, caller) or self.has_access(record_id, caller, require_edit)

    def require(self, record_id: str, caller: str, require_edit: bool) -> None:
        """
        Raise unless `authorize()` passes.

        Raises:
            ExpiredAccess: The caller's grant would have sufficed but has expired
            NotAuthorized: Any other denial
        """
        if self.authorize(record_id, caller, require_edit):
            return

        capability = "edit" if require_edit else "view"
        grant = self.state.grants.get((record_id, caller))
        if grant is not None and not grant.is_live(self.now) and (grant.can_edit or not require_edit):
            raise ExpiredAccess(
                f"{capability} access to {record_id!r} expired at {grant.expires_at}",
                record_id=record_id,
                caller=caller,
            )
        raise NotAuthorized(
            f"{caller!r} has no {capability} access to {record_id!r}",
            record_id=record_id,
            caller=caller,
        )

    def require_owner(self, record_id: str, caller: str) -> None:
        """Raise NotAuthorized unless `caller` owns the record. Grants never satisfy this."""
        if not self.is_owner(record_id, caller):
            raise NotAuthorized(
                f"{caller!r} is not the owner of {record_id!r}",
                record_id=record_id,
                caller=caller,
            )
