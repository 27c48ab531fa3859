"""
Audit logging for access-relevant operations.

Every successful create/update/grant/revoke/transfer (and, when enabled,
read) appends exactly one entry attributed to the caller. Entries are
written inside the same transaction as the effect they describe, so a
failed operation leaves no trace in the log.

The engine never reads entries back to make decisions. entries() exists
for external audit consumers.
"""

from __future__ import annotations

from typing import Literal

from ..errors import InvalidInput
from .models import ACCESS_TYPES, AuditEntry
from .store import State

CollisionMode = Literal["sequence", "overwrite"]
COLLISION_MODES = ("sequence", "overwrite")


class AuditLogger:
    """
    Appends and queries audit entries.

    Entries are keyed by (record_id, timestamp, sequence). In "sequence"
    mode a second event on the same record in the same time unit gets the
    next sequence number. In "overwrite" mode the sequence is always 0 and
    the later entry replaces the earlier one.
    """

    def __init__(self, collisions: CollisionMode = "sequence"):
        if collisions not in COLLISION_MODES:
            raise ValueError(f"Invalid collision mode: {collisions!r}")
        self.collisions = collisions

    def append(
        self,
        state: State,
        record_id: str,
        now: int,
        accessor: str,
        access_type: str,
    ) -> AuditEntry:
        """
        Append an entry to the log held in `state`.

        Args:
            state: Working state of the enclosing transaction
            record_id: Record the event concerns
            now: Current time of the operation
            accessor: Caller of the operation
            access_type: One of ACCESS_TYPES

        Returns:
            The stored entry
        """
        if access_type not in ACCESS_TYPES:
            raise InvalidInput(f"Unknown access type: {access_type!r}")

        sequence = 0
        if self.collisions == "sequence":
            while (record_id, now, sequence) in state.audit:
                sequence += 1

        entry = AuditEntry(
            record_id=record_id,
            timestamp=now,
            accessor=accessor,
            access_type=access_type,
            sequence=sequence,
        )
        state.audit[entry.key] = entry
        return entry

    def would_replace(self, state: State, record_id: str, now: int) -> bool:
        """True if an append at `now` would overwrite an existing entry."""
        return self.collisions == "overwrite" and (record_id, now, 0) in state.audit

    def entries(
        self,
        state: State,
        *,
        record_id: str | None = None,
        accessor: str | None = None,
        access_type: str | None = None,
        since: int | None = None,
        until: int | None = None,
        limit: int | None = None,
        order: Literal["asc", "desc"] = "asc",
    ) -> list[AuditEntry]:
        """
        Query entries with composable filters.

        Args:
            record_id: Filter by record
            accessor: Filter by the identity that performed the access
            access_type: Filter by access-type tag
            since: Entries at or after this time
            until: Entries at or before this time
            limit: Maximum number of entries to return (applied after ordering)
            order: "asc" = oldest first, "desc" = newest first

        Returns:
            Matching entries ordered by (timestamp, record_id, sequence)
        """
        results = [
            e
            for e in state.audit.values()
            if (record_id is None or e.record_id == record_id)
            and (accessor is None or e.accessor == accessor)
            and (access_type is None or e.access_type == access_type)
            and (since is None or e.timestamp >= since)
            and (until is None or e.timestamp <= until)
        ]
        results.sort(key=lambda e: (e.timestamp, e.record_id, e.sequence), reverse=(order == "desc"))
        if limit is not None and limit >= 0:
            results = results[:limit]
        return results


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    suffix = f"#{entry.sequence}" if entry.sequence else ""
    return f"[{entry.timestamp}{suffix}] {entry.record_id} {entry.access_type} by {entry.accessor}"
