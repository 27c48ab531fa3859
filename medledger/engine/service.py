"""
Single entry point for the record-access engine.

AccessService composes the record lifecycle, grant manager, audit logger
and admin control over one state store. Every public operation takes the
caller identity and the current time as explicit inputs; the service
never authenticates callers and never reads a clock.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

from .admin import AdminControl
from .audit import AuditLogger, CollisionMode
from .grants import GrantManager
from .models import AuditEntry, CheckResult, Grant, GrantView, Record
from .records import RecordLifecycle
from .store import JsonStateStore, StateStore
from .validation import DEFAULT_MAX_RECORD_ID_LENGTH

if TYPE_CHECKING:
    from ..config import Settings


class AccessService:
    """
    Facade over the engine components.

    Example:

        store = MemoryStateStore(admin="admin")
        svc = AccessService(store)
        svc.create("p1", ref, caller="alice", now=1000)
        svc.grant("p1", "bob", can_edit=False, duration=100, caller="alice", now=1000)
        svc.check("p1", "bob", now=1050)
    """

    def __init__(
        self,
        store: StateStore,
        *,
        audit_reads: bool = True,
        audit_collisions: CollisionMode = "sequence",
        max_record_id_length: int = DEFAULT_MAX_RECORD_ID_LENGTH,
    ):
        self.store = store
        self.audit = AuditLogger(collisions=audit_collisions)
        self.records = RecordLifecycle(
            store,
            self.audit,
            max_record_id_length=max_record_id_length,
            audit_reads=audit_reads,
        )
        self.grants = GrantManager(store, self.audit, max_record_id_length=max_record_id_length)
        self.admin_control = AdminControl(store)

    @classmethod
    def from_settings(cls, settings: Settings, *, state_path: Path | None = None) -> AccessService:
        """Open the JSON state file named by `settings` (or `state_path`)."""
        store = JsonStateStore(state_path or settings.state_path)
        return cls(
            store,
            audit_reads=settings.audit_reads,
            audit_collisions=settings.audit_collisions,  # type: ignore[arg-type]
            max_record_id_length=settings.max_record_id_length,
        )

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def create(self, record_id: str, content_ref: bytes, *, caller: str, now: int) -> Record:
        return self.records.create(record_id, content_ref, caller, now)

    def update(self, record_id: str, content_ref: bytes, *, caller: str, now: int) -> Record:
        return self.records.update(record_id, content_ref, caller, now)

    def transfer_ownership(self, record_id: str, new_owner: str, *, caller: str, now: int) -> Record:
        return self.records.transfer_ownership(record_id, new_owner, caller, now)

    def get(self, record_id: str, *, caller: str, now: int) -> Record:
        return self.records.get(record_id, caller, now)

    # -------------------------------------------------------------------------
    # Grants
    # -------------------------------------------------------------------------

    def grant(
        self,
        record_id: str,
        viewer: str,
        *,
        can_edit: bool,
        duration: int,
        caller: str,
        now: int,
    ) -> Grant:
        return self.grants.grant(record_id, viewer, can_edit, duration, caller, now)

    def revoke(self, record_id: str, viewer: str, *, caller: str, now: int) -> bool:
        return self.grants.revoke(record_id, viewer, caller, now)

    def check(self, record_id: str, viewer: str, *, now: int) -> CheckResult:
        return self.grants.check(record_id, viewer, now)

    def list_grants(self, record_id: str, *, caller: str, now: int) -> list[GrantView]:
        return self.grants.list_grants(record_id, caller, now)

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    def admin(self) -> str:
        return self.admin_control.admin()

    def change_admin(self, new_admin: str, *, caller: str) -> str:
        return self.admin_control.change_admin(new_admin, caller)

    # -------------------------------------------------------------------------
    # Audit (read side, for external consumers)
    # -------------------------------------------------------------------------

    def audit_entries(
        self,
        *,
        record_id: str | None = None,
        accessor: str | None = None,
        access_type: str | None = None,
        since: int | None = None,
        until: int | None = None,
        limit: int | None = None,
        order: Literal["asc", "desc"] = "asc",
    ) -> list[AuditEntry]:
        return self.audit.entries(
            self.store.snapshot(),
            record_id=record_id,
            accessor=accessor,
            access_type=access_type,
            since=since,
            until=until,
            limit=limit,
            order=order,
        )
