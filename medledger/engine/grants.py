"""
Grant manager: owner-issued, time-bounded view/edit delegation.

At most one grant exists per (record, viewer); granting again overwrites
it. Grants are never pruned on expiry, only by explicit revoke.
"""

from __future__ import annotations

import logging

from ..errors import AccessError
from .audit import AuditLogger
from .authz import Authorizer
from .models import ACCESS_GRANT, ACCESS_REVOKE, CheckResult, Grant, GrantView
from .store import StateStore
from .validation import (
    DEFAULT_MAX_RECORD_ID_LENGTH,
    validate_distinct,
    validate_duration,
    validate_identity,
    validate_record_id,
    validate_timestamp,
)

logger = logging.getLogger(__name__)


class GrantManager:
    def __init__(
        self,
        store: StateStore,
        audit: AuditLogger,
        *,
        max_record_id_length: int = DEFAULT_MAX_RECORD_ID_LENGTH,
    ):
        self.store = store
        self.audit = audit
        self.max_record_id_length = max_record_id_length

    def _validate_target(self, record_id: str, viewer: str, caller: str, now: int) -> None:
        validate_record_id(record_id, max_length=self.max_record_id_length)
        validate_identity(caller, field="caller")
        validate_identity(viewer, field="viewer")
        validate_distinct(viewer, caller, field="viewer")
        validate_timestamp(now)

    def grant(
        self,
        record_id: str,
        viewer: str,
        can_edit: bool,
        duration: int,
        caller: str,
        now: int,
    ) -> Grant:
        """
        Upsert the grant for (record_id, viewer), expiring at now + duration.

        Only the record's owner may grant; an edit-grantee cannot sub-grant.
        Record existence is not checked separately: without a record there
        is no owner, so the ownership check denies the call.
        """
        self._validate_target(record_id, viewer, caller, now)
        expires_at = validate_duration(duration, now)

        try:
            with self.store.transaction() as state:
                Authorizer(state, now).require_owner(record_id, caller)

                grant = Grant(
                    record_id=record_id,
                    viewer=viewer,
                    can_edit=bool(can_edit),
                    expires_at=expires_at,
                )
                state.grants[grant.key] = grant
                self.audit.append(state, record_id, now, caller, ACCESS_GRANT)
        except AccessError as e:
            logger.warning("grant denied: %s viewer=%s caller=%s (%s)", record_id, viewer, caller, e.kind)
            raise

        logger.info(
            "grant upserted: %s viewer=%s edit=%s expires_at=%d",
            record_id,
            viewer,
            grant.can_edit,
            expires_at,
        )
        return grant

    def revoke(self, record_id: str, viewer: str, caller: str, now: int) -> bool:
        """
        Delete the grant for (record_id, viewer) if present.

        Revoking a grant that does not exist succeeds; the audit entry is
        written either way.

        Returns:
            True if a grant was removed
        """
        self._validate_target(record_id, viewer, caller, now)

        try:
            with self.store.transaction() as state:
                Authorizer(state, now).require_owner(record_id, caller)
                removed = state.grants.pop((record_id, viewer), None) is not None
                self.audit.append(state, record_id, now, caller, ACCESS_REVOKE)
        except AccessError as e:
            logger.warning("revoke denied: %s viewer=%s caller=%s (%s)", record_id, viewer, caller, e.kind)
            raise

        logger.info("grant revoked: %s viewer=%s removed=%s", record_id, viewer, removed)
        return removed

    def check(self, record_id: str, viewer: str, now: int) -> CheckResult:
        """Report the viewer's live grant, if any. Open to anyone; never audited."""
        validate_record_id(record_id, max_length=self.max_record_id_length)
        validate_identity(viewer, field="viewer")
        validate_timestamp(now)

        grant = self.store.snapshot().grants.get((record_id, viewer))
        if grant is None or not grant.is_live(now):
            return CheckResult.denied()
        return CheckResult(
            has_access=True,
            can_edit=grant.can_edit,
            time_remaining=grant.time_remaining(now),
        )

    def list_grants(self, record_id: str, caller: str, now: int) -> list[GrantView]:
        """List every stored grant on a record, expired ones included. Owner only."""
        validate_record_id(record_id, max_length=self.max_record_id_length)
        validate_identity(caller, field="caller")
        validate_timestamp(now)

        state = self.store.snapshot()
        Authorizer(state, now).require_owner(record_id, caller)
        views = [
            GrantView(grant=g, live=g.is_live(now), time_remaining=g.time_remaining(now))
            for key, g in state.grants.items()
            if key[0] == record_id
        ]
        views.sort(key=lambda v: v.grant.viewer)
        return views
