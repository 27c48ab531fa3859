"""
Record lifecycle: create, update, transfer ownership, read.

Records are created once, never deleted. Updates bump the version by
exactly one; ownership transfers change the owner and timestamp and leave
the version alone.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..errors import AlreadyExists, AccessError, DoesNotExist
from .audit import AuditLogger
from .authz import Authorizer
from .models import ACCESS_CREATE, ACCESS_READ, ACCESS_TRANSFER, ACCESS_UPDATE, Record
from .store import State, StateStore
from .validation import (
    DEFAULT_MAX_RECORD_ID_LENGTH,
    validate_content_ref,
    validate_distinct,
    validate_identity,
    validate_record_id,
    validate_timestamp,
)

logger = logging.getLogger(__name__)


class RecordLifecycle:
    def __init__(
        self,
        store: StateStore,
        audit: AuditLogger,
        *,
        max_record_id_length: int = DEFAULT_MAX_RECORD_ID_LENGTH,
        audit_reads: bool = True,
    ):
        self.store = store
        self.audit = audit
        self.max_record_id_length = max_record_id_length
        self.audit_reads = audit_reads

    def _existing(self, state: State, record_id: str) -> Record:
        record = state.records.get(record_id)
        if record is None:
            raise DoesNotExist(f"No record {record_id!r}", record_id=record_id)
        return record

    def create(self, record_id: str, content_ref: bytes, caller: str, now: int) -> Record:
        validate_record_id(record_id, max_length=self.max_record_id_length)
        content_ref = validate_content_ref(content_ref)
        validate_identity(caller, field="caller")
        validate_timestamp(now)

        with self.store.transaction() as state:
            if record_id in state.records:
                logger.warning("create rejected: %s already exists (caller=%s)", record_id, caller)
                raise AlreadyExists(f"Record {record_id!r} already exists", record_id=record_id, caller=caller)

            record = Record(
                record_id=record_id,
                owner=caller,
                content_ref=content_ref,
                updated_at=now,
                version=1,
            )
            state.records[record_id] = record
            self.audit.append(state, record_id, now, caller, ACCESS_CREATE)

        logger.info("record created: %s owner=%s ref=%s", record_id, caller, content_ref.hex()[:12])
        return record

    def update(self, record_id: str, content_ref: bytes, caller: str, now: int) -> Record:
        validate_record_id(record_id, max_length=self.max_record_id_length)
        content_ref = validate_content_ref(content_ref)
        validate_identity(caller, field="caller")
        validate_timestamp(now)

        try:
            with self.store.transaction() as state:
                current = self._existing(state, record_id)
                Authorizer(state, now).require(record_id, caller, require_edit=True)

                record = replace(
                    current,
                    content_ref=content_ref,
                    updated_at=now,
                    version=current.version + 1,
                )
                state.records[record_id] = record
                self.audit.append(state, record_id, now, caller, ACCESS_UPDATE)
        except AccessError as e:
            logger.warning("update denied: %s caller=%s (%s)", record_id, caller, e.kind)
            raise

        logger.info("record updated: %s version=%d by=%s", record_id, record.version, caller)
        return record

    def transfer_ownership(self, record_id: str, new_owner: str, caller: str, now: int) -> Record:
        validate_record_id(record_id, max_length=self.max_record_id_length)
        validate_identity(caller, field="caller")
        validate_identity(new_owner, field="new_owner")
        validate_distinct(new_owner, caller, field="new_owner")
        validate_timestamp(now)

        try:
            with self.store.transaction() as state:
                current = self._existing(state, record_id)
                Authorizer(state, now).require_owner(record_id, caller)

                record = replace(current, owner=new_owner, updated_at=now)
                state.records[record_id] = record
                self.audit.append(state, record_id, now, caller, ACCESS_TRANSFER)
        except AccessError as e:
            logger.warning("transfer denied: %s caller=%s (%s)", record_id, caller, e.kind)
            raise

        logger.info("record transferred: %s %s -> %s", record_id, caller, new_owner)
        return record

    def get(self, record_id: str, caller: str, now: int) -> Record:
        """
        Return the full record if `caller` may view it.

        A successful read is logged as a "read" audit entry when
        audit_reads is enabled.
        """
        validate_record_id(record_id, max_length=self.max_record_id_length)
        validate_identity(caller, field="caller")
        validate_timestamp(now)

        try:
            if not self.audit_reads:
                state = self.store.snapshot()
                record = self._existing(state, record_id)
                Authorizer(state, now).require(record_id, caller, require_edit=False)
                return record

            with self.store.transaction() as state:
                record = self._existing(state, record_id)
                Authorizer(state, now).require(record_id, caller, require_edit=False)
                # A read never displaces a same-time entry in overwrite mode
                if not self.audit.would_replace(state, record_id, now):
                    self.audit.append(state, record_id, now, caller, ACCESS_READ)
        except AccessError as e:
            logger.warning("read denied: %s caller=%s (%s)", record_id, caller, e.kind)
            raise

        return record
