"""
Permissioned record-access engine.

Owners store a 32-byte reference to off-system encrypted data, grant
time-bounded view/edit access to other identities, revoke it, and transfer
ownership. Every access-relevant event is attributed and logged.

Per-call guarantees:
- Atomicity: effect and audit entry commit together, or not at all
- Attribution: every audit entry names the caller
- Lazy expiry: grants are checked against the caller-supplied time
- Versioning: each successful update bumps the version by exactly one
"""

from .admin import AdminControl
from .audit import AuditLogger, format_audit_entry
from .authz import Authorizer
from .clock import ManualClock, SystemClock
from .content import format_content_ref, hash_content, hash_file, parse_content_ref
from .grants import GrantManager
from .models import (
    ACCESS_CREATE,
    ACCESS_GRANT,
    ACCESS_READ,
    ACCESS_REVOKE,
    ACCESS_TRANSFER,
    ACCESS_TYPES,
    ACCESS_UPDATE,
    AuditEntry,
    CheckResult,
    Grant,
    GrantView,
    Record,
)
from .records import RecordLifecycle
from .service import AccessService
from .store import JsonStateStore, MemoryStateStore, State, StateStore

__all__ = [
    # Models
    "ACCESS_CREATE",
    "ACCESS_GRANT",
    "ACCESS_READ",
    "ACCESS_REVOKE",
    "ACCESS_TRANSFER",
    "ACCESS_TYPES",
    "ACCESS_UPDATE",
    "AuditEntry",
    "CheckResult",
    "Grant",
    "GrantView",
    "Record",
    # Storage
    "JsonStateStore",
    "MemoryStateStore",
    "State",
    "StateStore",
    # Components
    "AdminControl",
    "AuditLogger",
    "Authorizer",
    "GrantManager",
    "RecordLifecycle",
    "AccessService",
    # Time and content
    "ManualClock",
    "SystemClock",
    "format_audit_entry",
    "format_content_ref",
    "hash_content",
    "hash_file",
    "parse_content_ref",
]
