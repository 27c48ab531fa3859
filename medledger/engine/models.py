"""
Immutable value types for the record-access engine.

State is never mutated in place: an update produces a new Record via
dataclasses.replace(), and the store swaps whole values inside a
transaction.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

# Audit access-type tags
ACCESS_CREATE = "create"
ACCESS_UPDATE = "update"
ACCESS_GRANT = "grant"
ACCESS_REVOKE = "revoke"
ACCESS_TRANSFER = "transfer"
ACCESS_READ = "read"

# All valid access types
ACCESS_TYPES = frozenset({
    ACCESS_CREATE,
    ACCESS_UPDATE,
    ACCESS_GRANT,
    ACCESS_REVOKE,
    ACCESS_TRANSFER,
    ACCESS_READ,
})

CONTENT_REF_SIZE = 32
MAX_TIMESTAMP = 2**64 - 1


@dataclass(frozen=True)
class Record:
    """
    A tracked reference to off-system encrypted data.

    The record itself holds no grants and no log entries; those are keyed
    back to it by record_id.
    """

    record_id: str
    owner: str
    content_ref: bytes  # exactly CONTENT_REF_SIZE bytes
    updated_at: int
    version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "record_id": self.record_id,
            "owner": self.owner,
            "content_ref": self.content_ref.hex(),
            "updated_at": self.updated_at,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Record:
        """Reconstruct from JSON dict."""
        content_ref = bytes.fromhex(data["content_ref"])
        if len(content_ref) != CONTENT_REF_SIZE:
            raise ValueError(f"content_ref of {data['record_id']!r} is {len(content_ref)} bytes, not {CONTENT_REF_SIZE}")
        return cls(
            record_id=data["record_id"],
            owner=data["owner"],
            content_ref=content_ref,
            updated_at=int(data["updated_at"]),
            version=int(data.get("version", 1)),
        )


@dataclass(frozen=True)
class Grant:
    """Time-bounded, capability-scoped delegation to a non-owner."""

    record_id: str
    viewer: str
    can_edit: bool
    expires_at: int
    can_view: bool = True

    def is_live(self, now: int) -> bool:
        return now < self.expires_at

    def time_remaining(self, now: int) -> int:
        return max(self.expires_at - now, 0)

    @property
    def key(self) -> tuple[str, str]:
        return (self.record_id, self.viewer)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "record_id": self.record_id,
            "viewer": self.viewer,
            "can_view": self.can_view,
            "can_edit": self.can_edit,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Grant:
        """Reconstruct from JSON dict."""
        return cls(
            record_id=data["record_id"],
            viewer=data["viewer"],
            can_edit=bool(data["can_edit"]),
            expires_at=int(data["expires_at"]),
            can_view=bool(data.get("can_view", True)),
        )


@dataclass(frozen=True)
class AuditEntry:
    """
    One attributed access event.

    Keyed by (record_id, timestamp, sequence). The sequence disambiguates
    events on the same record within one time unit.
    """

    record_id: str
    timestamp: int
    accessor: str
    access_type: str  # One of ACCESS_TYPES
    sequence: int = 0

    def __post_init__(self) -> None:
        """Validate entry structure."""
        if self.access_type not in ACCESS_TYPES:
            raise ValueError(f"Invalid access_type: {self.access_type}")

    @property
    def key(self) -> tuple[str, int, int]:
        return (self.record_id, self.timestamp, self.sequence)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "record_id": self.record_id,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
            "accessor": self.accessor,
            "access_type": self.access_type,
        }

    def to_json(self) -> str:
        """Serialize to JSON string (single line)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEntry:
        """Reconstruct from JSON dict."""
        return cls(
            record_id=data["record_id"],
            timestamp=int(data["timestamp"]),
            accessor=data["accessor"],
            access_type=data["access_type"],
            sequence=int(data.get("sequence", 0)),
        )


@dataclass(frozen=True)
class CheckResult:
    """Answer to "does this viewer hold a live grant right now?"."""

    has_access: bool
    can_edit: bool
    time_remaining: int

    @classmethod
    def denied(cls) -> CheckResult:
        return cls(has_access=False, can_edit=False, time_remaining=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_access": self.has_access,
            "can_edit": self.can_edit,
            "time_remaining": self.time_remaining,
        }


@dataclass(frozen=True)
class GrantView:
    """A stored grant as seen at a specific instant (expired rows included)."""

    grant: Grant
    live: bool
    time_remaining: int

    def to_dict(self) -> dict[str, Any]:
        result = self.grant.to_dict()
        result["live"] = self.live
        result["time_remaining"] = self.time_remaining
        return result
