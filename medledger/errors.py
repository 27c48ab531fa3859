"""
Error vocabulary for the record-access engine.

Every fallible operation raises one of the AccessError subclasses below.
All of them are raised before the first mutation of an operation, so a
caught AccessError always means "nothing was written".
"""

from __future__ import annotations


class AccessError(Exception):
    """Base class for engine failures that callers are expected to handle."""

    kind = "AccessError"

    def __init__(self, message: str, *, record_id: str | None = None, caller: str | None = None):
        super().__init__(message)
        self.record_id = record_id
        self.caller = caller


class NotAuthorized(AccessError):
    """Caller lacks ownership or a live grant of the required capability."""

    kind = "NotAuthorized"


class ExpiredAccess(NotAuthorized):
    """Caller held a sufficient grant, but it has expired."""

    kind = "ExpiredAccess"


class AlreadyExists(AccessError):
    kind = "AlreadyExists"


class DoesNotExist(AccessError):
    kind = "DoesNotExist"


class InvalidInput(AccessError, ValueError):
    """Malformed identifier, content reference, identity, time or duration."""

    kind = "InvalidInput"


class StoreError(Exception):
    """Persistence failure: missing, corrupt or already-initialised state."""


class ConfigError(ValueError):
    """Malformed medledger.toml."""
