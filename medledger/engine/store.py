"""
State store for records, grants, the audit log and the admin value.

The store is the only place state lives. Every public engine operation
runs inside one transaction():

    with store.transaction() as state:
        ...  # validate, authorize, mutate, append audit entry

The block operates on a working copy. The copy replaces the committed
state only if the block exits cleanly; any exception discards every
change, so the three tables and the admin value always commit together.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

from ..errors import StoreError
from .models import AuditEntry, Grant, Record

logger = logging.getLogger(__name__)

STATE_FORMAT = 1


@dataclass
class State:
    """The four logical tables of the engine."""

    admin: str
    records: dict[str, Record] = field(default_factory=dict)
    grants: dict[tuple[str, str], Grant] = field(default_factory=dict)
    audit: dict[tuple[str, int, int], AuditEntry] = field(default_factory=dict)

    def copy(self) -> State:
        # Values are frozen dataclasses, so copying the mappings is enough.
        return State(
            admin=self.admin,
            records=dict(self.records),
            grants=dict(self.grants),
            audit=dict(self.audit),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict with deterministic ordering."""
        return {
            "format": STATE_FORMAT,
            "admin": self.admin,
            "records": [self.records[k].to_dict() for k in sorted(self.records)],
            "grants": [self.grants[k].to_dict() for k in sorted(self.grants)],
            "audit": [self.audit[k].to_dict() for k in sorted(self.audit, key=lambda k: (k[1], k[0], k[2]))],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> State:
        """Reconstruct from JSON dict."""
        fmt = data.get("format")
        if fmt != STATE_FORMAT:
            raise StoreError(f"Unsupported state format: {fmt!r}")
        admin = data.get("admin")
        if not isinstance(admin, str) or not admin:
            raise StoreError("State is missing the admin identity")

        state = cls(admin=admin)
        for raw in data.get("records", []):
            record = Record.from_dict(raw)
            state.records[record.record_id] = record
        for raw in data.get("grants", []):
            grant = Grant.from_dict(raw)
            state.grants[grant.key] = grant
        for raw in data.get("audit", []):
            entry = AuditEntry.from_dict(raw)
            state.audit[entry.key] = entry
        return state


class StateStore(ABC):
    """
    Base class for stores with atomic per-call commit.

    Transactions are serialized with a re-entrant lock. A transaction
    opened while another is active on the same thread joins it rather
    than starting a second working copy.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._working: State | None = None

    @abstractmethod
    def _read(self) -> State:
        """Return the committed state (callers must not mutate it)."""

    @abstractmethod
    def _commit(self, state: State) -> None:
        """Make `state` the committed state."""

    def snapshot(self) -> State:
        """Return a private copy of the committed state for read-only use."""
        with self._lock:
            return self._read().copy()

    @contextmanager
    def transaction(self) -> Iterator[State]:
        with self._lock:
            if self._working is not None:
                yield self._working
                return

            self._working = self._read().copy()
            try:
                yield self._working
                self._commit(self._working)
                logger.debug("committed transaction on %s", self)
            finally:
                self._working = None


class MemoryStateStore(StateStore):
    """In-process store; state is lost when the object goes away."""

    def __init__(self, admin: str):
        super().__init__()
        if not admin:
            raise StoreError("An initial admin identity is required")
        self._state = State(admin=admin)

    def _read(self) -> State:
        return self._state

    def _commit(self, state: State) -> None:
        self._state = state

    def __repr__(self) -> str:
        return "MemoryStateStore()"


class JsonStateStore(StateStore):
    """
    Whole-state JSON document on disk.

    Each commit rewrites the document atomically (write to temp, then
    rename), so a crash leaves either the old or the new state, never a
    mix of the two.
    """

    def __init__(self, path: Path):
        """
        Open an existing state file.

        Args:
            path: Path to the state JSON file

        Raises:
            StoreError: If the file does not exist or cannot be parsed
        """
        super().__init__()
        self.path = Path(path)
        if not self.path.exists():
            raise StoreError(f"State file not found: {self.path} (run `medledger init` first)")
        self._state = self._load()

    @classmethod
    def create(cls, path: Path, *, admin: str) -> JsonStateStore:
        """Initialise a new state file with `admin` as the administrative identity."""
        path = Path(path)
        if path.exists():
            raise StoreError(f"State file already exists: {path}")
        if not admin:
            raise StoreError("An initial admin identity is required")
        _write_atomic(path, State(admin=admin))
        logger.info("initialised state file %s (admin=%s)", path, admin)
        return cls(path)

    def _load(self) -> State:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt state file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Corrupt state file {self.path}: expected a JSON object")
        try:
            return State.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Corrupt state file {self.path}: {e}") from e

    def _read(self) -> State:
        return self._state

    def _commit(self, state: State) -> None:
        _write_atomic(self.path, state)
        self._state = state

    def __repr__(self) -> str:
        return f"JsonStateStore({str(self.path)!r})"


def _write_atomic(path: Path, state: State) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    temp_path.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
    temp_path.replace(path)
