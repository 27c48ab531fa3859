"""Administrative role: a single global identity, handed over by its holder."""

from __future__ import annotations

import logging

from ..errors import NotAuthorized
from .store import StateStore
from .validation import validate_distinct, validate_identity

logger = logging.getLogger(__name__)


class AdminControl:
    """
    Guards the admin value.

    The admin is orthogonal to record ownership: it confers no rights over
    records, and admin changes are not part of the per-record audit trail.
    """

    def __init__(self, store: StateStore):
        self.store = store

    def admin(self) -> str:
        return self.store.snapshot().admin

    def change_admin(self, new_admin: str, caller: str) -> str:
        """
        Name a successor admin.

        Raises:
            NotAuthorized: caller is not the current admin
            InvalidInput: new_admin is empty or equals caller
        """
        with self.store.transaction() as state:
            if state.admin != caller:
                logger.warning("admin change denied: caller=%s", caller)
                raise NotAuthorized(f"{caller!r} is not the admin", caller=caller)
            validate_identity(new_admin, field="new_admin")
            validate_distinct(new_admin, caller, field="new_admin")
            state.admin = new_admin

        logger.info("admin changed: %s -> %s", caller, new_admin)
        return new_admin
