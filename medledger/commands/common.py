"""Helpers shared by the command modules."""

from __future__ import annotations

from rich.console import Console

from ..config import Settings
from ..engine.service import AccessService
from ..errors import AccessError, StoreError


def open_service(settings: Settings) -> AccessService:
    """Open the service over the configured state file. Raises StoreError."""
    return AccessService.from_settings(settings)


def report_error(err: AccessError | StoreError) -> int:
    """Print an engine or store failure to stderr and return the exit code."""
    console = Console(stderr=True)
    kind = err.kind if isinstance(err, AccessError) else "StoreError"
    console.print(f"{kind}: {err}", style="bold red", highlight=False)
    return 1
