"""State initialisation and admin CLI commands."""

from __future__ import annotations

from rich.console import Console

from ..config import Settings
from ..engine.store import JsonStateStore
from ..errors import AccessError, StoreError
from .common import open_service, report_error


def run_init(settings: Settings, *, admin: str) -> int:
    err = Console(stderr=True)
    try:
        JsonStateStore.create(settings.state_path, admin=admin)
    except StoreError as e:
        return report_error(e)
    err.print(f"initialised: {settings.state_path}", style="green")
    err.print(f"admin: {admin}", style="dim")
    return 0


def run_admin_show(settings: Settings) -> int:
    try:
        admin = open_service(settings).admin()
    except StoreError as e:
        return report_error(e)
    Console().print(admin, highlight=False)
    return 0


def run_admin_change(settings: Settings, new_admin: str, *, caller: str) -> int:
    err = Console(stderr=True)
    try:
        open_service(settings).change_admin(new_admin, caller=caller)
    except (AccessError, StoreError) as e:
        return report_error(e)
    err.print(f"admin changed: {caller} -> {new_admin}", style="green")
    return 0
