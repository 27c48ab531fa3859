"""Grant CLI commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..errors import AccessError, StoreError
from .common import open_service, report_error


def _format_remaining(seconds: int) -> str:
    """Format a remaining duration as a human-readable string."""
    if seconds <= 0:
        return "expired"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    hours, rest = divmod(seconds, 3600)
    if hours < 48:
        return f"{hours}h {rest // 60}m"
    return f"{hours // 24}d {hours % 24}h"


def run_grant_add(
    settings: Settings,
    record_id: str,
    viewer: str,
    *,
    can_edit: bool,
    duration: int,
    caller: str,
    now: int,
) -> int:
    err = Console(stderr=True)
    try:
        grant = open_service(settings).grant(
            record_id, viewer, can_edit=can_edit, duration=duration, caller=caller, now=now
        )
    except (AccessError, StoreError) as e:
        return report_error(e)
    capability = "edit" if grant.can_edit else "view"
    err.print(f"granted: {viewer} {capability} on {record_id}", style="green")
    err.print(f"expires_at: {grant.expires_at}", style="dim")
    return 0


def run_grant_revoke(settings: Settings, record_id: str, viewer: str, *, caller: str, now: int) -> int:
    err = Console(stderr=True)
    try:
        removed = open_service(settings).revoke(record_id, viewer, caller=caller, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)
    if removed:
        err.print(f"revoked: {viewer} on {record_id}", style="green")
    else:
        err.print(f"no grant for {viewer} on {record_id} (revoke recorded)", style="yellow")
    return 0


def run_grant_check(
    settings: Settings,
    record_id: str,
    viewer: str,
    *,
    now: int,
    output_json: bool = False,
) -> int:
    try:
        result = open_service(settings).check(record_id, viewer, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)

    if output_json:
        print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
        return 0

    console = Console()
    if not result.has_access:
        console.print(f"{viewer} on {record_id}: no access")
        return 0
    capability = "edit" if result.can_edit else "view"
    console.print(f"{viewer} on {record_id}: {capability} ({_format_remaining(result.time_remaining)} remaining)")
    return 0


def run_grant_list(
    settings: Settings,
    record_id: str,
    *,
    caller: str,
    now: int,
    output_json: bool = False,
) -> int:
    try:
        views = open_service(settings).list_grants(record_id, caller=caller, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)

    if output_json:
        print(json.dumps([v.to_dict() for v in views], indent=2, sort_keys=True))
        return 0

    console = Console()
    table = Table(title=f"Grants: {record_id}")
    table.add_column("viewer", style="cyan", no_wrap=True)
    table.add_column("capability")
    table.add_column("expires_at")
    table.add_column("remaining")

    for v in views:
        table.add_row(
            v.grant.viewer,
            "edit" if v.grant.can_edit else "view",
            str(v.grant.expires_at),
            _format_remaining(v.time_remaining),
            style=None if v.live else "dim",
        )

    console.print(table)
    console.print(f"\nGrants: {len(views)} total, {sum(1 for v in views if v.live)} live")
    return 0
