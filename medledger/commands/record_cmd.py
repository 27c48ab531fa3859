"""Record CLI commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..engine.content import format_content_ref
from ..errors import AccessError, StoreError
from .common import open_service, report_error


def run_record_create(settings: Settings, record_id: str, content_ref: bytes, *, caller: str, now: int) -> int:
    err = Console(stderr=True)
    try:
        record = open_service(settings).create(record_id, content_ref, caller=caller, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)
    err.print(f"created: {record.record_id} (owner {record.owner}, version {record.version})", style="green")
    return 0


def run_record_update(settings: Settings, record_id: str, content_ref: bytes, *, caller: str, now: int) -> int:
    err = Console(stderr=True)
    try:
        record = open_service(settings).update(record_id, content_ref, caller=caller, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)
    err.print(f"updated: {record.record_id} (version {record.version})", style="green")
    err.print(f"content_ref: {format_content_ref(record.content_ref, short=True)}", style="dim")
    return 0


def run_record_transfer(settings: Settings, record_id: str, new_owner: str, *, caller: str, now: int) -> int:
    err = Console(stderr=True)
    try:
        record = open_service(settings).transfer_ownership(record_id, new_owner, caller=caller, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)
    err.print(f"transferred: {record.record_id} {caller} -> {record.owner}", style="green")
    return 0


def run_record_show(
    settings: Settings,
    record_id: str,
    *,
    caller: str,
    now: int,
    output_json: bool = False,
) -> int:
    try:
        record = open_service(settings).get(record_id, caller=caller, now=now)
    except (AccessError, StoreError) as e:
        return report_error(e)

    if output_json:
        print(json.dumps(record.to_dict(), indent=2, sort_keys=True))
        return 0

    console = Console()
    table = Table(title=f"Record: {record.record_id}", show_header=False)
    table.add_column("field", style="cyan", no_wrap=True)
    table.add_column("value")
    table.add_row("owner", record.owner)
    table.add_row("version", str(record.version))
    table.add_row("updated_at", str(record.updated_at))
    table.add_row("content_ref", format_content_ref(record.content_ref))
    console.print(table)
    return 0
