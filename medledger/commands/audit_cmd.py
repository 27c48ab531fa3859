"""Audit trail CLI command."""

from __future__ import annotations

import json
from typing import Literal

from rich.console import Console
from rich.table import Table

from ..config import Settings
from ..errors import StoreError
from .common import open_service, report_error

OutputFormat = Literal["table", "json", "jsonl"]


def run_audit(
    settings: Settings,
    *,
    record_id: str | None = None,
    accessor: str | None = None,
    access_type: str | None = None,
    since: int | None = None,
    until: int | None = None,
    limit: int | None = None,
    output: OutputFormat = "table",
) -> int:
    """Show the audit trail, oldest first."""
    try:
        svc = open_service(settings)
    except StoreError as e:
        return report_error(e)

    entries = svc.audit_entries(
        record_id=record_id,
        accessor=accessor,
        access_type=access_type,
        since=since,
        until=until,
    )
    # Most recent `limit` entries, still printed oldest first
    if limit and limit > 0:
        entries = entries[-limit:]

    if output == "json":
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0
    if output == "jsonl":
        for e in entries:
            print(e.to_json())
        return 0

    console = Console()
    title = f"Audit Trail: {record_id}" if record_id else "Audit Trail"
    table = Table(title=title)
    table.add_column("Time", style="dim")
    table.add_column("Record", style="cyan")
    table.add_column("Access", style="magenta")
    table.add_column("Accessor")

    for e in entries:
        time_cell = f"{e.timestamp}#{e.sequence}" if e.sequence else str(e.timestamp)
        table.add_row(time_cell, e.record_id, e.access_type, e.accessor)

    console.print(table)
    console.print(f"\nEntries: {len(entries)} total")
    return 0
