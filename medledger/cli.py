"""CLI entrypoint for medledger."""

import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import resolve_settings
from .engine.clock import SystemClock
from .engine.content import hash_file, parse_content_ref
from .errors import ConfigError, InvalidInput


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _caller(ctx: click.Context) -> str:
    identity = ctx.obj.get("identity")
    if not identity:
        raise click.UsageError("This command needs a caller identity. Pass --as ID or set MEDLEDGER_IDENTITY.")
    return identity


def _now(ctx: click.Context) -> int:
    """Read the time source once for this invocation."""
    now = ctx.obj.get("now")
    return now if now is not None else SystemClock().now()


def _content_ref(ref: str | None, file: Path | None) -> bytes:
    if (ref is None) == (file is None):
        raise click.UsageError("Pass exactly one of --ref HEX or --file PATH.")
    if file is not None:
        return hash_file(file)
    try:
        return parse_content_ref(ref)
    except InvalidInput as e:
        raise click.BadParameter(str(e), param_hint="--ref") from e


_ref_options = [
    click.option("--ref", type=str, default=None, metavar="HEX", help="32-byte content reference as 64 hex chars"),
    click.option(
        "--file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="Reference the sha256 digest of this (encrypted) file",
    ),
]


def _with_ref_options(f):
    for option in reversed(_ref_options):
        f = option(f)
    return f


@click.group()
@click.version_option(__version__, prog_name="medledger")
@click.option(
    "--state",
    "-s",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the state file (overrides config and MEDLEDGER_STATE)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to medledger.toml (defaults to auto-detected)",
)
@click.option(
    "--as",
    "identity",
    type=str,
    default=None,
    envvar="MEDLEDGER_IDENTITY",
    help="Caller identity for this invocation",
)
@click.option(
    "--now",
    type=click.IntRange(min=0),
    default=None,
    help="Logical current time (defaults to the system clock, in seconds)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    show_default=True,
    help="Logging verbosity (stderr)",
)
@click.pass_context
def cli(
    ctx: click.Context,
    state: Path | None,
    config_path: Path | None,
    identity: str | None,
    now: int | None,
    log_level: str,
) -> None:
    """medledger - permissioned access to medical record references.

    Owners store a 32-byte reference to encrypted data held elsewhere,
    grant time-bounded view/edit access, revoke it, and transfer
    ownership. Every access is attributed in the audit trail.
    """
    _configure_logging(log_level)
    ctx.ensure_object(dict)
    try:
        settings = resolve_settings(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if state is not None:
        settings = replace(settings, state_path=state)

    ctx.obj["settings"] = settings
    ctx.obj["identity"] = identity
    ctx.obj["now"] = now


@cli.command()
@click.option("--admin", "admin", type=str, required=True, help="Initial administrative identity")
@click.pass_context
def init(ctx: click.Context, admin: str) -> None:
    """Create a new, empty state file."""
    from .commands.admin_cmd import run_init

    sys.exit(run_init(ctx.obj["settings"], admin=admin))


# -----------------------------------------------------------------------------
# Record commands
# -----------------------------------------------------------------------------


@cli.group()
def record() -> None:
    """Create, update, transfer and read records."""
    pass


@record.command("create")
@click.argument("record_id")
@_with_ref_options
@click.pass_context
def record_create(ctx: click.Context, record_id: str, ref: str | None, file: Path | None) -> None:
    """Create a record owned by the caller.

    Examples:

        medledger --as alice record create p1 --file scan.enc

        medledger --as alice record create p1 --ref 3f7a...e1
    """
    from .commands.record_cmd import run_record_create

    content_ref = _content_ref(ref, file)
    sys.exit(run_record_create(ctx.obj["settings"], record_id, content_ref, caller=_caller(ctx), now=_now(ctx)))


@record.command("update")
@click.argument("record_id")
@_with_ref_options
@click.pass_context
def record_update(ctx: click.Context, record_id: str, ref: str | None, file: Path | None) -> None:
    """Replace a record's content reference (owner or edit grant)."""
    from .commands.record_cmd import run_record_update

    content_ref = _content_ref(ref, file)
    sys.exit(run_record_update(ctx.obj["settings"], record_id, content_ref, caller=_caller(ctx), now=_now(ctx)))


@record.command("transfer")
@click.argument("record_id")
@click.argument("new_owner")
@click.pass_context
def record_transfer(ctx: click.Context, record_id: str, new_owner: str) -> None:
    """Hand ownership of a record to another identity (owner only)."""
    from .commands.record_cmd import run_record_transfer

    sys.exit(run_record_transfer(ctx.obj["settings"], record_id, new_owner, caller=_caller(ctx), now=_now(ctx)))


@record.command("show")
@click.argument("record_id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def record_show(ctx: click.Context, record_id: str, output_json: bool) -> None:
    """Show a record (owner or live grant). Audited unless [audit] reads = false."""
    from .commands.record_cmd import run_record_show

    sys.exit(
        run_record_show(
            ctx.obj["settings"],
            record_id,
            caller=_caller(ctx),
            now=_now(ctx),
            output_json=output_json,
        )
    )


# -----------------------------------------------------------------------------
# Grant commands
# -----------------------------------------------------------------------------


@cli.group()
def grant() -> None:
    """Delegate, revoke and inspect time-bounded access."""
    pass


@grant.command("add")
@click.argument("record_id")
@click.argument("viewer")
@click.option("--duration", type=int, required=True, help="Lifetime of the grant in time units")
@click.option("--edit", "can_edit", is_flag=True, help="Allow the viewer to update the record")
@click.pass_context
def grant_add(ctx: click.Context, record_id: str, viewer: str, duration: int, can_edit: bool) -> None:
    """Grant VIEWER access to RECORD_ID (owner only). Re-granting overwrites."""
    from .commands.grant_cmd import run_grant_add

    sys.exit(
        run_grant_add(
            ctx.obj["settings"],
            record_id,
            viewer,
            can_edit=can_edit,
            duration=duration,
            caller=_caller(ctx),
            now=_now(ctx),
        )
    )


@grant.command("revoke")
@click.argument("record_id")
@click.argument("viewer")
@click.pass_context
def grant_revoke(ctx: click.Context, record_id: str, viewer: str) -> None:
    """Revoke VIEWER's grant on RECORD_ID (owner only). Idempotent."""
    from .commands.grant_cmd import run_grant_revoke

    sys.exit(run_grant_revoke(ctx.obj["settings"], record_id, viewer, caller=_caller(ctx), now=_now(ctx)))


@grant.command("check")
@click.argument("record_id")
@click.argument("viewer")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def grant_check(ctx: click.Context, record_id: str, viewer: str, output_json: bool) -> None:
    """Report whether VIEWER holds live access. Open to anyone, not audited."""
    from .commands.grant_cmd import run_grant_check

    sys.exit(run_grant_check(ctx.obj["settings"], record_id, viewer, now=_now(ctx), output_json=output_json))


@grant.command("list")
@click.argument("record_id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def grant_list(ctx: click.Context, record_id: str, output_json: bool) -> None:
    """List every stored grant on RECORD_ID, expired ones dimmed (owner only)."""
    from .commands.grant_cmd import run_grant_list

    sys.exit(
        run_grant_list(
            ctx.obj["settings"],
            record_id,
            caller=_caller(ctx),
            now=_now(ctx),
            output_json=output_json,
        )
    )


# -----------------------------------------------------------------------------
# Audit and admin commands
# -----------------------------------------------------------------------------


@cli.command()
@click.option("--record", "record_id", type=str, default=None, help="Filter by record ID")
@click.option("--accessor", type=str, default=None, help="Filter by accessing identity")
@click.option(
    "--type",
    "access_type",
    type=click.Choice(["create", "update", "grant", "revoke", "transfer", "read"]),
    default=None,
    help="Filter by access type",
)
@click.option("--since", type=int, default=None, help="Only entries at or after this time")
@click.option("--until", type=int, default=None, help="Only entries at or before this time")
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=None,
    help="Show only the most recent N entries (still printed oldest first)",
)
@click.option("--json", "output_json", is_flag=True, help="Output as a JSON array")
@click.option("--jsonl", "output_jsonl", is_flag=True, help="Output as JSON Lines (for export)")
@click.pass_context
def audit(
    ctx: click.Context,
    record_id: str | None,
    accessor: str | None,
    access_type: str | None,
    since: int | None,
    until: int | None,
    limit: int | None,
    output_json: bool,
    output_jsonl: bool,
) -> None:
    """Show the audit trail.

    Examples:

        medledger audit --record p1

        medledger audit --accessor bob --type update --json

        medledger audit --jsonl > audit.jsonl
    """
    from .commands.audit_cmd import run_audit

    if output_json and output_jsonl:
        raise click.UsageError("--json and --jsonl are mutually exclusive.")
    output = "json" if output_json else "jsonl" if output_jsonl else "table"
    sys.exit(
        run_audit(
            ctx.obj["settings"],
            record_id=record_id,
            accessor=accessor,
            access_type=access_type,
            since=since,
            until=until,
            limit=limit,
            output=output,
        )
    )


@cli.group()
def admin() -> None:
    """Inspect and hand over the administrative role."""
    pass


@admin.command("show")
@click.pass_context
def admin_show(ctx: click.Context) -> None:
    """Print the current admin identity."""
    from .commands.admin_cmd import run_admin_show

    sys.exit(run_admin_show(ctx.obj["settings"]))


@admin.command("change")
@click.argument("new_admin")
@click.pass_context
def admin_change(ctx: click.Context, new_admin: str) -> None:
    """Name NEW_ADMIN as successor (current admin only)."""
    from .commands.admin_cmd import run_admin_change

    sys.exit(run_admin_change(ctx.obj["settings"], new_admin, caller=_caller(ctx)))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
