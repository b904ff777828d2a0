"""Sync commands for tribelist CLI.

Commands:
- sync transitions: Show the sync transition table
- sync apply: Apply a sync action to a list
- sync run: Compare a list with its sync source
- sync push: Push a list to its sync source
"""

from __future__ import annotations

import click

from tribelist.cli.context import echo_json, get_app, handle_errors
from tribelist.core.types import SyncAction, SyncSource, SyncStatus
from tribelist.domain.models import SyncFieldsUpdate
from tribelist.domain.transitions import SYNC_TRANSITIONS


@click.group("sync")
def sync_group() -> None:
    """Synchronize lists with external sources."""


@sync_group.command("transitions")
@click.option(
    "--from",
    "from_status",
    type=click.Choice([s.value for s in SyncStatus]),
    default=None,
    help="Only show transitions out of this status.",
)
def show_transitions(from_status: str | None) -> None:
    """Show the sync transition table."""
    for row in SYNC_TRANSITIONS:
        if from_status is not None and row.from_status.value != from_status:
            continue
        click.echo(f"{row.from_status.value:<9} -> {row.to_status.value:<9} {row.action.value}")


@sync_group.command("apply")
@click.argument("list_id")
@click.argument("action", type=click.Choice([a.value for a in SyncAction]))
@click.option(
    "--source",
    type=click.Choice([s.value for s in SyncSource]),
    default=None,
    help="Sync source (for configure_sync).",
)
@click.option("--external-id", default=None, help="Identifier of the list in the source.")
def apply_action(
    list_id: str,
    action: str,
    source: str | None,
    external_id: str | None,
) -> None:
    """Apply a sync ACTION to a list.

    Examples:

        # Tie a list to a JSON export in the import directory
        tribelist sync apply LIST_ID configure_sync --source imported --external-id dinners

        # Stop syncing
        tribelist sync apply LIST_ID disable_sync
    """
    app = get_app()
    fields = SyncFieldsUpdate(source=source, external_id=external_id)
    with handle_errors():
        tribe_list = app.state_machine().apply(list_id, action, fields, deadline=app.deadline())
    click.echo(f"List {list_id} is now {tribe_list.sync_status.value}")


@sync_group.command("run")
@click.argument("list_id")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def run_sync(list_id: str, as_json: bool) -> None:
    """Compare a list with its sync source and record conflicts."""
    app = get_app()
    with handle_errors():
        report = app.synchronizer().sync_list(list_id, deadline=app.deadline())

    if as_json:
        echo_json(report)
        return
    if report.in_sync:
        click.echo(f"List {list_id} is in sync ({report.status.value})")
        return
    click.echo(
        f"Found {len(report.added)} added, {len(report.removed)} removed, "
        f"{len(report.modified)} modified"
    )
    click.echo(f"Recorded {len(report.conflict_ids)} conflicts; list is now {report.status.value}")


@sync_group.command("push")
@click.argument("list_id")
def push(list_id: str) -> None:
    """Push a list's items to its sync source."""
    app = get_app()
    with handle_errors():
        tribe_list = app.synchronizer().push_list(list_id, deadline=app.deadline())
    click.echo(f"Pushed list {list_id}; status {tribe_list.sync_status.value}")
