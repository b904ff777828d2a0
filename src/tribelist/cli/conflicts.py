"""Conflict commands for tribelist CLI.

Commands:
- conflicts ls: Show the sync conflicts of a list
- conflicts resolve: Resolve a conflict
"""

from __future__ import annotations

import json

import click

from tribelist.cli.context import echo_json, format_time, get_app, handle_errors


@click.group("conflicts")
def conflicts_group() -> None:
    """Inspect and resolve sync conflicts."""


@conflicts_group.command("ls")
@click.argument("list_id")
@click.option("--open", "open_only", is_flag=True, help="Only unresolved conflicts.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def list_conflicts(list_id: str, open_only: bool, as_json: bool) -> None:
    """Show the sync conflicts of a list."""
    app = get_app()
    resolver = app.resolver()
    with handle_errors():
        app.storage.get_list(list_id)
        conflicts = resolver.open_conflicts(list_id) if open_only else resolver.list_conflicts(list_id)

    if as_json:
        echo_json(conflicts)
        return
    if not conflicts:
        click.echo("No conflicts.")
        return
    for conflict in conflicts:
        state = f"resolved {format_time(conflict.resolved_at)}" if conflict.is_resolved else "open"
        click.echo(f"{conflict.id}  {conflict.type}  {state}")
        click.echo(f"    local:  {json.dumps(conflict.local_data, default=str)}")
        click.echo(f"    remote: {json.dumps(conflict.remote_data, default=str)}")


@conflicts_group.command("resolve")
@click.argument("conflict_id")
@click.argument("resolution")
@click.option("--auto", is_flag=True,
              help="Return the list to synced (instead of pending) after the last conflict.")
def resolve(conflict_id: str, resolution: str, auto: bool) -> None:
    """Resolve a conflict, recording RESOLUTION."""
    app = get_app()
    resolver = app.resolver()
    with handle_errors():
        conflict = resolver.resolve_conflict(
            conflict_id, resolution, auto=auto, deadline=app.deadline()
        )
        remaining = len(resolver.open_conflicts(conflict.list_id))
        status = app.storage.get_list(conflict.list_id).sync_status
    click.echo(f"Resolved conflict {conflict_id}")
    click.echo(f"{remaining} open conflicts left; list is {status.value}")
