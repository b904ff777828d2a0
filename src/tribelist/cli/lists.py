"""List commands for tribelist CLI.

Commands:
- lists create: Create a list
- lists ls: Show all lists
- lists show: Show one list with its sync state
- lists delete: Delete a list and its items
"""

from __future__ import annotations

import click

from tribelist.cli.context import echo_json, format_time, get_app, handle_errors
from tribelist.core.types import ListType, Visibility
from tribelist.domain.models import TribeList, utcnow


@click.group("lists")
def lists_group() -> None:
    """Manage lists."""


@lists_group.command("create")
@click.argument("name")
@click.option(
    "--type",
    "list_type",
    type=click.Choice([t.value for t in ListType]),
    default=ListType.GENERAL.value,
    show_default=True,
    help="Kind of list.",
)
@click.option("--description", "-d", default="", help="Free-form description.")
@click.option(
    "--visibility",
    type=click.Choice([v.value for v in Visibility]),
    default=Visibility.PRIVATE.value,
    show_default=True,
)
@click.option("--default-weight", type=float, default=1.0, show_default=True,
              help="Weight of items without their own weight.")
@click.option("--max-items", type=int, default=None, help="Cap on items drawn from this list.")
@click.option("--cooldown-days", type=int, default=None,
              help="Days before a chosen item can be drawn again.")
def create_list(
    name: str,
    list_type: str,
    description: str,
    visibility: str,
    default_weight: float,
    max_items: int | None,
    cooldown_days: int | None,
) -> None:
    """Create a list called NAME."""
    app = get_app()
    with handle_errors():
        tribe_list = app.storage.create_list(
            TribeList(
                name=name,
                type=list_type,
                description=description,
                visibility=visibility,
                default_weight=default_weight,
                max_items=max_items,
                cooldown_days=cooldown_days,
            )
        )
    click.echo(f"Created list {tribe_list.id} ({tribe_list.name})")


@lists_group.command("ls")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def list_lists(as_json: bool) -> None:
    """Show all lists."""
    lists = get_app().storage.list_lists()
    if as_json:
        echo_json(lists)
        return
    if not lists:
        click.echo("No lists.")
        return
    for tribe_list in lists:
        click.echo(
            f"{tribe_list.id}  {tribe_list.name}  [{tribe_list.type.value}]  "
            f"sync: {tribe_list.sync_status.value}"
        )


@lists_group.command("show")
@click.argument("list_id")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def show_list(list_id: str, as_json: bool) -> None:
    """Show a list and its sync state."""
    app = get_app()
    with handle_errors():
        tribe_list = app.storage.get_list(list_id)
        items = app.storage.get_items([list_id])
        open_conflicts = app.resolver().open_conflicts(list_id)
        actions = app.state_machine().allowed_actions(list_id)

    if as_json:
        echo_json(tribe_list)
        return

    sync = tribe_list.sync
    click.echo(f"List:        {tribe_list.name} ({tribe_list.id})")
    click.echo(f"Type:        {tribe_list.type.value}")
    click.echo(f"Visibility:  {tribe_list.visibility.value}")
    if tribe_list.description:
        click.echo(f"Description: {tribe_list.description}")
    click.echo(f"Weight:      {tribe_list.default_weight}")
    if tribe_list.max_items is not None:
        click.echo(f"Max items:   {tribe_list.max_items}")
    if tribe_list.cooldown_days is not None:
        click.echo(f"Cooldown:    {tribe_list.cooldown_days} days")
    click.echo(f"Items:       {len(items)}")
    click.echo(f"Sync:        {sync.status.value} (source: {sync.source.value})")
    if sync.external_id:
        click.echo(f"External id: {sync.external_id}")
    click.echo(f"Last sync:   {format_time(sync.last_sync_at)}")
    click.echo(f"Conflicts:   {len(open_conflicts)} open")
    click.echo(f"Actions:     {', '.join(a.value for a in actions) or '-'}")


@lists_group.command("delete")
@click.argument("list_id")
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
def delete_list(list_id: str, yes: bool) -> None:
    """Delete a list and its items."""
    app = get_app()
    with handle_errors():
        tribe_list = app.storage.get_list(list_id)
        if not yes and not click.confirm(f"Delete list '{tribe_list.name}'?"):
            click.echo("Cancelled.")
            return
        app.storage.delete_list(list_id, utcnow())
    click.echo(f"Deleted list {list_id}")
