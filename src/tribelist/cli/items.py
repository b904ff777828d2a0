"""Item commands for tribelist CLI.

Commands:
- items add: Add an item to a list
- items ls: Show the items of a list
- items use: Record that an item was used
- items remove: Remove an item
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import click

from tribelist.cli.context import echo_json, format_time, get_app, handle_errors, utc_option
from tribelist.domain.models import ListItem, utcnow

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


class InclusiveEndDate(click.DateTime):
    """DateTime whose date-only form means the last instant of that day."""

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        day = _bare_date(value) if isinstance(value, str) else None
        if day is not None:
            return day + timedelta(days=1, microseconds=-1)
        return super().convert(value, param, ctx)


def _bare_date(value: str) -> datetime | None:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None


@click.group("items")
def items_group() -> None:
    """Manage list items."""


@items_group.command("add")
@click.argument("list_id")
@click.argument("name")
@click.option("--description", "-d", default="", help="Free-form description.")
@click.option("--weight", "-w", type=float, default=None,
              help="Selection weight (default: the list's weight).")
@click.option("--unavailable", is_flag=True, help="Add the item as unavailable.")
@click.option("--cooldown", type=int, default=None, help="Cooldown in days for this item.")
@click.option("--start-date", type=click.DateTime(DATE_FORMATS), default=None,
              help="Start of the seasonal window (UTC).")
@click.option("--end-date", type=InclusiveEndDate(DATE_FORMATS), default=None,
              help="End of the seasonal window (UTC); a bare date covers the whole day.")
@click.option("--lat", "latitude", type=float, default=None, help="Latitude.")
@click.option("--lng", "longitude", type=float, default=None, help="Longitude.")
@click.option("--address", default=None, help="Street address.")
@click.option("--external-id", default="", help="Identity of the item in the sync source.")
def add_item(
    list_id: str,
    name: str,
    description: str,
    weight: float | None,
    unavailable: bool,
    cooldown: int | None,
    start_date: datetime | None,
    end_date: datetime | None,
    latitude: float | None,
    longitude: float | None,
    address: str | None,
    external_id: str,
) -> None:
    """Add an item called NAME to a list.

    Giving --start-date or --end-date makes the item seasonal; both are
    then required.
    """
    app = get_app()
    seasonal = start_date is not None or end_date is not None
    with handle_errors():
        item = app.storage.add_item(
            ListItem(
                list_id=list_id,
                name=name,
                description=description,
                weight=weight,
                available=not unavailable,
                seasonal=seasonal,
                start_date=utc_option(start_date),
                end_date=utc_option(end_date),
                cooldown=cooldown,
                latitude=latitude,
                longitude=longitude,
                address=address,
                external_id=external_id,
            )
        )
    click.echo(f"Added item {item.id} ({item.name})")


@items_group.command("ls")
@click.argument("list_id")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def list_items(list_id: str, as_json: bool) -> None:
    """Show the items of a list."""
    app = get_app()
    with handle_errors():
        app.storage.get_list(list_id)
        items = app.storage.get_items([list_id])

    if as_json:
        echo_json(items)
        return
    if not items:
        click.echo("No items.")
        return
    for item in items:
        flags = []
        if not item.available:
            flags.append("unavailable")
        if item.seasonal:
            flags.append(f"seasonal {format_time(item.start_date)}..{format_time(item.end_date)}")
        weight = item.weight if item.weight is not None else "default"
        suffix = f"  ({', '.join(flags)})" if flags else ""
        click.echo(
            f"{item.id}  {item.name}  weight={weight}  chosen={item.chosen_count} "
            f"(last {format_time(item.last_chosen)})  used={item.use_count}{suffix}"
        )


@items_group.command("use")
@click.argument("item_id")
def use_item(item_id: str) -> None:
    """Record that an item was used."""
    app = get_app()
    with handle_errors():
        item = app.storage.update_item_stats(item_id, chosen=False, at=utcnow())
    click.echo(f"Recorded use of {item.name} ({item.use_count} total)")


@items_group.command("remove")
@click.argument("item_id")
def remove_item(item_id: str) -> None:
    """Remove an item."""
    app = get_app()
    with handle_errors():
        app.storage.remove_item(item_id, utcnow())
    click.echo(f"Removed item {item_id}")
