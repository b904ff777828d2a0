"""Menu command for tribelist CLI.

Commands:
- menu: Draw a weighted menu from one or more lists
"""

from __future__ import annotations

import click

from tribelist.cli.context import echo_json, get_app, handle_errors
from tribelist.domain.models import MenuFilters, MenuParams, index_by_id


@click.command()
@click.argument("list_ids", nargs=-1, required=True)
@click.option("--count", "-n", type=int, default=3, show_default=True, help="Items to draw.")
@click.option("--exclude", "-x", multiple=True, help="Item id to leave out (repeatable).")
@click.option("--cooldown-days", type=int, default=None, help="Override the lists' cooldown.")
@click.option("--max-items", type=int, default=None, help="Upper bound on drawn items.")
@click.option("--require-location", is_flag=True, help="Only items with a location.")
@click.option("--seed", type=int, default=None, help="Random seed for a repeatable draw.")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
def menu(
    list_ids: tuple[str, ...],
    count: int,
    exclude: tuple[str, ...],
    cooldown_days: int | None,
    max_items: int | None,
    require_location: bool,
    seed: int | None,
    as_json: bool,
) -> None:
    """Draw a weighted menu from LIST_IDS.

    Drawn items are recorded as chosen and enter their cooldown.

    Examples:

        tribelist menu LIST_A LIST_B --count 5 --cooldown-days 7
    """
    app = get_app()
    params = MenuParams(
        list_ids=list_ids,
        count=count,
        filters=MenuFilters(
            cooldown_days=cooldown_days,
            max_items=max_items,
            require_location=require_location,
        ),
        exclude_items=frozenset(exclude),
    )
    with handle_errors():
        result = app.menu_generator(seed).generate_menu(params, deadline=app.deadline())
        items = index_by_id(app.storage.get_items(params.list_ids))

    if as_json:
        echo_json(
            {
                "item_ids": list(result.item_ids),
                "requested": result.requested,
                "satisfied": result.satisfied,
            }
        )
        return
    if not result.item_ids:
        click.echo("No eligible items.")
        return
    for position, item_id in enumerate(result.item_ids, start=1):
        click.echo(f"{position}. {items[item_id].name}  ({item_id})")
    if not result.complete:
        click.echo(f"Only {result.satisfied} of {result.requested} requested items were available.")
