"""Command-line interface for TribeList.

This module provides the main CLI entry point and assembles all commands.

Commands:
- lists: Create, show and delete lists
- items: Add, show and use list items
- sync: Apply sync actions, sync and push lists
- conflicts: Show and resolve sync conflicts
- menu: Draw a weighted menu from one or more lists
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from tribelist import __version__
from tribelist.cli.conflicts import conflicts_group
from tribelist.cli.context import AppContext, get_app
from tribelist.cli.items import items_group
from tribelist.cli.lists import lists_group
from tribelist.cli.menu import menu
from tribelist.cli.sync import sync_group
from tribelist.core.config import LOG_LEVELS, EngineConfig
from tribelist.core.logs import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--db-path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to database file (default: TRIBELIST_DB_PATH or ./tribelist.db).",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: TRIBELIST_LOG_LEVEL or INFO).",
)
@click.pass_context
def cli(ctx: click.Context, db_path: Path | None, log_level: str | None) -> None:
    """TribeList - Shared lists with external sync and weighted menus."""
    try:
        config = EngineConfig.from_env()
        if db_path is not None:
            config.db_path = db_path
        if log_level is not None:
            config.log_level = log_level.upper()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    setup_logging(config.log_level, config.log_path)

    app = AppContext(config)
    ctx.obj = app
    ctx.call_on_close(app.close)


cli.add_command(lists_group)
cli.add_command(items_group)
cli.add_command(sync_group)
cli.add_command(conflicts_group)
cli.add_command(menu)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "AppContext",
    "cli",
    "get_app",
    "main",
]
