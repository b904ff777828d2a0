"""Shared state and helpers for tribelist CLI commands.

The root group builds an AppContext from the environment and its own
options; commands fetch it with ``get_app`` and open services lazily so
that ``--help`` never touches the database.
"""

from __future__ import annotations

import json
import random
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import click

from tribelist.adapters import create_adapters
from tribelist.core.config import EngineConfig
from tribelist.core.deadline import Deadline
from tribelist.core.errors import TribeListError
from tribelist.domain.conflicts import ConflictResolver
from tribelist.domain.menu import MenuGenerator
from tribelist.domain.selection import WeightedSelector
from tribelist.domain.state_machine import SyncStateMachine
from tribelist.domain.sync import ListSynchronizer
from tribelist.storage import ListStorage, create_storage


class AppContext:
    """Configuration plus lazily opened storage and services."""

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self._storage: ListStorage | None = None

    @property
    def storage(self) -> ListStorage:
        if self._storage is None:
            self._storage = create_storage({"type": "sqlite", "db_path": str(self.config.db_path)})
        return self._storage

    def state_machine(self) -> SyncStateMachine:
        return SyncStateMachine(self.storage, max_attempts=self.config.apply_max_attempts)

    def resolver(self) -> ConflictResolver:
        return ConflictResolver(self.storage, self.state_machine())

    def synchronizer(self) -> ListSynchronizer:
        state_machine = self.state_machine()
        return ListSynchronizer(
            self.storage,
            create_adapters(self.config),
            state_machine=state_machine,
            resolver=ConflictResolver(self.storage, state_machine),
        )

    def menu_generator(self, seed: int | None = None) -> MenuGenerator:
        return MenuGenerator(self.storage, WeightedSelector(random.Random(seed)))

    def deadline(self) -> Deadline | None:
        """Deadline for one command, from TRIBELIST_TIMEOUT_SECONDS."""
        if self.config.timeout_seconds is None:
            return None
        return Deadline.after(self.config.timeout_seconds)

    def close(self) -> None:
        if self._storage is not None:
            self._storage.close()
            self._storage = None


def get_app() -> AppContext:
    """Get the AppContext of the running command."""
    return click.get_current_context().find_object(AppContext)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print tribelist errors as ``Error: ...`` on stderr and exit 1."""
    try:
        yield
    except TribeListError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)


def utc_option(value: datetime | None) -> datetime | None:
    """Treat a naive datetime from click.DateTime as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(v) for v in value]
    return value


def echo_json(value: Any) -> None:
    """Print a dataclass (or a list of them) as JSON."""
    if isinstance(value, list):
        data = [asdict(v) if is_dataclass(v) else v for v in value]
    elif is_dataclass(value):
        data = asdict(value)
    else:
        data = value
    click.echo(json.dumps(_plain(data), indent=2))


def format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"
