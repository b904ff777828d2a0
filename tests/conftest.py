"""Shared fixtures for tribelist tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from tribelist.core.types import SyncSource, SyncStatus
from tribelist.domain.models import ListItem, SyncConfig, TribeList
from tribelist.storage import Database, InMemoryStorage, ListStorage

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at NOW."""
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    """Empty in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def db(tmp_path) -> Iterator[Database]:
    """Create a test database."""
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture(params=["memory", "sqlite"])
def any_storage(request, tmp_path) -> Iterator[ListStorage]:
    """Each storage implementation in turn."""
    if request.param == "memory":
        yield InMemoryStorage()
        return
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


def _sync_config(status: SyncStatus) -> SyncConfig:
    if status == SyncStatus.NONE:
        return SyncConfig()
    return SyncConfig(
        source=SyncSource.IMPORTED,
        external_id="dinners",
        status=status,
        last_sync_at=NOW if status == SyncStatus.SYNCED else None,
    )


@pytest.fixture
def make_list(storage: ListStorage) -> Callable[..., TribeList]:
    """Factory storing a list, optionally already in a sync status."""

    def factory(
        name: str = "Dinners",
        status: SyncStatus = SyncStatus.NONE,
        target: ListStorage | None = None,
        **kwargs: Any,
    ) -> TribeList:
        kwargs.setdefault("sync", _sync_config(status))
        return (target or storage).create_list(TribeList(name=name, **kwargs))

    return factory


@pytest.fixture
def make_item(storage: ListStorage) -> Callable[..., ListItem]:
    """Factory storing an item in a list."""

    def factory(
        list_id: str,
        name: str = "Tacos",
        target: ListStorage | None = None,
        **kwargs: Any,
    ) -> ListItem:
        return (target or storage).add_item(ListItem(list_id=list_id, name=name, **kwargs))

    return factory
