"""In-memory storage for tests and embedding.

All state lives in dicts guarded by one lock. Records are copied on the way
in and out so callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from tribelist.core.errors import (
    ConcurrentModificationError,
    ConflictAlreadyResolvedError,
    ConflictNotFoundError,
    ItemNotFoundError,
    ListNotFoundError,
)
from tribelist.domain.models import ListItem, SyncConfig, SyncConflict, TribeList, utcnow
from tribelist.storage.base import ListStorage


class InMemoryStorage(ListStorage):
    """Thread-safe in-memory implementation of ListStorage."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._lists: dict[str, TribeList] = {}
        self._items: dict[str, ListItem] = {}
        self._conflicts: dict[str, SyncConflict] = {}

    @property
    def location(self) -> str:
        return "In-memory"

    def _live_list(self, list_id: str) -> TribeList:
        tribe_list = self._lists.get(list_id)
        if tribe_list is None or tribe_list.is_deleted:
            raise ListNotFoundError(f"List not found: {list_id}")
        return tribe_list

    def _live_item(self, item_id: str) -> ListItem:
        item = self._items.get(item_id)
        if item is None or item.is_deleted:
            raise ItemNotFoundError(f"Item not found: {item_id}")
        return item

    # === Lists ===

    def create_list(self, tribe_list: TribeList) -> TribeList:
        tribe_list.validate()
        with self._lock:
            self._lists[tribe_list.id] = copy.deepcopy(tribe_list)
        return copy.deepcopy(tribe_list)

    def get_list(self, list_id: str) -> TribeList:
        with self._lock:
            return copy.deepcopy(self._live_list(list_id))

    def list_lists(self) -> list[TribeList]:
        with self._lock:
            return [copy.deepcopy(lst) for lst in self._lists.values() if not lst.is_deleted]

    def delete_list(self, list_id: str, at: datetime) -> None:
        with self._lock:
            tribe_list = self._live_list(list_id)
            tribe_list.deleted_at = at
            tribe_list.updated_at = at
            for item in self._items.values():
                if item.list_id == list_id and not item.is_deleted:
                    item.deleted_at = at

    def update_sync_fields(
        self,
        list_id: str,
        config: SyncConfig,
        expected_version: int,
    ) -> TribeList:
        with self._lock:
            tribe_list = self._live_list(list_id)
            if tribe_list.version != expected_version:
                raise ConcurrentModificationError(
                    f"List {list_id} changed: expected version {expected_version}, "
                    f"current version is {tribe_list.version}"
                )
            tribe_list.sync = config
            tribe_list.version += 1
            tribe_list.updated_at = utcnow()
            return copy.deepcopy(tribe_list)

    # === Items ===

    def add_item(self, item: ListItem) -> ListItem:
        item.validate()
        with self._lock:
            self._live_list(item.list_id)
            self._items[item.id] = copy.deepcopy(item)
        return copy.deepcopy(item)

    def update_item(self, item: ListItem) -> ListItem:
        item.validate()
        with self._lock:
            current = self._live_item(item.id)
            updated = replace(
                copy.deepcopy(item),
                list_id=current.list_id,
                last_chosen=current.last_chosen,
                chosen_count=current.chosen_count,
                last_used=current.last_used,
                use_count=current.use_count,
                created_at=current.created_at,
                updated_at=utcnow(),
                deleted_at=None,
            )
            self._items[item.id] = updated
            return copy.deepcopy(updated)

    def remove_item(self, item_id: str, at: datetime) -> None:
        with self._lock:
            item = self._live_item(item_id)
            item.deleted_at = at
            item.updated_at = at

    def get_items(self, list_ids: Iterable[str]) -> list[ListItem]:
        wanted = list(dict.fromkeys(list_ids))
        with self._lock:
            live_lists = {
                list_id
                for list_id in wanted
                if list_id in self._lists and not self._lists[list_id].is_deleted
            }
            items = []
            for list_id in wanted:
                if list_id not in live_lists:
                    continue
                items.extend(
                    copy.deepcopy(item)
                    for item in self._items.values()
                    if item.list_id == list_id and not item.is_deleted
                )
            return items

    def update_item_stats(self, item_id: str, chosen: bool, at: datetime) -> ListItem:
        with self._lock:
            item = self._live_item(item_id)
            if chosen:
                item.chosen_count += 1
                item.last_chosen = at
            else:
                item.use_count += 1
                item.last_used = at
            item.updated_at = at
            return copy.deepcopy(item)

    # === Conflicts ===

    def create_conflict(self, conflict: SyncConflict) -> SyncConflict:
        conflict.validate()
        with self._lock:
            if conflict.list_id not in self._lists:
                raise ListNotFoundError(f"List not found: {conflict.list_id}")
            self._conflicts[conflict.id] = copy.deepcopy(conflict)
        return copy.deepcopy(conflict)

    def get_conflict(self, conflict_id: str) -> SyncConflict:
        with self._lock:
            conflict = self._conflicts.get(conflict_id)
            if conflict is None:
                raise ConflictNotFoundError(f"Conflict not found: {conflict_id}")
            return copy.deepcopy(conflict)

    def get_conflicts(self, list_id: str) -> list[SyncConflict]:
        # dicts keep insertion order, which is creation order
        with self._lock:
            return [
                copy.deepcopy(c) for c in self._conflicts.values() if c.list_id == list_id
            ]

    def mark_conflict_resolved(
        self,
        conflict_id: str,
        resolution: str,
        at: datetime,
    ) -> SyncConflict:
        with self._lock:
            conflict = self._conflicts.get(conflict_id)
            if conflict is None:
                raise ConflictNotFoundError(f"Conflict not found: {conflict_id}")
            if conflict.resolved_at is not None:
                raise ConflictAlreadyResolvedError(f"Conflict already resolved: {conflict_id}")
            conflict.resolution = resolution
            conflict.resolved_at = at
            return copy.deepcopy(conflict)
