"""Storage abstraction consumed by the domain services.

Implementations guarantee atomicity at single-row granularity:
- update_sync_fields is a compare-and-swap on the list version
- update_item_stats is an atomic increment
- mark_conflict_resolved is a compare-and-set on resolved_at being unset

Multi-row facts (e.g. "no open conflicts remain") are re-queried by the
caller; storage never runs a transaction on the core's behalf.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from tribelist.domain.models import ListItem, SyncConfig, SyncConflict, TribeList


class ListStorage(ABC):
    """Abstract interface for list, item and conflict storage."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of where data is stored."""

    # === Lists ===

    @abstractmethod
    def create_list(self, tribe_list: TribeList) -> TribeList:
        """Store a new list.

        Raises:
            InvalidInputError: If the list fails validation.
        """

    @abstractmethod
    def get_list(self, list_id: str) -> TribeList:
        """Get a live (not tombstoned) list.

        Raises:
            ListNotFoundError: If the list doesn't exist or was deleted.
        """

    @abstractmethod
    def list_lists(self) -> list[TribeList]:
        """All live lists, oldest first."""

    @abstractmethod
    def delete_list(self, list_id: str, at: datetime) -> None:
        """Tombstone a list and its items.

        Raises:
            ListNotFoundError: If the list doesn't exist or was deleted.
        """

    @abstractmethod
    def update_sync_fields(
        self,
        list_id: str,
        config: SyncConfig,
        expected_version: int,
    ) -> TribeList:
        """Replace the sync fields of a list if its version still matches.

        Args:
            list_id: List to update.
            config: New sync fields.
            expected_version: Version the caller read the list at.

        Returns:
            The updated list, with its version bumped.

        Raises:
            ListNotFoundError: If the list doesn't exist or was deleted.
            ConcurrentModificationError: If the version changed.
        """

    # === Items ===

    @abstractmethod
    def add_item(self, item: ListItem) -> ListItem:
        """Store a new item in a live list.

        Raises:
            ListNotFoundError: If the owning list doesn't exist.
            InvalidInputError: If the item fails validation.
        """

    @abstractmethod
    def update_item(self, item: ListItem) -> ListItem:
        """Replace an item's editable fields (statistics are left alone).

        Raises:
            ItemNotFoundError: If the item doesn't exist or was deleted.
        """

    @abstractmethod
    def remove_item(self, item_id: str, at: datetime) -> None:
        """Tombstone an item.

        Raises:
            ItemNotFoundError: If the item doesn't exist or was deleted.
        """

    @abstractmethod
    def get_items(self, list_ids: Iterable[str]) -> list[ListItem]:
        """Live items of live lists, grouped by list in the given order."""

    @abstractmethod
    def update_item_stats(self, item_id: str, chosen: bool, at: datetime) -> ListItem:
        """Atomically record a selection or a consumption.

        Args:
            item_id: Item to update.
            chosen: True to bump chosen_count/last_chosen (menu selection),
                False to bump use_count/last_used (consumption).
            at: Timestamp to record.

        Raises:
            ItemNotFoundError: If the item doesn't exist or was deleted.
        """

    # === Conflicts ===

    @abstractmethod
    def create_conflict(self, conflict: SyncConflict) -> SyncConflict:
        """Store a new conflict.

        Raises:
            ListNotFoundError: If the list doesn't exist.
        """

    @abstractmethod
    def get_conflict(self, conflict_id: str) -> SyncConflict:
        """Get a conflict by id.

        Raises:
            ConflictNotFoundError: If the conflict doesn't exist.
        """

    @abstractmethod
    def get_conflicts(self, list_id: str) -> list[SyncConflict]:
        """All conflicts of a list (resolved and open) in creation order."""

    @abstractmethod
    def mark_conflict_resolved(
        self,
        conflict_id: str,
        resolution: str,
        at: datetime,
    ) -> SyncConflict:
        """Stamp resolution and resolved_at if the conflict is still open.

        Raises:
            ConflictNotFoundError: If the conflict doesn't exist.
            ConflictAlreadyResolvedError: If it was already resolved.
        """

    def close(self) -> None:
        """Release resources held by the storage."""
