"""List synchronization against external sources.

sync_list compares a list with what its source reports, matching items by
external id:
- remote only  -> "added" conflict
- local only   -> "removed" conflict
- name differs -> "modified" conflict

Every divergence is recorded through the ConflictResolver, which moves the
list into the conflict state. A pending list with no divergence is marked
synced. How a conflict is settled is left to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from tribelist.core.deadline import Deadline, check_deadline
from tribelist.core.errors import (
    ExternalSourceError,
    InvalidSyncConfigError,
    InvalidSyncSourceError,
    InvalidSyncTransitionError,
)
from tribelist.core.types import SyncAction, SyncSource, SyncStatus
from tribelist.domain.conflicts import ConflictResolver
from tribelist.domain.models import ExternalItem, ListItem, TribeList
from tribelist.domain.state_machine import SyncStateMachine

if TYPE_CHECKING:
    from tribelist.adapters import SyncAdapter
    from tribelist.storage.base import ListStorage

logger = logging.getLogger(__name__)

_SYNCABLE = (SyncStatus.PENDING, SyncStatus.SYNCED)


@dataclass
class SyncReport:
    """Outcome of one sync_list run."""

    list_id: str
    status: SyncStatus
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    conflict_ids: list[str] = field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return not (self.added or self.removed or self.modified)


def _local_payload(item: ListItem) -> dict[str, Any]:
    return {"id": item.id, "external_id": item.external_id, "name": item.name}


def _missing(external_id: str) -> dict[str, Any]:
    return {"external_id": external_id, "missing": True}


def to_external(item: ListItem) -> ExternalItem:
    """Represent a local item the way a sync source sees it."""
    data: dict[str, Any] = {}
    if item.description:
        data["description"] = item.description
    if item.metadata:
        data["metadata"] = dict(item.metadata)
    return ExternalItem(external_id=item.external_id or item.id, name=item.name, data=data)


class ListSynchronizer:
    """Fetches, diffs and pushes lists through their sync adapters."""

    def __init__(
        self,
        storage: ListStorage,
        adapters: Mapping[SyncSource, SyncAdapter],
        state_machine: SyncStateMachine | None = None,
        resolver: ConflictResolver | None = None,
    ) -> None:
        self._storage = storage
        self._adapters = adapters
        self._state_machine = state_machine or SyncStateMachine(storage)
        self._resolver = resolver or ConflictResolver(storage, self._state_machine)

    def _prepare(self, list_id: str, operation: str) -> tuple[TribeList, SyncAdapter]:
        """Load a list and its adapter, checking the list can be synced now."""
        tribe_list = self._storage.get_list(list_id)
        if not tribe_list.sync.enabled:
            raise InvalidSyncConfigError(f"List {list_id} is not configured for sync")
        adapter = self._adapters.get(tribe_list.sync.source)
        if adapter is None:
            raise InvalidSyncSourceError(
                f"No adapter for sync source '{tribe_list.sync.source.value}'"
            )
        if tribe_list.sync_status not in _SYNCABLE:
            raise InvalidSyncTransitionError(
                f"Cannot {operation} list {list_id} in status "
                f"'{tribe_list.sync_status.value}'; resolve open conflicts first"
            )
        return tribe_list, adapter

    def sync_list(self, list_id: str, deadline: Deadline | None = None) -> SyncReport:
        """Compare a list with its sync source and record divergences.

        Raises:
            InvalidSyncConfigError: If the list has no sync source.
            InvalidSyncSourceError: If no adapter serves the list's source.
            InvalidSyncTransitionError: If the list is in conflict.
            ExternalSourceError: Passed through from the adapter.
            OperationTimeoutError: If the deadline expired before any write.
        """
        tribe_list, adapter = self._prepare(list_id, "sync")
        check_deadline(deadline, "sync fetch")
        remote = {item.external_id: item for item in adapter.fetch(tribe_list.sync.external_id)}
        local = {
            item.external_id: item
            for item in self._storage.get_items([list_id])
            if item.external_id
        }

        report = SyncReport(list_id=list_id, status=tribe_list.sync_status)
        report.added = [eid for eid in remote if eid not in local]
        report.removed = [eid for eid in local if eid not in remote]
        report.modified = [
            eid for eid in remote if eid in local and remote[eid].name != local[eid].name
        ]

        check_deadline(deadline, "sync")
        for eid in report.added:
            conflict = self._resolver.create_conflict(
                list_id, "added", _missing(eid), remote[eid].to_dict()
            )
            report.conflict_ids.append(conflict.id)
        for eid in report.removed:
            conflict = self._resolver.create_conflict(
                list_id, "removed", _local_payload(local[eid]), _missing(eid), item_id=local[eid].id
            )
            report.conflict_ids.append(conflict.id)
        for eid in report.modified:
            conflict = self._resolver.create_conflict(
                list_id,
                "modified",
                _local_payload(local[eid]),
                remote[eid].to_dict(),
                item_id=local[eid].id,
            )
            report.conflict_ids.append(conflict.id)

        if report.in_sync and tribe_list.sync_status == SyncStatus.PENDING:
            report.status = self._state_machine.apply(list_id, SyncAction.SYNC_COMPLETE).sync_status
        elif not report.in_sync:
            report.status = SyncStatus.CONFLICT

        logger.info(
            "Synced list %s: %d added, %d removed, %d modified",
            list_id,
            len(report.added),
            len(report.removed),
            len(report.modified),
        )
        return report

    def push_list(self, list_id: str, deadline: Deadline | None = None) -> TribeList:
        """Push local items to the list's sync source.

        Returns:
            The list, marked synced if it was pending.

        Raises:
            InvalidSyncConfigError: If the list has no sync source.
            InvalidSyncSourceError: If no adapter serves the list's source.
            InvalidSyncTransitionError: If the list is in conflict.
            ExternalSourceError: If the source rejected the push, or passed
                through from the adapter.
            OperationTimeoutError: If the deadline expired before the push.
        """
        tribe_list, adapter = self._prepare(list_id, "push")
        items = [to_external(item) for item in self._storage.get_items([list_id])]

        check_deadline(deadline, "push")
        if not adapter.push(tribe_list.sync.external_id, items):
            raise ExternalSourceError(
                f"Sync source rejected push of list {list_id} ({len(items)} items)"
            )
        logger.info("Pushed %d items of list %s", len(items), list_id)

        if tribe_list.sync_status == SyncStatus.PENDING:
            return self._state_machine.apply(list_id, SyncAction.SYNC_COMPLETE)
        return self._storage.get_list(list_id)
