"""Sync conflict recording and resolution.

A conflict records one divergence between a list's local data and what its
sync source reports. Recording the first conflict moves the list into the
conflict state; resolving the last open one moves it out again:

    pending  --create-->  conflict   (conflict_detected)
    synced   --create-->  conflict   (remote_change_conflict)
    conflict --create-->  conflict   (stored, no transition)
    conflict --resolve last-->  pending (resolve_conflict) or synced (auto_resolve)

Resolution itself is a compare-and-set in storage, so two resolvers racing
on one conflict produce exactly one winner.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from tribelist.core.deadline import Deadline, check_deadline
from tribelist.core.errors import (
    ConflictAlreadyResolvedError,
    InvalidSyncTransitionError,
    ListNotFoundError,
    TribeListError,
)
from tribelist.core.types import SyncAction, SyncStatus
from tribelist.domain.models import SyncConfig, SyncConflict, SyncFieldsUpdate, utcnow
from tribelist.domain.state_machine import SyncStateMachine

if TYPE_CHECKING:
    from tribelist.storage.base import ListStorage

logger = logging.getLogger(__name__)

# Action that moves a list into the conflict state, by current status
_ENTER_CONFLICT: dict[SyncStatus, SyncAction] = {
    SyncStatus.PENDING: SyncAction.CONFLICT_DETECTED,
    SyncStatus.SYNCED: SyncAction.REMOTE_CHANGE_CONFLICT,
}

# Action that undoes the move above, by the status before it
_LEAVE_CONFLICT: dict[SyncStatus, SyncAction] = {
    SyncStatus.PENDING: SyncAction.RESOLVE_CONFLICT,
    SyncStatus.SYNCED: SyncAction.AUTO_RESOLVE,
}


class ConflictResolver:
    """Creates, lists and resolves sync conflicts."""

    def __init__(
        self,
        storage: ListStorage,
        state_machine: SyncStateMachine | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._state_machine = state_machine or SyncStateMachine(storage, clock=clock)
        self._clock = clock

    def create_conflict(
        self,
        list_id: str,
        conflict_type: str,
        local_data: Any,
        remote_data: Any,
        item_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> SyncConflict:
        """Record a conflict and move the list into the conflict state.

        Args:
            list_id: List the conflict belongs to.
            conflict_type: Category such as "added", "removed" or "modified".
            local_data: Local side of the divergence.
            remote_data: External side of the divergence.
            item_id: Item concerned, None for a list-level conflict.
            deadline: Optional deadline, checked before the first write.

        Returns:
            The stored conflict.

        Raises:
            InvalidInputError: If the type is blank or a payload is empty or
                not JSON-serialisable.
            InvalidSyncTransitionError: If the list is not syncing.
            ListNotFoundError: If the list doesn't exist.
            OperationTimeoutError: If the deadline expired before any write.
        """
        conflict = SyncConflict(
            list_id=list_id,
            type=(conflict_type or "").strip(),
            local_data=local_data,
            remote_data=remote_data,
            item_id=item_id,
            created_at=self._clock(),
        )
        conflict.validate()

        before = self._storage.get_list(list_id).sync
        action = self._entry_action(list_id, before.status)
        check_deadline(deadline, "create conflict")

        entered = False
        if action is not None:
            try:
                self._state_machine.apply(list_id, action)
                entered = True
            except InvalidSyncTransitionError:
                # Another caller may have moved the list into conflict first
                if self._storage.get_list(list_id).sync_status != SyncStatus.CONFLICT:
                    raise

        try:
            stored = self._storage.create_conflict(conflict)
        except Exception:
            if entered:
                self._leave_empty_conflict(list_id, before)
            raise
        logger.info(
            "Recorded %s conflict %s on list %s%s",
            stored.type,
            stored.id,
            list_id,
            f" (item {item_id})" if item_id else "",
        )
        return stored

    def _leave_empty_conflict(self, list_id: str, before: SyncConfig) -> None:
        """Undo our move into conflict after the conflict record failed to store."""
        if self.open_conflicts(list_id):
            return
        action = _LEAVE_CONFLICT[before.status]
        try:
            self._state_machine.apply(
                list_id, action, SyncFieldsUpdate(last_sync_at=before.last_sync_at)
            )
        except TribeListError as e:
            logger.error("Could not move list %s back to %s: %s", list_id, before.status.value, e)
        else:
            logger.warning(
                "Conflict record on list %s failed to store; list back to %s",
                list_id,
                before.status.value,
            )

    @staticmethod
    def _entry_action(list_id: str, status: SyncStatus) -> SyncAction | None:
        if status == SyncStatus.CONFLICT:
            return None
        action = _ENTER_CONFLICT.get(status)
        if action is None:
            raise InvalidSyncTransitionError(
                f"Cannot record a conflict on list {list_id} in status '{status.value}'"
            )
        return action

    def resolve_conflict(
        self,
        conflict_id: str,
        resolution: str,
        auto: bool = False,
        deadline: Deadline | None = None,
    ) -> SyncConflict:
        """Resolve a conflict.

        When this was the list's last open conflict and the list is still in
        the conflict state, the list moves to pending (or to synced when
        ``auto`` is set).

        Args:
            conflict_id: Conflict to resolve.
            resolution: How it was resolved (free-form).
            auto: Resolve automatically, returning the list to synced.
            deadline: Optional deadline, checked before the first write.

        Returns:
            The resolved conflict.

        Raises:
            ConflictNotFoundError: If the conflict doesn't exist.
            ConflictAlreadyResolvedError: If it was already resolved, including
                by a concurrent caller.
            OperationTimeoutError: If the deadline expired before any write.
        """
        conflict = self._storage.get_conflict(conflict_id)
        if conflict.is_resolved:
            raise ConflictAlreadyResolvedError(f"Conflict already resolved: {conflict_id}")
        check_deadline(deadline, "resolve conflict")

        resolved = self._storage.mark_conflict_resolved(
            conflict_id, (resolution or "").strip(), self._clock()
        )
        logger.info("Resolved conflict %s on list %s", conflict_id, resolved.list_id)

        if self.open_conflicts(resolved.list_id):
            return resolved

        action = SyncAction.AUTO_RESOLVE if auto else SyncAction.RESOLVE_CONFLICT
        try:
            if self._storage.get_list(resolved.list_id).sync_status == SyncStatus.CONFLICT:
                self._state_machine.apply(resolved.list_id, action)
        except ListNotFoundError:
            logger.debug("List %s is gone, no transition after resolve", resolved.list_id)
        except InvalidSyncTransitionError:
            # A concurrent resolver of the last conflict transitioned first
            if self._storage.get_list(resolved.list_id).sync_status == SyncStatus.CONFLICT:
                raise
        return resolved

    def list_conflicts(self, list_id: str) -> list[SyncConflict]:
        """All conflicts of a list in creation order, resolved ones included."""
        return self._storage.get_conflicts(list_id)

    def open_conflicts(self, list_id: str) -> list[SyncConflict]:
        """Unresolved conflicts of a list in creation order."""
        return [c for c in self._storage.get_conflicts(list_id) if not c.is_resolved]
