"""Sync state machine for lists.

Every change to a list's sync fields goes through SyncStateMachine.apply:
the action is looked up in the transition table, the candidate SyncConfig
is validated, and the result is committed with a compare-and-swap on the
list version. Nothing is written unless every check passes.

Two callers racing on the same list are serialized by the version check:
the loser re-reads the list and re-validates its action against the
winner's result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from tribelist.core.deadline import Deadline, check_deadline
from tribelist.core.errors import ConcurrentModificationError, InvalidSyncTransitionError
from tribelist.core.types import SyncAction, SyncSource, SyncStatus
from tribelist.domain.models import SyncConfig, SyncFieldsUpdate, TribeList, utcnow
from tribelist.domain.transitions import (
    SYNC_TRANSITIONS,
    TransitionTable,
    parse_action,
    parse_source,
    validate_transition,
)

if TYPE_CHECKING:
    from tribelist.storage.base import ListStorage

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class SyncStateMachine:
    """Applies sync actions to lists stored in a ListStorage."""

    def __init__(
        self,
        storage: ListStorage,
        table: TransitionTable = SYNC_TRANSITIONS,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        """Initialize the state machine.

        Args:
            storage: Storage holding the lists.
            table: Transition table to enforce.
            clock: Source of the current time (for last_sync_at).
            max_attempts: Compare-and-swap attempts before giving up.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._storage = storage
        self._table = table
        self._clock = clock
        self._max_attempts = max_attempts

    @property
    def table(self) -> TransitionTable:
        return self._table

    def apply(
        self,
        list_id: str,
        action: SyncAction | str,
        fields: SyncFieldsUpdate | None = None,
        deadline: Deadline | None = None,
    ) -> TribeList:
        """Apply a sync action to a list.

        Args:
            list_id: List to transition.
            action: Action to apply.
            fields: Optional overrides for source, external id or last sync time.
            deadline: Optional deadline, checked before the write.

        Returns:
            The list after the transition.

        Raises:
            InvalidSyncTransitionError: If the action is unknown or not legal
                from the list's current status.
            SyncStateError: If the resulting sync fields are inconsistent.
            ListNotFoundError: If the list doesn't exist.
            OperationTimeoutError: If the deadline expired before the write.
            ConcurrentModificationError: If the list kept changing underneath
                us for every attempt.
        """
        action = parse_action(action)
        fields = fields or SyncFieldsUpdate()

        attempt = 1
        while True:
            tribe_list = self._storage.get_list(list_id)
            candidate = self._candidate(tribe_list, action, fields)
            check_deadline(deadline, f"sync action {action.value}")
            try:
                updated = self._storage.update_sync_fields(
                    list_id, candidate, expected_version=tribe_list.version
                )
            except ConcurrentModificationError:
                if attempt >= self._max_attempts:
                    raise
                logger.warning(
                    "List %s changed during %s (attempt %d/%d), retrying",
                    list_id,
                    action.value,
                    attempt,
                    self._max_attempts,
                )
                attempt += 1
                continue

            logger.info(
                "List %s: %s -> %s (%s)",
                list_id,
                tribe_list.sync_status.value,
                updated.sync_status.value,
                action.value,
            )
            return updated

    def _candidate(
        self,
        tribe_list: TribeList,
        action: SyncAction,
        fields: SyncFieldsUpdate,
    ) -> SyncConfig:
        """Build and validate the sync fields a transition would produce."""
        current = tribe_list.sync
        target = self._table.target(current.status, action)
        if target is None:
            allowed = ", ".join(a.value for a in self._table.actions_from(current.status))
            raise InvalidSyncTransitionError(
                f"Cannot apply '{action.value}' to list {tribe_list.id} "
                f"in status '{current.status.value}' (allowed: {allowed or 'none'})"
            )
        validate_transition(current.status, target, action, self._table)

        if action == SyncAction.DISABLE_SYNC:
            return SyncConfig()

        source = current.source if fields.source is None else parse_source(fields.source)
        external_id = current.external_id if fields.external_id is None else fields.external_id

        last_sync_at = current.last_sync_at
        if action == SyncAction.CONFIGURE_SYNC:
            last_sync_at = None
        if target == SyncStatus.SYNCED:
            last_sync_at = self._clock()
        if fields.last_sync_at is not None:
            last_sync_at = fields.last_sync_at

        candidate = SyncConfig(
            source=source,
            external_id=external_id,
            status=target,
            last_sync_at=last_sync_at,
        )
        candidate.validate()
        return candidate

    # === Convenience wrappers ===

    def configure_sync(
        self,
        list_id: str,
        source: SyncSource | str,
        external_id: str = "",
        deadline: Deadline | None = None,
    ) -> TribeList:
        """Attach a list to a sync source (none -> pending)."""
        return self.apply(
            list_id,
            SyncAction.CONFIGURE_SYNC,
            SyncFieldsUpdate(source=source, external_id=external_id),
            deadline=deadline,
        )

    def disable_sync(self, list_id: str, deadline: Deadline | None = None) -> TribeList:
        """Detach a list from its sync source and reset the sync fields."""
        return self.apply(list_id, SyncAction.DISABLE_SYNC, deadline=deadline)

    def allowed_actions(self, list_id: str) -> list[SyncAction]:
        """Actions currently legal for a list."""
        return self._table.actions_from(self._storage.get_list(list_id).sync_status)
