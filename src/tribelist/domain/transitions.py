"""Sync transition table and sync configuration validator.

Transitions:
    none     -> pending   configure_sync
    pending  -> synced    sync_complete
    pending  -> conflict  conflict_detected
    synced   -> pending   local_change
    synced   -> conflict  remote_change_conflict
    conflict -> pending   resolve_conflict
    conflict -> synced    auto_resolve
    pending/synced/conflict -> none   disable_sync

The table has no self-loops: repeating an action once the list is already
in its target state is rejected.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType

from tribelist.core.errors import (
    InvalidSyncConfigError,
    InvalidSyncSourceError,
    InvalidSyncTransitionError,
    MissingSyncIDError,
)
from tribelist.core.types import SyncAction, SyncSource, SyncStatus


@dataclass(frozen=True)
class Transition:
    """A legal (from, to, action) row of the transition table."""

    from_status: SyncStatus
    to_status: SyncStatus
    action: SyncAction


class TransitionTable:
    """Immutable lookup over a fixed set of transitions."""

    def __init__(self, transitions: list[Transition]) -> None:
        self._rows = frozenset(transitions)
        targets: dict[tuple[SyncStatus, SyncAction], SyncStatus] = {}
        for row in transitions:
            key = (row.from_status, row.action)
            if key in targets and targets[key] != row.to_status:
                raise ValueError(
                    f"Ambiguous transition: {row.from_status.value} "
                    f"with {row.action.value}"
                )
            targets[key] = row.to_status
        self._targets = MappingProxyType(targets)

    def __contains__(self, row: object) -> bool:
        return row in self._rows

    def __iter__(self) -> Iterator[Transition]:
        return iter(sorted(self._rows, key=lambda r: (r.from_status.value, r.action.value)))

    def __len__(self) -> int:
        return len(self._rows)

    def allows(
        self,
        from_status: SyncStatus,
        to_status: SyncStatus,
        action: SyncAction,
    ) -> bool:
        """Check whether a triple appears in the table."""
        return Transition(from_status, to_status, action) in self._rows

    def target(self, from_status: SyncStatus, action: SyncAction) -> SyncStatus | None:
        """Status reached by applying ``action`` in ``from_status``, if legal."""
        return self._targets.get((from_status, action))

    def actions_from(self, from_status: SyncStatus) -> list[SyncAction]:
        """Actions that are legal in ``from_status``."""
        return sorted(
            (action for status, action in self._targets if status == from_status),
            key=lambda a: a.value,
        )


SYNC_TRANSITIONS = TransitionTable(
    [
        Transition(SyncStatus.NONE, SyncStatus.PENDING, SyncAction.CONFIGURE_SYNC),
        Transition(SyncStatus.PENDING, SyncStatus.SYNCED, SyncAction.SYNC_COMPLETE),
        Transition(SyncStatus.PENDING, SyncStatus.CONFLICT, SyncAction.CONFLICT_DETECTED),
        Transition(SyncStatus.SYNCED, SyncStatus.PENDING, SyncAction.LOCAL_CHANGE),
        Transition(SyncStatus.SYNCED, SyncStatus.CONFLICT, SyncAction.REMOTE_CHANGE_CONFLICT),
        Transition(SyncStatus.CONFLICT, SyncStatus.PENDING, SyncAction.RESOLVE_CONFLICT),
        Transition(SyncStatus.CONFLICT, SyncStatus.SYNCED, SyncAction.AUTO_RESOLVE),
        Transition(SyncStatus.PENDING, SyncStatus.NONE, SyncAction.DISABLE_SYNC),
        Transition(SyncStatus.SYNCED, SyncStatus.NONE, SyncAction.DISABLE_SYNC),
        Transition(SyncStatus.CONFLICT, SyncStatus.NONE, SyncAction.DISABLE_SYNC),
    ]
)


def parse_action(action: SyncAction | str) -> SyncAction:
    """Parse an action name, rejecting unknown actions."""
    try:
        return SyncAction(action)
    except ValueError:
        raise InvalidSyncTransitionError(f"Unknown sync action: {action}") from None


def parse_status(status: SyncStatus | str) -> SyncStatus:
    """Parse a sync status name."""
    try:
        return SyncStatus(status)
    except ValueError:
        raise InvalidSyncConfigError(f"Invalid sync status: {status}") from None


def parse_source(source: SyncSource | str) -> SyncSource:
    """Parse a sync source name."""
    try:
        return SyncSource(source)
    except ValueError:
        raise InvalidSyncSourceError(f"Invalid sync source: {source}") from None


def validate_transition(
    from_status: SyncStatus | str,
    to_status: SyncStatus | str,
    action: SyncAction | str,
    table: TransitionTable = SYNC_TRANSITIONS,
) -> None:
    """Check that a transition is legal.

    Raises:
        InvalidSyncTransitionError: If the triple is not in the table.
    """
    try:
        row = Transition(SyncStatus(from_status), SyncStatus(to_status), SyncAction(action))
    except ValueError:
        row = None
    if row is None or row not in table:
        raise InvalidSyncTransitionError(
            f"Invalid transition from '{from_status}' to '{to_status}' "
            f"with action '{action}'"
        )


def validate_sync_config(
    source: SyncSource | str,
    external_id: str,
    status: SyncStatus | str,
    last_sync_at: datetime | None,
) -> None:
    """Check that the sync fields of a list agree with each other.

    Raises:
        InvalidSyncSourceError: If the source is not recognized.
        InvalidSyncConfigError: If the status is not recognized, or the
            source is none while other fields are set.
        MissingSyncIDError: If an external map source has no external id.
    """
    source = parse_source(source)
    status = parse_status(status)

    if source == SyncSource.EXTERNAL_MAP and not external_id:
        raise MissingSyncIDError("External map sync requires an external id")

    if source == SyncSource.NONE:
        if status != SyncStatus.NONE:
            raise InvalidSyncConfigError(
                "Sync status must be none when no source is configured"
            )
        if external_id:
            raise InvalidSyncConfigError(
                "Sync external id must be empty when no source is configured"
            )
        if last_sync_at is not None:
            raise InvalidSyncConfigError(
                "Last sync time must be empty when no source is configured"
            )
