"""Exception taxonomy for tribelist.

Every failure raised by the core derives from TribeListError and carries a
``kind`` (see ErrorKind) plus a human-readable message, so callers can
decide between retrying, treating the call as already done, or surfacing
the message to a user.

Hierarchy:
- InvalidInputError
- SyncStateError: InvalidSyncTransitionError, InvalidSyncConfigError,
  InvalidSyncSourceError, MissingSyncIDError
- ConflictNotFoundError, ConflictAlreadyResolvedError
- ExternalSourceError: ExternalSourceUnavailableError,
  ExternalSourceTimeoutError
- OperationTimeoutError
- NotFoundError: ListNotFoundError, ItemNotFoundError
- ConcurrentModificationError
"""

from __future__ import annotations

from tribelist.core.types import ErrorKind


class TribeListError(Exception):
    """Base exception for tribelist errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT
    retryable: bool = False
    is_idempotency_guard: bool = False

    def __init__(self, message: str = "") -> None:
        self.message = message or self.__class__.__doc__ or self.kind.value
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        """Structured form for callers that serialise errors."""
        return {"kind": self.kind.value, "message": self.message}


class InvalidInputError(TribeListError):
    """Malformed or missing required fields."""

    kind = ErrorKind.INVALID_INPUT


# === State machine preconditions ===


class SyncStateError(TribeListError):
    """A sync state machine precondition failed."""

    kind = ErrorKind.INVALID_SYNC_CONFIG


class InvalidSyncTransitionError(SyncStateError):
    """The requested sync transition is not in the transition table."""

    kind = ErrorKind.INVALID_SYNC_TRANSITION


class InvalidSyncConfigError(SyncStateError):
    """Sync source, external id, status and last-sync time disagree."""

    kind = ErrorKind.INVALID_SYNC_CONFIG


class InvalidSyncSourceError(SyncStateError):
    """Unknown sync source."""

    kind = ErrorKind.INVALID_SYNC_SOURCE


class MissingSyncIDError(SyncStateError):
    """The sync source requires an external id."""

    kind = ErrorKind.MISSING_SYNC_ID


# === Conflict idempotency guards ===


class ConflictNotFoundError(TribeListError):
    """Sync conflict not found."""

    kind = ErrorKind.CONFLICT_NOT_FOUND
    is_idempotency_guard = True


class ConflictAlreadyResolvedError(TribeListError):
    """Sync conflict already resolved."""

    kind = ErrorKind.CONFLICT_ALREADY_RESOLVED
    is_idempotency_guard = True


# === External sources (transient) ===


class ExternalSourceError(TribeListError):
    """External sync source returned an error."""

    kind = ErrorKind.EXTERNAL_SOURCE_ERROR
    retryable = True


class ExternalSourceUnavailableError(ExternalSourceError):
    """External sync source unavailable."""

    kind = ErrorKind.EXTERNAL_SOURCE_UNAVAILABLE


class ExternalSourceTimeoutError(ExternalSourceError):
    """External sync source timed out."""

    kind = ErrorKind.EXTERNAL_SOURCE_TIMEOUT


# === Deadlines ===


class OperationTimeoutError(TribeListError):
    """Caller-supplied deadline exceeded."""

    kind = ErrorKind.TIMEOUT


# === Storage ===


class NotFoundError(TribeListError):
    """Resource not found."""

    kind = ErrorKind.NOT_FOUND


class ListNotFoundError(NotFoundError):
    """List not found."""


class ItemNotFoundError(NotFoundError):
    """List item not found."""


class ConcurrentModificationError(TribeListError):
    """The row changed since it was read."""

    kind = ErrorKind.CONCURRENT_MODIFICATION
    retryable = True
