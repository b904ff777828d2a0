"""Core module - Shared types, errors, deadlines and configuration."""

from tribelist.core.config import EngineConfig
from tribelist.core.deadline import Deadline, check_deadline
from tribelist.core.errors import (
    ConcurrentModificationError,
    ConflictAlreadyResolvedError,
    ConflictNotFoundError,
    ExternalSourceError,
    ExternalSourceTimeoutError,
    ExternalSourceUnavailableError,
    InvalidInputError,
    InvalidSyncConfigError,
    InvalidSyncSourceError,
    InvalidSyncTransitionError,
    ItemNotFoundError,
    ListNotFoundError,
    MissingSyncIDError,
    NotFoundError,
    OperationTimeoutError,
    SyncStateError,
    TribeListError,
)
from tribelist.core.logs import setup_logging
from tribelist.core.types import (
    ErrorKind,
    ListType,
    SyncAction,
    SyncSource,
    SyncStatus,
    Visibility,
)

__all__ = [
    # Config
    "EngineConfig",
    "setup_logging",
    # Deadlines
    "Deadline",
    "check_deadline",
    # Errors
    "ConcurrentModificationError",
    "ConflictAlreadyResolvedError",
    "ConflictNotFoundError",
    "ExternalSourceError",
    "ExternalSourceTimeoutError",
    "ExternalSourceUnavailableError",
    "InvalidInputError",
    "InvalidSyncConfigError",
    "InvalidSyncSourceError",
    "InvalidSyncTransitionError",
    "ItemNotFoundError",
    "ListNotFoundError",
    "MissingSyncIDError",
    "NotFoundError",
    "OperationTimeoutError",
    "SyncStateError",
    "TribeListError",
    # Types
    "ErrorKind",
    "ListType",
    "SyncAction",
    "SyncSource",
    "SyncStatus",
    "Visibility",
]
