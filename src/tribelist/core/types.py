"""Shared types for tribelist.

This module defines the enums used by the domain, storage and CLI layers.
Values are the strings persisted in storage and shown to users.
"""

from __future__ import annotations

from enum import Enum


class ListType(str, Enum):
    """Kind of content a list holds."""

    GENERAL = "general"
    LOCATION = "location"
    ACTIVITY = "activity"
    INTEREST = "interest"
    EXTERNAL_MAP = "external_map"


class Visibility(str, Enum):
    """Who can see a list."""

    PRIVATE = "private"
    SHARED = "shared"
    PUBLIC = "public"


class SyncStatus(str, Enum):
    """Sync status of a list.

    NONE is the initial state. There is no terminal state: a list can be
    configured, disabled and configured again for its whole life.
    """

    NONE = "none"  # No sync configured
    PENDING = "pending"  # Changes waiting to be synced
    SYNCED = "synced"  # In sync with the external source
    CONFLICT = "conflict"  # Divergence recorded, waiting for resolution


class SyncSource(str, Enum):
    """External system a list is tied to."""

    NONE = "none"
    EXTERNAL_MAP = "external_map"
    MANUAL = "manual"
    IMPORTED = "imported"


class SyncAction(str, Enum):
    """Named actions accepted by the sync state machine."""

    CONFIGURE_SYNC = "configure_sync"
    SYNC_COMPLETE = "sync_complete"
    CONFLICT_DETECTED = "conflict_detected"
    LOCAL_CHANGE = "local_change"
    REMOTE_CHANGE_CONFLICT = "remote_change_conflict"
    RESOLVE_CONFLICT = "resolve_conflict"
    AUTO_RESOLVE = "auto_resolve"
    DISABLE_SYNC = "disable_sync"


class ErrorKind(str, Enum):
    """Machine-readable category carried by every TribeListError."""

    INVALID_INPUT = "invalid_input"
    INVALID_SYNC_TRANSITION = "invalid_sync_transition"
    INVALID_SYNC_CONFIG = "invalid_sync_config"
    INVALID_SYNC_SOURCE = "invalid_sync_source"
    MISSING_SYNC_ID = "missing_sync_id"
    CONFLICT_NOT_FOUND = "conflict_not_found"
    CONFLICT_ALREADY_RESOLVED = "conflict_already_resolved"
    EXTERNAL_SOURCE_UNAVAILABLE = "external_source_unavailable"
    EXTERNAL_SOURCE_ERROR = "external_source_error"
    EXTERNAL_SOURCE_TIMEOUT = "external_source_timeout"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    CONCURRENT_MODIFICATION = "concurrent_modification"
