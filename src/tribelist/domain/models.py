"""Domain records for lists, items, conflicts and menus.

These are plain dataclasses: storage implementations return detached copies
and the domain services never hold on to them across calls.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from tribelist.core.errors import InvalidInputError
from tribelist.core.types import ListType, SyncSource, SyncStatus, Visibility
from tribelist.domain.transitions import parse_source, parse_status, validate_sync_config


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a new record id."""
    return str(uuid.uuid4())


def _coerce_enum(enum_type: type, value: Any, label: str) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidInputError(f"Invalid {label}: {value}") from None


def is_empty_payload(value: Any) -> bool:
    """True for None and for empty strings or containers."""
    if value is None:
        return True
    if isinstance(value, str | bytes | dict | list | tuple | set | frozenset):
        return len(value) == 0
    return False


@dataclass(frozen=True)
class SyncConfig:
    """Sync fields of a list, validated as one unit.

    Attributes:
        source: External system the list is tied to.
        external_id: Identifier of the list in that system.
        status: Current sync status.
        last_sync_at: When the list last reached the synced state.
    """

    source: SyncSource = SyncSource.NONE
    external_id: str = ""
    status: SyncStatus = SyncStatus.NONE
    last_sync_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", parse_source(self.source))
        object.__setattr__(self, "status", parse_status(self.status))
        object.__setattr__(self, "external_id", self.external_id or "")

    def validate(self) -> None:
        validate_sync_config(self.source, self.external_id, self.status, self.last_sync_at)

    @property
    def enabled(self) -> bool:
        return self.source != SyncSource.NONE


@dataclass(frozen=True)
class SyncFieldsUpdate:
    """Caller-supplied overrides for a sync transition.

    Fields left as None keep the list's current value.
    """

    source: SyncSource | str | None = None
    external_id: str | None = None
    last_sync_at: datetime | None = None


@dataclass
class TribeList:
    """A named collection of items shared within a tribe."""

    name: str
    type: ListType = ListType.GENERAL
    id: str = field(default_factory=new_id)
    description: str = ""
    visibility: Visibility = Visibility.PRIVATE
    default_weight: float = 1.0
    max_items: int | None = None
    cooldown_days: int | None = None
    sync: SyncConfig = field(default_factory=SyncConfig)
    version: int = 1
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        self.name = (self.name or "").strip()
        self.description = (self.description or "").strip()
        self.type = _coerce_enum(ListType, self.type, "list type")
        self.visibility = _coerce_enum(Visibility, self.visibility, "visibility")

    @property
    def sync_status(self) -> SyncStatus:
        return self.sync.status

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def validate(self) -> None:
        """Validate the list.

        Raises:
            InvalidInputError: If a field is missing or out of range.
            SyncStateError: If the sync fields are inconsistent.
        """
        if not self.id:
            raise InvalidInputError("List ID is required")
        if not self.name:
            raise InvalidInputError("List name is required")
        if self.default_weight is None or self.default_weight <= 0:
            raise InvalidInputError("Default weight must be positive")
        if self.max_items is not None and self.max_items <= 0:
            raise InvalidInputError("Max items must be positive")
        if self.cooldown_days is not None and self.cooldown_days < 0:
            raise InvalidInputError("Cooldown days cannot be negative")
        self.sync.validate()


@dataclass
class ListItem:
    """A single candidate entry in a list."""

    list_id: str
    name: str
    id: str = field(default_factory=new_id)
    description: str = ""
    weight: float | None = None
    available: bool = True
    seasonal: bool = False
    start_date: datetime | None = None
    end_date: datetime | None = None
    cooldown: int | None = None  # days, overrides the list's cooldown_days
    last_chosen: datetime | None = None
    chosen_count: int = 0
    last_used: datetime | None = None
    use_count: int = 0
    latitude: float | None = None
    longitude: float | None = None
    address: str | None = None
    external_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: datetime | None = None

    def __post_init__(self) -> None:
        self.name = (self.name or "").strip()
        self.external_id = self.external_id or ""
        if self.metadata is None:
            self.metadata = {}

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None and bool(self.address)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def validate(self) -> None:
        """Validate the item.

        Raises:
            InvalidInputError: If a field is missing, out of range, or the
                seasonal window or location is incomplete.
        """
        if not self.id:
            raise InvalidInputError("Item ID is required")
        if not self.list_id:
            raise InvalidInputError("List ID is required")
        if not self.name:
            raise InvalidInputError("Item name is required")
        if self.weight is not None and self.weight <= 0:
            raise InvalidInputError("Weight must be positive")
        if self.cooldown is not None and self.cooldown < 0:
            raise InvalidInputError("Cooldown cannot be negative")
        if self.chosen_count < 0 or self.use_count < 0:
            raise InvalidInputError("Usage counters cannot be negative")

        for label, value in (
            ("Start date", self.start_date),
            ("End date", self.end_date),
            ("Last chosen", self.last_chosen),
            ("Last used", self.last_used),
        ):
            if value is not None and value.tzinfo is None:
                raise InvalidInputError(f"{label} must be timezone-aware")

        if self.seasonal:
            if self.start_date is None or self.end_date is None:
                raise InvalidInputError("Seasonal items must have start and end dates")
            if self.start_date > self.end_date:
                raise InvalidInputError("Start date must not be after end date")

        location = (self.latitude, self.longitude, self.address)
        if any(part is not None for part in location):
            if any(part is None for part in location) or not self.address:
                raise InvalidInputError("Location requires latitude, longitude and address")
            if not -90 <= self.latitude <= 90:
                raise InvalidInputError("Latitude must be between -90 and 90")
            if not -180 <= self.longitude <= 180:
                raise InvalidInputError("Longitude must be between -180 and 180")

        try:
            json.dumps(self.metadata)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid metadata: {e}") from None


@dataclass
class SyncConflict:
    """A recorded divergence between local and externally sourced data.

    Attributes:
        list_id: List the conflict belongs to.
        type: Free-form category (e.g. "added", "removed", "modified").
        local_data: Local side of the divergence.
        remote_data: External side of the divergence.
        item_id: Item concerned, None for a list-level conflict.
        resolution: How the conflict was resolved (set on resolve).
        resolved_at: Set if and only if the conflict is resolved.
    """

    list_id: str
    type: str
    local_data: Any
    remote_data: Any
    id: str = field(default_factory=new_id)
    item_id: str | None = None
    resolution: str = ""
    created_at: datetime = field(default_factory=utcnow)
    resolved_at: datetime | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def validate(self) -> None:
        if not self.id:
            raise InvalidInputError("Conflict ID is required")
        if not self.list_id:
            raise InvalidInputError("List ID is required")
        if not self.type or not self.type.strip():
            raise InvalidInputError("Conflict type is required")
        if is_empty_payload(self.local_data):
            raise InvalidInputError("Local data is required")
        if is_empty_payload(self.remote_data):
            raise InvalidInputError("Remote data is required")
        for label, payload in (("Local", self.local_data), ("Remote", self.remote_data)):
            try:
                json.dumps(payload)
            except (TypeError, ValueError) as e:
                raise InvalidInputError(f"{label} data is not JSON-serialisable: {e}") from None


ItemPredicate = Callable[[ListItem], bool]


@dataclass(frozen=True)
class MenuFilters:
    """Optional narrowing of a menu request.

    Attributes:
        cooldown_days: Cooldown applied to items without their own override,
            replacing the lists' cooldown_days.
        max_items: Upper bound on the number of selected items.
        require_location: Only keep items that carry a location.
        predicates: Extra caller-defined predicates an item must satisfy.
    """

    cooldown_days: int | None = None
    max_items: int | None = None
    require_location: bool = False
    predicates: tuple[ItemPredicate, ...] = ()

    def validate(self) -> None:
        if self.cooldown_days is not None and self.cooldown_days < 0:
            raise InvalidInputError("Filter cooldown days cannot be negative")
        if self.max_items is not None and self.max_items <= 0:
            raise InvalidInputError("Filter max items must be positive")


@dataclass(frozen=True)
class MenuParams:
    """Parameters of one menu request. Never persisted."""

    list_ids: tuple[str, ...]
    count: int
    filters: MenuFilters = field(default_factory=MenuFilters)
    exclude_items: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        list_ids = self.list_ids or ()
        if isinstance(list_ids, str):
            list_ids = (list_ids,)
        # Keep first-seen order, drop duplicates
        ordered = tuple(dict.fromkeys(list_ids))
        object.__setattr__(self, "list_ids", ordered)
        object.__setattr__(self, "exclude_items", frozenset(self.exclude_items or ()))
        if self.filters is None:
            object.__setattr__(self, "filters", MenuFilters())

    def validate(self) -> None:
        """Validate the request.

        Raises:
            InvalidInputError: If no list id is given or count is not positive.
        """
        if not self.list_ids:
            raise InvalidInputError("At least one list ID is required")
        if any(not list_id for list_id in self.list_ids):
            raise InvalidInputError("List IDs must not be empty")
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count <= 0:
            raise InvalidInputError("Count must be a positive integer")
        self.filters.validate()


@dataclass(frozen=True)
class MenuResult:
    """Outcome of a menu request."""

    item_ids: tuple[str, ...]
    requested: int

    @property
    def satisfied(self) -> int:
        """Number of items actually selected (may be below ``requested``)."""
        return len(self.item_ids)

    @property
    def complete(self) -> bool:
        return self.satisfied >= self.requested


@dataclass(frozen=True)
class ExternalItem:
    """An item as reported by an external sync source."""

    external_id: str
    name: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"external_id": self.external_id, "name": self.name, "data": dict(self.data)}


def index_by_id(records: Iterable[Any]) -> dict[str, Any]:
    """Map records to their ``id`` attribute."""
    return {record.id: record for record in records}
