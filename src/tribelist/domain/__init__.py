"""Domain module - Sync state machine, conflicts and menu selection."""

from tribelist.domain.conflicts import ConflictResolver
from tribelist.domain.eligibility import EligibilityFilter, cooldown_days, in_cooldown, in_season
from tribelist.domain.menu import MenuGenerator, menu_size
from tribelist.domain.models import (
    ExternalItem,
    ListItem,
    MenuFilters,
    MenuParams,
    MenuResult,
    SyncConfig,
    SyncConflict,
    SyncFieldsUpdate,
    TribeList,
)
from tribelist.domain.selection import WeightedSelector, effective_weight
from tribelist.domain.state_machine import SyncStateMachine
from tribelist.domain.sync import ListSynchronizer, SyncReport
from tribelist.domain.transitions import (
    SYNC_TRANSITIONS,
    Transition,
    TransitionTable,
    validate_sync_config,
    validate_transition,
)

__all__ = [
    # Models
    "ExternalItem",
    "ListItem",
    "MenuFilters",
    "MenuParams",
    "MenuResult",
    "SyncConfig",
    "SyncConflict",
    "SyncFieldsUpdate",
    "TribeList",
    # Transitions
    "SYNC_TRANSITIONS",
    "Transition",
    "TransitionTable",
    "validate_sync_config",
    "validate_transition",
    # Services
    "ConflictResolver",
    "EligibilityFilter",
    "ListSynchronizer",
    "MenuGenerator",
    "SyncReport",
    "SyncStateMachine",
    "WeightedSelector",
    # Helpers
    "cooldown_days",
    "effective_weight",
    "in_cooldown",
    "in_season",
    "menu_size",
]
