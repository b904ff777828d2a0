"""Eligibility filtering for menu generation.

An item is eligible when all of these hold:
- it is available and not tombstoned
- its id is not excluded
- when seasonal, now falls inside [start_date, end_date]
- it is not in cooldown
- it passes the optional location requirement and extra predicates

Cooldown days come from the item, then the request override, then the
owning list. An item is in cooldown while less than that many days have
passed since it was last chosen.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping
from datetime import datetime, timedelta

from tribelist.domain.models import ItemPredicate, ListItem, TribeList

logger = logging.getLogger(__name__)


def cooldown_days(
    item: ListItem,
    tribe_list: TribeList | None,
    override: int | None = None,
) -> int | None:
    """Cooldown in days that applies to an item, None for no cooldown."""
    if item.cooldown is not None:
        return item.cooldown
    if override is not None:
        return override
    if tribe_list is not None:
        return tribe_list.cooldown_days
    return None


def in_cooldown(item: ListItem, days: int | None, now: datetime) -> bool:
    """Check whether an item was chosen less than ``days`` days before ``now``."""
    if days is None or item.last_chosen is None:
        return False
    return now - item.last_chosen < timedelta(days=days)


def in_season(item: ListItem, now: datetime) -> bool:
    """Seasonal window check, inclusive at both ends."""
    if not item.seasonal:
        return True
    if item.start_date is None or item.end_date is None:
        return False
    return item.start_date <= now <= item.end_date


class EligibilityFilter:
    """Drops items that must not appear in a menu right now."""

    def __init__(
        self,
        lists: Mapping[str, TribeList],
        cooldown_override: int | None = None,
        require_location: bool = False,
        predicates: Iterable[ItemPredicate] = (),
    ) -> None:
        """Initialize the filter.

        Args:
            lists: Owning lists by id (for their cooldown_days).
            cooldown_override: Cooldown applied when an item has none of its own.
            require_location: Drop items without a location.
            predicates: Extra conditions every kept item must satisfy.
        """
        self._lists = lists
        self._cooldown_override = cooldown_override
        self._require_location = require_location
        self._predicates = tuple(predicates)

    def reason(self, item: ListItem, now: datetime, exclusions: Collection[str]) -> str | None:
        """Why an item is ineligible, or None when it is eligible."""
        if item.is_deleted:
            return "deleted"
        if not item.available:
            return "unavailable"
        if item.id in exclusions:
            return "excluded"
        if not in_season(item, now):
            return "out of season"
        days = cooldown_days(item, self._lists.get(item.list_id), self._cooldown_override)
        if in_cooldown(item, days, now):
            return "cooldown"
        if self._require_location and not item.has_location:
            return "no location"
        if not all(predicate(item) for predicate in self._predicates):
            return "filtered"
        return None

    def eligible(
        self,
        items: Iterable[ListItem],
        now: datetime,
        exclusions: Collection[str] = frozenset(),
    ) -> list[ListItem]:
        """Keep the eligible items, preserving their order."""
        kept = []
        for item in items:
            why = self.reason(item, now, exclusions)
            if why is None:
                kept.append(item)
            else:
                logger.debug("Skipping item %s: %s", item.id, why)
        return kept
