"""Menu generation across one or more lists."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from tribelist.core.deadline import Deadline, check_deadline
from tribelist.domain.eligibility import EligibilityFilter
from tribelist.domain.models import MenuParams, MenuResult, TribeList, utcnow
from tribelist.domain.selection import WeightedSelector

if TYPE_CHECKING:
    from tribelist.storage.base import ListStorage

logger = logging.getLogger(__name__)


def menu_size(params: MenuParams, lists: list[TribeList]) -> int:
    """Number of items to draw: the request count capped by every max_items."""
    caps = [params.count]
    caps.extend(lst.max_items for lst in lists if lst.max_items is not None)
    if params.filters.max_items is not None:
        caps.append(params.filters.max_items)
    return min(caps)


class MenuGenerator:
    """Draws a weighted menu of eligible items and records the picks."""

    def __init__(
        self,
        storage: ListStorage,
        selector: WeightedSelector | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._storage = storage
        self._selector = selector or WeightedSelector()
        self._clock = clock

    def generate_menu(self, params: MenuParams, deadline: Deadline | None = None) -> MenuResult:
        """Generate a menu.

        Args:
            params: Lists to draw from, number of items, filters and exclusions.
            deadline: Optional deadline, checked before the statistics update.

        Returns:
            The selected item ids in draw order. Fewer than requested is not
            an error; see MenuResult.satisfied.

        Raises:
            InvalidInputError: If the parameters are invalid.
            ListNotFoundError: If a requested list doesn't exist.
            OperationTimeoutError: If the deadline expired before any write.
        """
        params.validate()
        now = self._clock()

        lists = [self._storage.get_list(list_id) for list_id in params.list_ids]
        by_id = {lst.id: lst for lst in lists}
        items = self._storage.get_items(params.list_ids)

        eligibility = EligibilityFilter(
            by_id,
            cooldown_override=params.filters.cooldown_days,
            require_location=params.filters.require_location,
            predicates=params.filters.predicates,
        )
        eligible = eligibility.eligible(items, now, params.exclude_items)

        wanted = menu_size(params, lists)
        picks = self._selector.select(
            eligible,
            wanted,
            {lst.id: lst.default_weight for lst in lists},
        )

        check_deadline(deadline, "menu generation")
        for item in picks:
            self._storage.update_item_stats(item.id, chosen=True, at=now)

        result = MenuResult(item_ids=tuple(item.id for item in picks), requested=params.count)
        logger.info(
            "Generated menu from %d list(s): %d of %d requested (%d eligible of %d)",
            len(lists),
            result.satisfied,
            params.count,
            len(eligible),
            len(items),
        )
        return result
