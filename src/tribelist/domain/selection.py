"""Weighted random selection without replacement.

Each remaining item owns the half-open interval [c_{i-1}, c_i) of the
cumulative weight array. A draw u in [0, total) is located with
bisect_right, so every draw lands on exactly one item and an item's chance
is its weight over the total weight still in the pool.
"""

from __future__ import annotations

import logging
import random
from bisect import bisect_right
from collections.abc import Mapping, Sequence
from itertools import accumulate

from tribelist.domain.models import ListItem

logger = logging.getLogger(__name__)

DEFAULT_LIST_WEIGHT = 1.0


def effective_weight(item: ListItem, default_weights: Mapping[str, float]) -> float:
    """Item weight if set and positive, else its list's default weight."""
    if item.weight is not None and item.weight > 0:
        return item.weight
    return default_weights.get(item.list_id, DEFAULT_LIST_WEIGHT)


class WeightedSelector:
    """Draws distinct items with probability proportional to their weight."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def select(
        self,
        items: Sequence[ListItem],
        count: int,
        default_weights: Mapping[str, float] | None = None,
    ) -> list[ListItem]:
        """Draw up to ``count`` distinct items.

        Args:
            items: Candidate pool.
            count: Number of items wanted.
            default_weights: Default weight per list id.

        Returns:
            Selected items in draw order; the whole pool when it is smaller
            than ``count``.
        """
        default_weights = default_weights or {}
        pool = list(items)
        weights = [effective_weight(item, default_weights) for item in pool]
        selected: list[ListItem] = []

        while pool and len(selected) < count:
            cumulative = list(accumulate(weights))
            total = cumulative[-1]
            u = self._rng.random() * total
            # Clamp guards against u rounding up to total
            index = min(bisect_right(cumulative, u), len(pool) - 1)
            logger.debug("Drew %.4f of %.4f -> item %s", u, total, pool[index].id)
            selected.append(pool.pop(index))
            weights.pop(index)

        return selected
