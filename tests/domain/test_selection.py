"""Tests for weighted selection."""

import random
from collections import Counter

import pytest

from tribelist.domain.models import ListItem
from tribelist.domain.selection import WeightedSelector, effective_weight


def items(*weights: float | None, list_id: str = "l1") -> list[ListItem]:
    return [
        ListItem(list_id=list_id, name=f"item-{n}", id=f"item-{n}", weight=w)
        for n, w in enumerate(weights)
    ]


class TestEffectiveWeight:
    """Tests for weight fallback."""

    def test_own_weight(self) -> None:
        """An item's own weight is used when set."""
        assert effective_weight(items(2.5)[0], {"l1": 9}) == 2.5

    def test_list_default(self) -> None:
        """Unweighted items take their list's default."""
        assert effective_weight(items(None)[0], {"l1": 4}) == 4

    def test_unknown_list_defaults_to_one(self) -> None:
        """Without a list default the weight is 1."""
        assert effective_weight(items(None)[0], {}) == 1.0


class TestWeightedSelector:
    """Tests for selection without replacement."""

    def test_distinct_picks(self) -> None:
        """No item is picked twice."""
        pool = items(1, 2, 3, 4, 5)
        picks = WeightedSelector(random.Random(1)).select(pool, 5)
        assert sorted(i.id for i in picks) == sorted(i.id for i in pool)

    def test_short_pool_returns_everything(self) -> None:
        """Asking for more than the pool returns the whole pool."""
        pool = items(1, 1)
        assert len(WeightedSelector(random.Random(1)).select(pool, 10)) == 2

    def test_empty_pool(self) -> None:
        """An empty pool gives an empty selection."""
        assert WeightedSelector(random.Random(1)).select([], 3) == []

    def test_does_not_mutate_input(self) -> None:
        """The caller's pool is left alone."""
        pool = items(1, 2, 3)
        WeightedSelector(random.Random(1)).select(pool, 2)
        assert len(pool) == 3

    def test_seeded_is_repeatable(self) -> None:
        """The same seed gives the same draw."""
        pool = items(1, 2, 3, 4)
        first = WeightedSelector(random.Random(42)).select(pool, 3)
        second = WeightedSelector(random.Random(42)).select(pool, 3)
        assert first == second

    @pytest.mark.parametrize("u", [0.0, 0.2499, 0.25, 0.9999999999])
    def test_every_draw_hits_one_item(self, u: float) -> None:
        """Interval edges map to exactly one item."""

        class FixedRandom(random.Random):
            def random(self) -> float:
                return u

        pool = items(1, 1, 1, 1)
        (pick,) = WeightedSelector(FixedRandom()).select(pool, 1)
        # [0, 1) -> item 0, [1, 2) -> item 1, ...
        assert pick.id == f"item-{int(u * 4)}"

    def test_frequencies_converge_to_weights(self) -> None:
        """First-pick frequencies approach w_i / sum(w)."""
        pool = items(1, 2, 7)
        selector = WeightedSelector(random.Random(1234))
        trials = 20000
        counts = Counter(selector.select(pool, 1)[0].id for _ in range(trials))
        for item, weight in zip(pool, (1, 2, 7), strict=True):
            assert counts[item.id] / trials == pytest.approx(weight / 10, abs=0.02)

    def test_list_default_weights_apply(self) -> None:
        """Unweighted items of a heavier list are picked more often."""
        pool = items(None, list_id="light") + [
            ListItem(list_id="heavy", name="heavy", id="heavy")
        ]
        selector = WeightedSelector(random.Random(7))
        trials = 5000
        counts = Counter(
            selector.select(pool, 1, {"light": 1, "heavy": 9})[0].id for _ in range(trials)
        )
        assert counts["heavy"] / trials == pytest.approx(0.9, abs=0.03)
