"""Tests for eligibility filtering."""

from datetime import UTC, datetime, timedelta

import pytest

from tribelist.domain.eligibility import EligibilityFilter, cooldown_days, in_cooldown, in_season
from tribelist.domain.models import ListItem, TribeList

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=UTC)


def item(name: str = "Tacos", list_id: str = "l1", **kwargs) -> ListItem:
    return ListItem(list_id=list_id, name=name, id=name.lower(), **kwargs)


@pytest.fixture
def lists() -> dict[str, TribeList]:
    return {
        "l1": TribeList(name="Dinners", id="l1", cooldown_days=7),
        "l2": TribeList(name="Parks", id="l2"),
    }


class TestCooldown:
    """Tests for cooldown resolution and boundaries."""

    def test_item_overrides_everything(self, lists) -> None:
        """The item's own cooldown wins."""
        assert cooldown_days(item(cooldown=2), lists["l1"], override=5) == 2

    def test_override_beats_list(self, lists) -> None:
        """The request override beats the list's cooldown."""
        assert cooldown_days(item(), lists["l1"], override=5) == 5

    def test_falls_back_to_list(self, lists) -> None:
        """Without overrides, the list's cooldown applies."""
        assert cooldown_days(item(), lists["l1"]) == 7
        assert cooldown_days(item(list_id="l2"), lists["l2"]) is None

    def test_never_chosen_is_not_in_cooldown(self) -> None:
        """Items never chosen are always past cooldown."""
        assert not in_cooldown(item(), 7, NOW)

    def test_boundary(self) -> None:
        """Eligible exactly when the full cooldown has elapsed."""
        just_before = item(last_chosen=NOW - timedelta(days=7) + timedelta(seconds=1))
        exactly = item(last_chosen=NOW - timedelta(days=7))
        assert in_cooldown(just_before, 7, NOW)
        assert not in_cooldown(exactly, 7, NOW)

    def test_zero_cooldown(self) -> None:
        """A zero-day cooldown never blocks."""
        assert not in_cooldown(item(last_chosen=NOW), 0, NOW)


class TestSeason:
    """Tests for the seasonal window."""

    def test_window_is_inclusive(self) -> None:
        """Both ends of the window are in season."""
        start, end = NOW - timedelta(days=10), NOW
        seasonal = item(seasonal=True, start_date=start, end_date=end)
        assert in_season(seasonal, start)
        assert in_season(seasonal, end)
        assert not in_season(seasonal, end + timedelta(microseconds=1))
        assert not in_season(seasonal, start - timedelta(microseconds=1))

    def test_non_seasonal_always_in_season(self) -> None:
        """Non-seasonal items ignore dates."""
        assert in_season(item(), NOW)


class TestEligibilityFilter:
    """Tests for the combined filter."""

    def test_keeps_order_and_drops_ineligible(self, lists) -> None:
        """Only eligible items survive, in their original order."""
        items = [
            item("A"),
            item("B", available=False),
            item("C", last_chosen=NOW - timedelta(days=1)),
            item("D", seasonal=True, start_date=NOW + timedelta(days=1), end_date=NOW + timedelta(days=9)),
            item("E", deleted_at=NOW),
            item("F", list_id="l2", last_chosen=NOW),
            item("G"),
        ]
        kept = EligibilityFilter(lists).eligible(items, NOW, exclusions={"g"})
        assert [i.id for i in kept] == ["a", "f"]

    def test_reasons(self, lists) -> None:
        """reason() should name why an item was dropped."""
        eligibility = EligibilityFilter(lists)
        assert eligibility.reason(item(available=False), NOW, set()) == "unavailable"
        assert eligibility.reason(item(), NOW, {"tacos"}) == "excluded"
        assert eligibility.reason(item(last_chosen=NOW), NOW, set()) == "cooldown"
        assert eligibility.reason(item(), NOW, set()) is None

    def test_override_applies_to_all_lists(self, lists) -> None:
        """A cooldown override also restricts lists without a cooldown."""
        recent = item("F", list_id="l2", last_chosen=NOW - timedelta(days=1))
        assert EligibilityFilter(lists).eligible([recent], NOW) == [recent]
        assert EligibilityFilter(lists, cooldown_override=3).eligible([recent], NOW) == []

    def test_require_location(self, lists) -> None:
        """Items without a location are dropped when one is required."""
        located = item("Park", list_id="l2", latitude=1.0, longitude=2.0, address="Main St")
        kept = EligibilityFilter(lists, require_location=True).eligible([located, item("Tacos")], NOW)
        assert kept == [located]

    def test_predicates(self, lists) -> None:
        """Extra predicates must all hold."""
        cheap = item("Cheap", metadata={"price": 1})
        pricey = item("Pricey", metadata={"price": 9})
        eligibility = EligibilityFilter(lists, predicates=[lambda i: i.metadata.get("price", 0) < 5])
        assert eligibility.eligible([cheap, pricey], NOW) == [cheap]

    def test_empty_result_is_valid(self, lists) -> None:
        """Filtering everything away is not an error."""
        assert EligibilityFilter(lists).eligible([item(available=False)], NOW) == []

    def test_monotonic_in_exclusions(self, lists) -> None:
        """Adding exclusions never adds items."""
        items = [item(name) for name in "ABCDEF"]
        eligibility = EligibilityFilter(lists)
        exclusions: set[str] = set()
        previous = {i.id for i in eligibility.eligible(items, NOW, exclusions)}
        for name in "FACE":
            exclusions.add(name.lower())
            current = {i.id for i in eligibility.eligible(items, NOW, exclusions)}
            assert current <= previous
            previous = current
        assert previous == {"b", "d"}
