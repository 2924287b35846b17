"""Tests for gamebook.visibility.VisibilityManager."""

import pytest

from gamebook.models import Choice
from gamebook.visibility import VisibilityManager


def choice(target: str = "T", visibility: dict | None = None) -> Choice:
    return Choice.model_validate({"text": "go", "target": target, "visibility": visibility})


@pytest.fixture
def vm() -> VisibilityManager:
    return VisibilityManager()


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

class TestDefaults:
    def test_no_visibility_is_visible(self, vm: VisibilityManager) -> None:
        assert vm.evaluate_visibility(choice(), "X") is True

    def test_start_visible_true_by_default(self, vm: VisibilityManager) -> None:
        assert vm.evaluate_visibility(choice(visibility={}), None) is True

    def test_start_visible_false(self, vm: VisibilityManager) -> None:
        assert vm.evaluate_visibility(choice(visibility={"startVisible": False}), "X") is False

    def test_unset_probe_defaults_true(self, vm: VisibilityManager) -> None:
        assert vm.get_visibility_state("anything") is True


# ---------------------------------------------------------------------------
# Show / hide rules
# ---------------------------------------------------------------------------

class TestRules:
    def test_hide_rule_fires(self, vm: VisibilityManager) -> None:
        c = choice(visibility={"states": {"hide": {"when": "A"}}})
        assert vm.evaluate_visibility(c, "A") is False
        assert vm.get_visibility_state("T") is False

    def test_hidden_state_persists(self, vm: VisibilityManager) -> None:
        c = choice(visibility={"states": {"hide": {"when": "A"}}})
        vm.evaluate_visibility(c, "A")
        assert vm.evaluate_visibility(c, "B") is False
        assert vm.evaluate_visibility(c, "A") is False
        assert vm.evaluate_visibility(c, None) is False

    def test_show_rule_overrides_start_hidden(self, vm: VisibilityManager) -> None:
        c = choice(visibility={"startVisible": False, "states": {"show": {"when": "A"}}})
        assert vm.evaluate_visibility(c, "B") is False
        assert vm.evaluate_visibility(c, "A") is True
        # stays shown on later turns
        assert vm.evaluate_visibility(c, "B") is True

    def test_hide_wins_over_show(self, vm: VisibilityManager) -> None:
        c = choice(visibility={
            "states": {"show": {"when": "A"}, "hide": {"when": {"or": ["A", "B"]}}},
        })
        assert vm.evaluate_visibility(c, "A") is False

    def test_show_after_hide(self, vm: VisibilityManager) -> None:
        c = choice(visibility={"states": {"show": {"when": "S"}, "hide": {"when": "H"}}})
        assert vm.evaluate_visibility(c, "H") is False
        assert vm.evaluate_visibility(c, "S") is True
        assert vm.evaluate_visibility(c, "X") is True

    def test_unless_suppresses_hide(self, vm: VisibilityManager) -> None:
        c = choice(visibility={"states": {"hide": {"when": {"or": ["A", "B"]}, "unless": "B"}}})
        assert vm.evaluate_visibility(c, "B") is True
        assert vm.evaluate_visibility(c, "A") is False

    def test_state_shared_by_target(self, vm: VisibilityManager) -> None:
        """Choices in different entries with the same target share resolved state."""
        at_hut = choice("LANTERN", {"startVisible": False, "states": {"show": {"when": "HUT"}}})
        at_start = choice("LANTERN", {"startVisible": False})
        assert vm.evaluate_visibility(at_start, "START") is False
        vm.evaluate_visibility(at_hut, "HUT")
        assert vm.evaluate_visibility(at_start, "START") is True


# ---------------------------------------------------------------------------
# Requirement hints
# ---------------------------------------------------------------------------

class TestRequirementHints:
    def test_hints_recorded(self, vm: VisibilityManager) -> None:
        vm.apply_requirement_hints(hidden=["A"], visible=["B"])
        assert vm.get_visibility_state("A") is False
        assert vm.get_visibility_state("B") is True

    def test_hidden_wins_when_listed_twice(self, vm: VisibilityManager) -> None:
        vm.apply_requirement_hints(hidden=["A"], visible=["A"])
        assert vm.get_visibility_state("A") is False

    def test_hint_affects_choice_with_visibility(self, vm: VisibilityManager) -> None:
        vm.apply_requirement_hints(hidden=["T"], visible=[])
        assert vm.evaluate_visibility(choice(visibility={}), "X") is False

    def test_hint_ignored_for_choice_without_visibility(self, vm: VisibilityManager) -> None:
        vm.apply_requirement_hints(hidden=["T"], visible=[])
        assert vm.evaluate_visibility(choice(), "X") is True


# ---------------------------------------------------------------------------
# Visited entries and reset
# ---------------------------------------------------------------------------

class TestVisitedAndReset:
    def test_initialize_replaces(self, vm: VisibilityManager) -> None:
        vm.add_visited_entry("OLD")
        vm.initialize_visited_entries(["A", "B"])
        assert vm.visited_entries == {"A", "B"}

    def test_add_visited(self, vm: VisibilityManager) -> None:
        vm.add_visited_entry("A")
        assert vm.has_visited_entry("A")
        assert not vm.has_visited_entry("B")

    def test_reset_clears_everything(self, vm: VisibilityManager) -> None:
        c = choice(visibility={"states": {"hide": {"when": "A"}}})
        vm.evaluate_visibility(c, "A")
        vm.add_visited_entry("A")
        vm.reset_state()
        assert vm.visited_entries == frozenset()
        assert vm.evaluate_visibility(c, "B") is True
