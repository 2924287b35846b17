"""Tests for gamebook.conditions — condition and rule evaluation."""

import pytest

from gamebook.conditions import evaluate_condition, rule_fires
from gamebook.models import VisibilityRule, parse_condition


def ev(raw, target):
    return evaluate_condition(parse_condition(raw) if raw is not None else None, target)


# ── Leaves ───────────────────────────────────────────────


def test_absent_condition_is_false():
    assert evaluate_condition(None, "A") is False


def test_literal_matches_last_target():
    assert ev("A", "A") is True


def test_literal_other_target():
    assert ev("A", "B") is False


def test_literal_without_any_choice_yet():
    assert ev("A", None) is False


def test_unknown_shape_is_false():
    assert ev({"xor": ["A"]}, "A") is False


# ── Composites ───────────────────────────────────────────


def test_and_all_true():
    assert ev({"and": ["A", {"not": "B"}]}, "A") is True


def test_and_one_false():
    assert ev({"and": ["A", "B"]}, "A") is False


def test_and_empty_is_vacuously_true():
    assert ev({"and": []}, "A") is True


def test_or_any_true():
    assert ev({"or": ["B", "A"]}, "A") is True


def test_or_none_true():
    assert ev({"or": ["B", "C"]}, "A") is False


def test_or_empty_is_false():
    assert ev({"or": []}, "A") is False


def test_not_of_absent_is_true():
    assert ev({"not": None}, "A") is True


@pytest.mark.parametrize("raw", [
    "A",
    "B",
    {"and": []},
    {"or": []},
    {"and": ["A", "B"]},
    {"or": ["A", "B"]},
    {"not": {"or": ["B", {"and": ["A"]}]}},
    {"xor": ["A"]},
])
@pytest.mark.parametrize("target", ["A", "B", None])
def test_not_negates(raw, target):
    assert ev({"not": raw}, target) == (not ev(raw, target))


# ── Rules ────────────────────────────────────────────────


def test_rule_absent_never_fires():
    assert rule_fires(None, "A") is False


def test_rule_when_fires():
    assert rule_fires(VisibilityRule(when="A"), "A") is True


def test_rule_unless_blocks():
    rule = VisibilityRule.model_validate({"when": {"or": ["A", "B"]}, "unless": "A"})
    assert rule_fires(rule, "A") is False
    assert rule_fires(rule, "B") is True


def test_rule_without_when_never_fires():
    assert rule_fires(VisibilityRule(unless="Z"), "A") is False
