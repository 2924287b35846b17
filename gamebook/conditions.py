"""Visibility condition evaluation.

A condition is a boolean expression over one input: the target of the most
recently taken choice.

    "HUT"                         true iff the last chosen target is HUT
    {"and": [c1, c2, ...]}        all true (empty list → true)
    {"or":  [c1, c2, ...]}        any true (empty list → false)
    {"not": c}                    negation

An absent condition asserts nothing and evaluates false. Shapes that are not
one of the above also evaluate false; evaluation never raises.
"""

from __future__ import annotations

from gamebook.models import AllOf, AnyOf, Condition, Not, VisibilityRule


def evaluate_condition(condition: Condition | None, last_chosen_target: str | None) -> bool:
    if condition is None:
        return False
    if isinstance(condition, str):
        return last_chosen_target is not None and condition == last_chosen_target
    if isinstance(condition, AllOf):
        return all(evaluate_condition(c, last_chosen_target) for c in condition.conditions)
    if isinstance(condition, AnyOf):
        return any(evaluate_condition(c, last_chosen_target) for c in condition.conditions)
    if isinstance(condition, Not):
        return not evaluate_condition(condition.condition, last_chosen_target)
    return False


def rule_fires(rule: VisibilityRule | None, last_chosen_target: str | None) -> bool:
    """A show/hide rule fires when `when` holds and `unless` does not."""
    if rule is None:
        return False
    return (
        evaluate_condition(rule.when, last_chosen_target)
        and not evaluate_condition(rule.unless, last_chosen_target)
    )
