"""Per-session choice visibility and visited-entry bookkeeping.

One VisibilityManager belongs to one reading session. It remembers the last
resolved visibility of each choice target, so a show/hide rule that fired on
an earlier turn keeps its effect until another rule overrides it or the
session is reset. Resolution order for a choice with visibility rules:

  1. hide rule fires  → hidden (recorded)
  2. show rule fires  → shown (recorded)
  3. otherwise        → last recorded value, else `startVisible`

Hide is checked first, so a choice whose rules fire both ways on the same
turn resolves hidden.
"""

from __future__ import annotations

import logging
from typing import Iterable

from gamebook.conditions import rule_fires
from gamebook.models import Choice

logger = logging.getLogger(__name__)


class VisibilityManager:
    def __init__(self) -> None:
        self._resolved: dict[str, bool] = {}
        self._visited: set[str] = set()

    # ------------------------------------------------------------------
    # Visited entries
    # ------------------------------------------------------------------

    def initialize_visited_entries(self, entry_ids: Iterable[str]) -> None:
        """Replace the visited set, typically from stored progress."""
        self._visited = set(entry_ids)

    def add_visited_entry(self, entry_id: str) -> None:
        self._visited.add(entry_id)

    def has_visited_entry(self, entry_id: str) -> bool:
        return entry_id in self._visited

    @property
    def visited_entries(self) -> frozenset[str]:
        return frozenset(self._visited)

    # ------------------------------------------------------------------
    # Choice visibility
    # ------------------------------------------------------------------

    def evaluate_visibility(self, choice: Choice, last_chosen_target: str | None) -> bool:
        if choice.visibility is None:
            return True

        states = choice.visibility.states
        if states is not None:
            if rule_fires(states.hide, last_chosen_target):
                self._record(choice.target, False)
                return False
            if rule_fires(states.show, last_chosen_target):
                self._record(choice.target, True)
                return True

        recorded = self._resolved.get(choice.target)
        if recorded is not None:
            return recorded
        return choice.visibility.start_visible

    def apply_requirement_hints(self, hidden: Iterable[str], visible: Iterable[str]) -> None:
        """Record targets a satisfied requirement hides or shows.

        Shown targets are applied first so a target listed in both ends up
        hidden, matching the hide-first rule order. Hints only affect choices
        that carry visibility rules; a choice without any is always shown.
        """
        for target in visible:
            self._record(target, True)
        for target in hidden:
            self._record(target, False)

    def get_visibility_state(self, target: str) -> bool:
        return self._resolved.get(target, True)

    def reset_state(self) -> None:
        self._resolved.clear()
        self._visited.clear()

    def _record(self, target: str, visible: bool) -> None:
        if self._resolved.get(target) != visible:
            logger.debug("visibility target=%s -> %s", target, "shown" if visible else "hidden")
        self._resolved[target] = visible
