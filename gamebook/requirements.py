"""Requirement evaluation — decides whether a gated choice can be offered.

Kinds:
  "once"          satisfied until the exact edge (entryId → value) has been
                  taken; reads the choice log from the progress store.
  "spell", "item", "feature", "movementType", "class", "species"
                  placeholders for character state; always satisfied.

Unknown kinds are satisfied as well. A satisfied requirement passes its
`hides` / `shows` lists back as visibility hints; an unsatisfied one returns
no hints and its choice is dropped.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from pydantic import BaseModel, Field

from gamebook.models import Requirement
from gamebook.storage import PersistenceError, ProgressStore

logger = logging.getLogger(__name__)

PLACEHOLDER_KINDS = frozenset({"spell", "item", "feature", "movementType", "class", "species"})


class RequirementResult(BaseModel):
    is_met: bool
    hidden_entries: list[str] = Field(default_factory=list)
    visible_entries: list[str] = Field(default_factory=list)


Handler = Callable[[Requirement, str | None], Awaitable[bool]]


class RequirementEvaluator:
    """Evaluates requirements for one (user, book) against stored progress."""

    def __init__(self, progress_store: ProgressStore, user_id: str, book_id: int) -> None:
        self._store = progress_store
        self._user_id = user_id
        self._book_id = book_id
        self._handlers: dict[str, Handler] = {"once": self._evaluate_once}
        for kind in PLACEHOLDER_KINDS:
            self._handlers[kind] = self._always_met

    async def evaluate(
        self, requirement: Requirement, *, source_entry_id: str | None = None
    ) -> RequirementResult:
        """Evaluate a requirement attached to a choice of `source_entry_id`."""
        handler = self._handlers.get(requirement.type)
        if handler is None:
            logger.debug("Unknown requirement kind %r treated as met", requirement.type)
            is_met = True
        else:
            is_met = await handler(requirement, source_entry_id)

        if not is_met:
            return RequirementResult(is_met=False)
        return RequirementResult(
            is_met=True,
            hidden_entries=list(requirement.hides),
            visible_entries=list(requirement.shows),
        )

    async def _always_met(self, requirement: Requirement, source_entry_id: str | None) -> bool:
        return True

    async def _evaluate_once(self, requirement: Requirement, source_entry_id: str | None) -> bool:
        try:
            progress = await self._store.get_progress(self._user_id, self._book_id)
        except PersistenceError as e:
            logger.warning("Progress unreadable, treating 'once' as unused: %s", e)
            return True
        if progress is None:
            return True

        entry_id = requirement.entry_id or source_entry_id
        return not any(
            c.entry_id == entry_id and c.target_id == requirement.value
            for c in progress.choices
        )
