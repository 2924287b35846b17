"""Adventure controller — one user's reading session of one book.

Session flow:
  load()    1. Fetch the book from the content store (failure → error state).
            2. Read stored progress (read failure → start fresh).
            3. Resume at progress.current_entry_id, seeding visited entries and
               replaying the last logged choice through visibility; without
               progress, start at "START". A dangling current entry is an error.
            4. Compute the available choices of the current entry.
  choose()  1. Ignore targets that are not entries of the book.
            2. Persist the transition (choice log, visited, completion).
            3. Mark the source visited and re-evaluate the chosen choice's
               visibility against its own target.
            4. Move to the target and recompute its available choices.
  restart() Clear progress, write a fresh record at START, reset visibility.
  close()   Terminal entry → clear progress; otherwise persist the position.

Transitions are serialised: a choose() arriving while another transition is
in flight is dropped. Persistence is awaited before in-memory state moves, so
a failed write leaves the session where it was and the error propagates.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from pydantic import Field

from gamebook.content import ContentLoadError, ContentStore
from gamebook.models import (
    Book,
    CamelModel,
    Choice,
    ChoiceRecord,
    Entry,
    Progress,
)
from gamebook.requirements import RequirementEvaluator
from gamebook.storage import PersistenceError, ProgressStore
from gamebook.visibility import VisibilityManager

logger = logging.getLogger(__name__)


class ReaderState(CamelModel):
    """Snapshot handed to the presentation layer."""

    loading: bool
    error: str | None = None
    book_id: int
    title: str | None = None
    current_entry: Entry | None = None
    available_choices: list[Choice] = Field(default_factory=list)
    image_url: str | None = None
    is_terminal: bool = False


class AdventureController:
    def __init__(
        self,
        content_store: ContentStore,
        progress_store: ProgressStore,
        *,
        user_id: str,
        book_id: int,
        visibility: VisibilityManager | None = None,
    ) -> None:
        self.user_id = user_id
        self.book_id = book_id
        self._content = content_store
        self._progress = progress_store
        self._visibility = visibility or VisibilityManager()
        self._requirements = RequirementEvaluator(progress_store, user_id, book_id)
        self._lock = asyncio.Lock()

        self._loading = True
        self._error: str | None = None
        self._book: Book | None = None
        self._current: Entry | None = None
        self._available: list[Choice] = []
        self._last_target: str | None = None
        self._failed_images: set[str] = set()

    @property
    def book(self) -> Book | None:
        return self._book

    @property
    def current_entry(self) -> Entry | None:
        return self._current

    @property
    def visibility(self) -> VisibilityManager:
        return self._visibility

    @property
    def last_chosen_target(self) -> str | None:
        return self._last_target

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load(self) -> ReaderState:
        self._loading = True
        self._error = None
        try:
            book = await self._content.load_book(self.book_id)
            progress = await self._read_progress()
            entry = _resume_entry(book, progress)
        except ContentLoadError as e:
            logger.error("Cannot open book %s for user %s: %s", self.book_id, self.user_id, e)
            self._book = None
            self._current = None
            self._available = []
            self._error = str(e)
            self._loading = False
            return self.get_state()

        self._book = book
        self._visibility.reset_state()
        self._last_target = None
        if progress is not None:
            self._visibility.initialize_visited_entries(progress.visited_entries)
            last = progress.last_choice
            if last is not None:
                # Replay the most recent transition so rules keyed on it hold after a reload
                self._last_target = last.target_id
                for choice in entry.choices:
                    self._visibility.evaluate_visibility(choice, last.target_id)

        self._current = entry
        self._available = await self.compute_available_choices(entry)
        self._loading = False
        logger.debug(
            "session user=%s book=%s resumed at %s", self.user_id, self.book_id, entry.id,
        )
        return self.get_state()

    async def _read_progress(self) -> Progress | None:
        try:
            return await self._progress.get_progress(self.user_id, self.book_id)
        except PersistenceError as e:
            logger.warning(
                "Progress unreadable for user %s book %s, starting fresh: %s",
                self.user_id, self.book_id, e,
            )
            return None

    # ------------------------------------------------------------------
    # Choice filtering
    # ------------------------------------------------------------------

    async def compute_available_choices(self, entry: Entry | None = None) -> list[Choice]:
        """Authored choices of `entry` that pass requirements and visibility, in authored order."""
        if entry is None:
            entry = self._current
        if entry is None:
            return []

        available: list[Choice] = []
        for choice in entry.choices:
            if choice.requirement is not None:
                result = await self._requirements.evaluate(
                    choice.requirement, source_entry_id=entry.id
                )
                if not result.is_met:
                    continue
                self._visibility.apply_requirement_hints(
                    result.hidden_entries, result.visible_entries
                )
            if self._visibility.evaluate_visibility(choice, self._last_target):
                available.append(choice)
        return available

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def choose(self, target_id: str, choice_text: str = "") -> ReaderState:
        if self._lock.locked():
            logger.warning(
                "Ignoring choice %r for user %s: a transition is in flight",
                target_id, self.user_id,
            )
            return self.get_state()
        async with self._lock:
            try:
                await self._transition(target_id, choice_text)
            except InvalidChoiceError as e:
                logger.warning("Ignoring choice: %s", e)
        return self.get_state()

    async def _transition(self, target_id: str, choice_text: str) -> None:
        if self._book is None or self._current is None:
            raise InvalidChoiceError(f"book {self.book_id} is not loaded")
        target = self._book.get_entry(target_id)
        if target is None:
            raise InvalidChoiceError(f"no entry {target_id!r} in book {self.book_id}")

        source = self._current
        record = ChoiceRecord(
            entry_id=source.id,
            target_id=target.id,
            timestamp=datetime.now(timezone.utc),
        )
        await self._progress.update_progress(
            self.user_id, self.book_id, target.id,
            choice=record, is_end=target.is_terminal,
        )

        self._visibility.add_visited_entry(source.id)
        chosen = _find_choice(source, target_id, choice_text)
        if chosen is not None:
            self._visibility.evaluate_visibility(chosen, target_id)
        self._last_target = target_id
        self._current = target
        self._available = await self.compute_available_choices(target)
        logger.debug(
            "user=%s book=%s %s -> %s%s",
            self.user_id, self.book_id, source.id, target.id,
            " (end)" if target.is_terminal else "",
        )

    async def restart(self) -> ReaderState:
        if self._book is None:
            return self.get_state()
        async with self._lock:
            start = self._book.start_entry
            await self._progress.clear_progress(self.user_id, self.book_id)
            await self._progress.update_progress(self.user_id, self.book_id, start.id)
            self._visibility.reset_state()
            self._last_target = None
            self._current = start
            self._available = await self.compute_available_choices(start)
        logger.debug("user=%s book=%s restarted", self.user_id, self.book_id)
        return self.get_state()

    async def close(self) -> None:
        """End the session: a finished adventure is forgotten, otherwise the position is kept."""
        if self._current is None:
            return
        async with self._lock:
            if self._current.is_terminal:
                await self._progress.clear_progress(self.user_id, self.book_id)
            else:
                await self._progress.update_progress(
                    self.user_id, self.book_id, self._current.id
                )

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def report_image_load_failure(self, image_id: str) -> None:
        self._failed_images.add(image_id)

    def image_url(self, image_id: str | None) -> str | None:
        if self._book is None or not image_id or image_id in self._failed_images:
            return None
        image = self._book.images.get(image_id)
        if image is None:
            return None
        return f"/api/books/{self.book_id}/images/{image.filename}"

    def get_state(self) -> ReaderState:
        entry = self._current
        return ReaderState(
            loading=self._loading,
            error=self._error,
            book_id=self.book_id,
            title=self._book.metadata.title if self._book else None,
            current_entry=entry,
            available_choices=list(self._available),
            image_url=self.image_url(entry.image_id) if entry else None,
            is_terminal=entry.is_terminal if entry else False,
        )


def _resume_entry(book: Book, progress: Progress | None) -> Entry:
    if progress is None:
        return book.start_entry
    entry = book.get_entry(progress.current_entry_id)
    if entry is None:
        raise ContentLoadError(
            f"Saved position {progress.current_entry_id!r} is not an entry of book "
            f"{book.metadata.id}"
        )
    return entry


def _find_choice(entry: Entry, target_id: str, text: str) -> Choice | None:
    """The authored choice taken; text disambiguates choices sharing a target."""
    candidates = [c for c in entry.choices if c.target == target_id]
    for choice in candidates:
        if choice.text == text:
            return choice
    return candidates[0] if candidates else None


# ---------------------------------------------------------------------------
# InvalidChoiceError — choice to an unknown entry; choose() drops it
# ---------------------------------------------------------------------------

class InvalidChoiceError(LookupError):
    """Raised internally when a choice cannot be applied to the session."""
