"""Progress storage.

Per-user reading progress is stored in flat JSON files under a configurable
base directory, one file per (user, book). There is no database; reads and
writes go through plain helpers that load and dump JSON.

Directory layout:

    {base}/
      progress/
        {user_slug}/
          book-00000001.json   ← Progress record for book 1

The engine talks to any object matching the ProgressStore protocol; the
JSON implementation is the default and is what the web app wires up.

update_progress() is an upsert: it merges into the existing record (visited
set grows, choice log is appended, completion is stamped once) instead of
replacing it. Concurrent writers for the same (user, book) are last-write-wins.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from gamebook.models import ChoiceRecord, Progress

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol — every progress store must match these signatures
# ---------------------------------------------------------------------------

class ProgressStore(Protocol):
    async def get_progress(self, user_id: str, book_id: int) -> Progress | None: ...

    async def update_progress(
        self,
        user_id: str,
        book_id: int,
        current_entry_id: str,
        choice: ChoiceRecord | None = None,
        is_end: bool = False,
    ) -> Progress: ...

    async def clear_progress(self, user_id: str, book_id: int) -> None: ...


def slugify(text: str) -> str:
    """Convert a user id to a filesystem-safe slug.

    "Ada Lovelace" → "ada-lovelace"
    """
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    text = text.strip("-")
    return text or "anonymous"


# ---------------------------------------------------------------------------
# JsonProgressStore
# ---------------------------------------------------------------------------

class JsonProgressStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._root = base_path / "progress"
        self._root.mkdir(parents=True, exist_ok=True)

    def _progress_file(self, user_id: str, book_id: int) -> Path:
        return self._root / slugify(user_id) / f"book-{book_id:08d}.json"

    def _read(self, path: Path) -> Progress | None:
        if not path.is_file():
            return None
        try:
            return Progress.model_validate_json(path.read_text())
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            raise PersistenceError(f"Cannot read progress at {path}: {e}") from e

    def _write(self, path: Path, progress: Progress) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(progress.model_dump_json(indent=2, by_alias=True))
        except OSError as e:
            raise PersistenceError(f"Cannot write progress at {path}: {e}") from e

    async def get_progress(self, user_id: str, book_id: int) -> Progress | None:
        return self._read(self._progress_file(user_id, book_id))

    async def update_progress(
        self,
        user_id: str,
        book_id: int,
        current_entry_id: str,
        choice: ChoiceRecord | None = None,
        is_end: bool = False,
    ) -> Progress:
        path = self._progress_file(user_id, book_id)
        progress = self._read(path) or Progress(
            user_id=user_id,
            book_id=book_id,
            current_entry_id=current_entry_id,
        )

        progress.current_entry_id = current_entry_id
        if choice is not None:
            progress.choices.append(choice)
            _mark_visited(progress, choice.entry_id)
        _mark_visited(progress, current_entry_id)

        # Completion is stamped once and only cleared by deleting the record
        if is_end and progress.completed_at is None:
            progress.completed_at = datetime.now(timezone.utc)

        self._write(path, progress)
        logger.debug(
            "progress saved user=%s book=%s entry=%s choices=%d",
            user_id, book_id, current_entry_id, len(progress.choices),
        )
        return progress

    async def clear_progress(self, user_id: str, book_id: int) -> None:
        path = self._progress_file(user_id, book_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot delete progress at {path}: {e}") from e
        logger.debug("progress cleared user=%s book=%s", user_id, book_id)


def _mark_visited(progress: Progress, entry_id: str) -> None:
    if entry_id not in progress.visited_entries:
        progress.visited_entries.append(entry_id)


# ---------------------------------------------------------------------------
# PersistenceError — raised for every read, write, and delete failure
# ---------------------------------------------------------------------------

class PersistenceError(RuntimeError):
    """Raised when a progress record cannot be read, written, or deleted."""
