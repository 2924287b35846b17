"""Book content stores.

A book is served as three JSON documents:

    metadata.json   BookMetadata
    entries.json    {"entries": {<entry id>: Entry, ...}}
    images.json     {"images":  {<image id>: ImageMetadata, ...}}

Two implementations of the ContentStore protocol are provided:

    FileContentStore  — reads books from disk:
                          {books_dir}/book-00000001/metadata.json
                          {books_dir}/book-00000001/content/entries.json
                          {books_dir}/book-00000001/content/images.json
                          {books_dir}/book-00000001/images/<filename>
    HttpContentStore  — fetches GET {base_url}/api/books/{id}/content, which
                        returns {"metadata": ..., "entries": ..., "images": ...}.

Every book must have an entry keyed "START"; loading fails otherwise. Choices
pointing at entries that do not exist are only logged, since the controller
ignores such choices at selection time.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from gamebook.models import START_ENTRY_ID, Book, BookMetadata

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class ContentStore(Protocol):
    async def load_book(self, book_id: int) -> Book: ...

    async def list_books(self) -> list[BookMetadata]: ...


# ---------------------------------------------------------------------------
# Parsing and validation
# ---------------------------------------------------------------------------

def book_dir_name(book_id: int) -> str:
    return f"book-{book_id:08d}"


def thumbnail_filename(filename: str) -> str:
    """Name of the thumbnail for an image: cover.jpg → cover-thumb.jpg."""
    if "-thumb" in filename:
        return filename
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        return filename
    return f"{stem}-thumb.{ext}"


def parse_book(content: dict[str, Any]) -> Book:
    """Build a Book from the {"metadata", "entries", "images"} content payload."""
    try:
        entries = content["entries"]
        images = content.get("images") or {}
        book = Book.model_validate({
            "metadata": content["metadata"],
            "entries": entries.get("entries", {}),
            "images": images.get("images", {}),
        })
    except (KeyError, AttributeError, TypeError) as e:
        raise ContentLoadError(f"Malformed book content: missing or invalid {e}") from e
    except ValidationError as e:
        raise ContentLoadError(f"Invalid book content: {e}") from e
    return validate_book(book)


def validate_book(book: Book) -> Book:
    if START_ENTRY_ID not in book.entries:
        raise ContentLoadError(
            f"Book {book.metadata.id} has no {START_ENTRY_ID!r} entry"
        )
    for entry in book.entries.values():
        for choice in entry.choices:
            if choice.target not in book.entries:
                logger.warning(
                    "Book %s: choice %r in entry %s points at unknown entry %r",
                    book.metadata.id, choice.text, entry.id, choice.target,
                )
    return book


def book_to_content(book: Book) -> dict[str, Any]:
    """Inverse of parse_book(): the JSON-ready content payload."""
    data = book.model_dump(mode="json", by_alias=True)
    return {
        "metadata": data["metadata"],
        "entries": {"entries": data["entries"]},
        "images": {"images": data["images"]},
    }


# ---------------------------------------------------------------------------
# FileContentStore
# ---------------------------------------------------------------------------

class FileContentStore:
    def __init__(self, books_dir: Path) -> None:
        self._books_dir = books_dir

    @property
    def books_dir(self) -> Path:
        return self._books_dir

    def book_dir(self, book_id: int) -> Path:
        return self._books_dir / book_dir_name(book_id)

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    async def load_book(self, book_id: int) -> Book:
        book_dir = self.book_dir(book_id)
        if not book_dir.is_dir():
            raise ContentLoadError(f"Book {book_id} not found")
        try:
            content = {
                "metadata": self._read_json(book_dir / "metadata.json"),
                "entries": self._read_json(book_dir / "content" / "entries.json"),
                "images": self._read_json(book_dir / "content" / "images.json"),
            }
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ContentLoadError(f"Failed to read book {book_id}: {e}") from e
        book = parse_book(content)
        logger.debug("loaded book %s from %s (%d entries)", book_id, book_dir, len(book.entries))
        return book

    async def list_books(self) -> list[BookMetadata]:
        """Metadata of every book directory with a readable metadata.json."""
        results = []
        if not self._books_dir.is_dir():
            return results
        for path in sorted(self._books_dir.glob("book-*/metadata.json")):
            try:
                results.append(BookMetadata.model_validate(self._read_json(path)))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping unreadable book metadata %s: %s", path, e)
        return sorted(results, key=lambda m: m.id)

    def image_path(self, book_id: int, filename: str, *, thumbnail: bool = False) -> Path | None:
        """Path of an image file of a book, or None if absent or not a plain name.

        With `thumbnail`, the "-thumb" variant is preferred and the full image
        is the fallback.
        """
        if not filename or Path(filename).name != filename:
            return None
        images = self.book_dir(book_id) / "images"
        if thumbnail:
            thumb = images / thumbnail_filename(filename)
            if thumb.is_file():
                return thumb
        path = images / filename
        return path if path.is_file() else None


# ---------------------------------------------------------------------------
# HttpContentStore
# ---------------------------------------------------------------------------

class HttpContentStore:
    """Async HTTP client for a content server.

    Args:
        base_url: Base URL of the server, e.g. "http://localhost:3000".
        timeout:  HTTP timeout in seconds. Defaults to 10.
    """

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def _get_json(self, url: str) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise ContentLoadError(f"Cannot connect to content server at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise ContentLoadError(
                f"Content server returned HTTP {e.response.status_code} for {url}"
            ) from e
        except httpx.TimeoutException as e:
            raise ContentLoadError(f"Content server timed out after {self._timeout}s") from e
        except httpx.RequestError as e:
            raise ContentLoadError(f"Request to content server failed: {e!r}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise ContentLoadError(f"Content server returned invalid JSON for {url}") from e

    async def load_book(self, book_id: int) -> Book:
        url = f"{self._base_url}/api/books/{book_id}/content"
        logger.debug("fetching book %s from %s", book_id, url)
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise ContentLoadError(f"Unexpected content payload for book {book_id}")
        return parse_book(payload)

    async def list_books(self) -> list[BookMetadata]:
        payload = await self._get_json(f"{self._base_url}/api/books")
        try:
            return [BookMetadata.model_validate(m) for m in payload]
        except (TypeError, ValidationError) as e:
            raise ContentLoadError(f"Unexpected book list from content server: {e}") from e


# ---------------------------------------------------------------------------
# ContentLoadError — book missing, unreadable, malformed, or without START
# ---------------------------------------------------------------------------

class ContentLoadError(RuntimeError):
    """Raised when a book cannot be loaded; fatal to the reading session."""
