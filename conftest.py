from pathlib import Path

import pytest

from backend.demo import create_demo_book
from gamebook.content import FileContentStore
from gamebook.storage import JsonProgressStore


@pytest.fixture
def books_dir(tmp_path: Path) -> Path:
    """A books/ directory holding the demo book (id 1)."""
    path = tmp_path / "books"
    create_demo_book(path)
    return path


@pytest.fixture
def content_store(books_dir: Path) -> FileContentStore:
    return FileContentStore(books_dir)


@pytest.fixture
def progress_store(tmp_path: Path) -> JsonProgressStore:
    """Fresh, empty progress storage for every test."""
    return JsonProgressStore(tmp_path / "data")
