"""FastAPI API endpoints under /api.

Endpoint groups: health, books (list, content, images), reader (one session
per user and book: state, choose, restart, close, image-failure), progress
(stored record per user and book). Reader endpoints are nested under
/api/books/{book_id}/reader.
"""

from fastapi import APIRouter

from .books import router as books_router
from .progress import router as progress_router
from .reader import router as reader_router

router = APIRouter()
router.include_router(books_router)
router.include_router(reader_router)
router.include_router(progress_router)
