"""Health check, book list, book content, and image endpoints."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from gamebook.content import ContentLoadError, FileContentStore, book_to_content

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/books")
async def list_books(request: Request):
    """List metadata of all available books."""
    try:
        books = await request.app.state.content_store.list_books()
    except ContentLoadError as e:
        raise HTTPException(502, str(e))
    return [b.model_dump(mode="json", by_alias=True) for b in books]


@router.get("/books/{book_id}/content")
async def get_book_content(book_id: int, request: Request):
    """Get a book's metadata, entries, and image catalog."""
    try:
        book = await request.app.state.content_store.load_book(book_id)
    except ContentLoadError as e:
        raise HTTPException(404, str(e))
    return book_to_content(book)


@router.get("/books/{book_id}/images/{filename}")
async def get_book_image(book_id: int, filename: str, request: Request, thumb: bool = False):
    """Serve an image file of a book (file-backed content only).

    ?thumb=true serves the "-thumb" variant when the book ships one.
    """
    store = request.app.state.content_store
    path = (
        store.image_path(book_id, filename, thumbnail=thumb)
        if isinstance(store, FileContentStore) else None
    )
    if path is None:
        raise HTTPException(404, "Image not found")
    return FileResponse(path)
