"""Stored progress endpoints."""

from fastapi import APIRouter, HTTPException, Request

from gamebook.storage import PersistenceError

router = APIRouter()


@router.get("/progress/{user_id}/{book_id}")
async def get_progress(user_id: str, book_id: int, request: Request):
    """Get a user's stored progress for a book."""
    try:
        progress = await request.app.state.progress_store.get_progress(user_id, book_id)
    except PersistenceError as e:
        raise HTTPException(503, str(e))
    if progress is None:
        raise HTTPException(404, "Progress not found")
    return progress.model_dump(mode="json", by_alias=True)


@router.delete("/progress/{user_id}/{book_id}")
async def delete_progress(user_id: str, book_id: int, request: Request):
    """Delete a user's stored progress for a book and drop any open session."""
    try:
        await request.app.state.progress_store.clear_progress(user_id, book_id)
    except PersistenceError as e:
        raise HTTPException(503, str(e))
    request.app.state.sessions.drop(user_id, book_id)
    return {"ok": True}
