"""Reading-session endpoints: current state, choose, restart, close."""

from fastapi import APIRouter, HTTPException, Query, Request

from backend.sessions import SessionRegistry
from gamebook.controller import AdventureController, ReaderState
from gamebook.storage import PersistenceError

from .models import ChooseBody, ImageFailureBody, SessionBody

router = APIRouter()


def _sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def _open(request: Request, user_id: str, book_id: int) -> AdventureController:
    controller = await _sessions(request).get_or_load(user_id, book_id)
    error = controller.get_state().error
    if error:
        raise HTTPException(404, error)
    return controller


def _dump(state: ReaderState) -> dict:
    return state.model_dump(mode="json", by_alias=True)


@router.get("/books/{book_id}/reader")
async def get_reader(book_id: int, request: Request, user_id: str = Query(min_length=1)):
    """Open (or resume) a reading session and return its state."""
    controller = await _open(request, user_id, book_id)
    return _dump(controller.get_state())


@router.post("/books/{book_id}/reader/choose")
async def choose(book_id: int, body: ChooseBody, request: Request):
    """Take a choice. Unknown targets are ignored and the state is returned unchanged."""
    controller = await _open(request, body.user_id, book_id)
    try:
        state = await controller.choose(body.target, body.text)
    except PersistenceError as e:
        raise HTTPException(503, str(e))
    return _dump(state)


@router.post("/books/{book_id}/reader/restart")
async def restart(book_id: int, body: SessionBody, request: Request):
    """Forget progress and go back to the start entry."""
    controller = await _open(request, body.user_id, book_id)
    try:
        state = await controller.restart()
    except PersistenceError as e:
        raise HTTPException(503, str(e))
    return _dump(state)


@router.post("/books/{book_id}/reader/close")
async def close(book_id: int, body: SessionBody, request: Request):
    """Close the book; a finished adventure's progress is cleared."""
    controller = await _open(request, body.user_id, book_id)
    try:
        await controller.close()
    except PersistenceError as e:
        raise HTTPException(503, str(e))
    _sessions(request).drop(body.user_id, book_id)
    return {"ok": True}


@router.post("/books/{book_id}/reader/image-failure")
async def report_image_failure(book_id: int, body: ImageFailureBody, request: Request):
    """Stop offering an image that failed to display for the rest of the session."""
    controller = await _open(request, body.user_id, book_id)
    controller.report_image_load_failure(body.image_id)
    return _dump(controller.get_state())
