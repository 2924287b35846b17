"""Live reading sessions, one AdventureController per (user, book)."""

from gamebook.content import ContentStore
from gamebook.controller import AdventureController
from gamebook.storage import ProgressStore


class SessionRegistry:
    def __init__(self, content_store: ContentStore, progress_store: ProgressStore) -> None:
        self._content = content_store
        self._progress = progress_store
        self._sessions: dict[tuple[str, int], AdventureController] = {}

    async def get_or_load(self, user_id: str, book_id: int) -> AdventureController:
        """Return the open session, loading a new one if absent or if the last load failed."""
        key = (user_id, book_id)
        controller = self._sessions.get(key)
        if controller is None or controller.get_state().error is not None:
            controller = AdventureController(
                self._content, self._progress, user_id=user_id, book_id=book_id
            )
            await controller.load()
            self._sessions[key] = controller
        return controller

    def drop(self, user_id: str, book_id: int) -> None:
        self._sessions.pop((user_id, book_id), None)

    def __len__(self) -> int:
        return len(self._sessions)
