import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend.routes import router
from backend.sessions import SessionRegistry
from gamebook.content import ContentStore, FileContentStore, HttpContentStore
from gamebook.storage import JsonProgressStore

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_BOOKS_DIR = Path(__file__).parent.parent / "books"


def create_app(
    data_dir: Path | None = None,
    books_dir: Path | None = None,
    content_url: str | None = None,
) -> FastAPI:
    resolved_data = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    resolved_url = content_url if content_url is not None else os.getenv("CONTENT_URL", "")

    content_store: ContentStore
    if resolved_url:
        content_store = HttpContentStore(resolved_url)
    else:
        content_store = FileContentStore(
            books_dir or Path(os.getenv("BOOKS_DIR", str(DEFAULT_BOOKS_DIR)))
        )
    progress_store = JsonProgressStore(resolved_data)

    app = FastAPI(title="Gamebook Reader")
    app.state.content_store = content_store
    app.state.progress_store = progress_store
    app.state.sessions = SessionRegistry(content_store, progress_store)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR / BOOKS_DIR / CONTENT_URL env vars)
app = create_app()
