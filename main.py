"""Gamebook Reader — dev launcher. Starts the backend in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="Gamebook Reader dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Progress storage directory (default: ./data)")
    parser.add_argument("--books-dir", type=Path, default=None,
                        help="Book content directory (default: ./books)")
    parser.add_argument("--demo", action="store_true",
                        help="Write the demo book into the books directory")
    args = parser.parse_args()

    books_dir = args.books_dir or Path(os.getenv("BOOKS_DIR", str(ROOT / "books")))
    if args.demo:
        from backend.demo import create_demo_book
        book_dir = create_demo_book(books_dir)
        print(f"Demo book written to {book_dir}")

    # Build env for the subprocess so the backend picks up the same directories
    env = os.environ.copy()
    env["BOOKS_DIR"] = str(books_dir.resolve())
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    procs: list[subprocess.Popen] = []

    def shutdown(*_):
        print("\nShutting down...")
        for p in procs:
            p.terminate()
        for p in procs:
            p.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    procs.append(subprocess.Popen(
        ["uv", "run", "uvicorn", "backend.app:app", "--reload", "--host", HOST, "--port", BACKEND_PORT],
        cwd=ROOT, env=env,
    ))

    for p in procs:
        p.wait()


if __name__ == "__main__":
    main()
