"""Create a demo book for development/testing.

"The Lantern Road" is small but uses every gating feature:

  START   crossroads; the hut can be visited once, the lantern path starts hidden
  HUT     shows the lantern path (show when HUT)
  FOREST  the oak can be climbed once (hide when OAK); LOST shows via and/not
  OAK     also reveals the lantern path (show when OAK or HUT)
  LANTERN leads HOME
  HOME, LOST  endings
"""

import json
import shutil
from pathlib import Path

from gamebook.content import book_dir_name

DEMO_BOOK_ID = 1

LANTERN_HIDDEN_UNTIL_HUT = {"startVisible": False, "states": {"show": {"when": "HUT"}}}

DEMO_METADATA = {
    "id": DEMO_BOOK_ID,
    "title": "The Lantern Road",
    "authors": ["Demo Author"],
    "credits": ["Illustrations: Demo Artist"],
    "version": "1.0.0",
    "publishedAt": "2024-01-01T00:00:00Z",
    "status": "published",
}

DEMO_ENTRIES = {
    "START": {
        "id": "START",
        "text": [
            "You stand at a crossroads under a moonless sky.",
            "A hut squats to the east; the forest looms to the north.",
        ],
        "imageId": "crossroads",
        "choices": [
            {
                "text": "Knock at the hermit's hut",
                "target": "HUT",
                "requirement": {"type": "once", "entryId": "START", "value": "HUT"},
            },
            {"text": "Enter the forest", "target": "FOREST"},
            {
                "text": "Follow the lantern light",
                "target": "LANTERN",
                "visibility": LANTERN_HIDDEN_UNTIL_HUT,
            },
        ],
    },
    "HUT": {
        "id": "HUT",
        "text": [
            "The hermit presses a lantern into your hands without a word.",
        ],
        "choices": [
            {
                "text": "Light the lantern and follow its glow",
                "target": "LANTERN",
                "visibility": LANTERN_HIDDEN_UNTIL_HUT,
            },
            {"text": "Return to the crossroads", "target": "START"},
        ],
    },
    "FOREST": {
        "id": "FOREST",
        "text": ["Branches knit together overhead. An old oak stands apart."],
        "choices": [
            {
                "text": "Climb the old oak",
                "target": "OAK",
                "visibility": {"states": {"hide": {"when": "OAK"}}},
            },
            {
                "text": "Wander deeper into the trees",
                "target": "LOST",
                "visibility": {
                    "startVisible": False,
                    "states": {"show": {"when": {"and": ["FOREST", {"not": "LANTERN"}]}}},
                },
            },
            {"text": "Return to the crossroads", "target": "START"},
        ],
    },
    "OAK": {
        "id": "OAK",
        "text": ["From the top branches you glimpse a line of lights to the west."],
        "choices": [
            {"text": "Climb down", "target": "FOREST"},
            {
                "text": "Follow the lantern light",
                "target": "LANTERN",
                "visibility": {
                    "startVisible": False,
                    "states": {"show": {"when": {"or": ["OAK", "HUT"]}}},
                },
            },
        ],
    },
    "LANTERN": {
        "id": "LANTERN",
        "text": ["The lanterns sway on their posts, marking a road you did not see before."],
        "choices": [
            {"text": "Walk the lantern road home", "target": "HOME"},
        ],
    },
    "HOME": {
        "id": "HOME",
        "text": ["Dawn finds you at your own door. The End."],
        "choices": [],
    },
    "LOST": {
        "id": "LOST",
        "text": ["The trees close behind you. You are never seen again. The End."],
        "choices": [],
    },
}

DEMO_IMAGES = {
    "crossroads": {
        "id": "crossroads",
        "filename": "crossroads.jpg",
        "altText": "A signpost at a crossroads at night",
        "metadata": {"width": 800, "height": 600, "format": "jpeg"},
    },
}


def create_demo_book(books_dir: Path, book_id: int = DEMO_BOOK_ID) -> Path:
    """Wipe and (re)write the demo book under books_dir. Returns its directory."""
    book_dir = books_dir / book_dir_name(book_id)
    if book_dir.exists():
        shutil.rmtree(book_dir)
    (book_dir / "content").mkdir(parents=True)
    (book_dir / "images").mkdir()

    metadata = dict(DEMO_METADATA, id=book_id)
    (book_dir / "metadata.json").write_text(json.dumps(metadata, indent=2))
    (book_dir / "content" / "entries.json").write_text(
        json.dumps({"entries": DEMO_ENTRIES}, indent=2)
    )
    (book_dir / "content" / "images.json").write_text(
        json.dumps({"images": DEMO_IMAGES}, indent=2)
    )
    # Placeholder bytes; the reader only needs the file to exist
    (book_dir / "images" / "crossroads.jpg").write_bytes(b"\xff\xd8\xff\xd9")
    return book_dir
