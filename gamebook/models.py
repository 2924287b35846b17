"""Core domain models.

Every engine component and both stores operate on these types.
Pydantic is used for validation and serialisation at every data boundary.

Book content and progress records use the camelCase keys of the book JSON
format ("imageId", "startVisible", "currentEntryId", ...). Python attributes
are snake_case; models accept either spelling and dump by alias.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    model_validator,
)
from pydantic.alias_generators import to_camel

START_ENTRY_ID = "START"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Visibility conditions
# ---------------------------------------------------------------------------

class AllOf(CamelModel):
    """{"and": [...]} — true iff every sub-condition is true."""

    tag: ClassVar[str] = "and"
    conditions: list[Condition] = Field(alias="and")


class AnyOf(CamelModel):
    """{"or": [...]} — true iff any sub-condition is true."""

    tag: ClassVar[str] = "or"
    conditions: list[Condition] = Field(alias="or")


class Not(CamelModel):
    """{"not": c} — negation of one sub-condition."""

    tag: ClassVar[str] = "not"
    condition: Condition | None = Field(default=None, alias="not")


def _condition_tag(value: Any) -> str:
    if isinstance(value, str):
        return "target"
    if isinstance(value, dict):
        if isinstance(value.get("and"), list):
            return "and"
        if isinstance(value.get("or"), list):
            return "or"
        if "not" in value:
            return "not"
        return "unknown"
    return getattr(value, "tag", "unknown")


# A bare string is a chosen-target literal. Anything that is not one of the
# known shapes is kept as-is so the book still loads; it never evaluates true.
Condition = Annotated[
    Union[
        Annotated[str, Tag("target")],
        Annotated[AllOf, Tag("and")],
        Annotated[AnyOf, Tag("or")],
        Annotated[Not, Tag("not")],
        Annotated[Any, Tag("unknown")],
    ],
    Discriminator(_condition_tag),
]

AllOf.model_rebuild()
AnyOf.model_rebuild()
Not.model_rebuild()

_condition_adapter: TypeAdapter[Any] = TypeAdapter(Condition)


def parse_condition(raw: Any) -> Condition:
    """Validate a raw JSON condition ("A", {"and": [...]}, ...)."""
    return _condition_adapter.validate_python(raw)


class VisibilityRule(CamelModel):
    """Fires when `when` is true and `unless` is false."""

    when: Condition | None = None
    unless: Condition | None = None


class VisibilityStates(CamelModel):
    show: VisibilityRule | None = None
    hide: VisibilityRule | None = None


class Visibility(CamelModel):
    start_visible: bool = True
    states: VisibilityStates | None = None


# ---------------------------------------------------------------------------
# Book content
# ---------------------------------------------------------------------------

RequirementKind = Literal[
    "once",
    "spell",
    "item",
    "feature",
    "movementType",
    "class",
    "species",
]


class Requirement(CamelModel):
    """A gate on a choice. Unrecognised kinds are accepted and fail open."""

    type: RequirementKind | str
    value: str = ""
    entry_id: str | None = None  # source entry of the edge, "once" only
    hides: list[str] = Field(default_factory=list)
    shows: list[str] = Field(default_factory=list)


class Choice(CamelModel):
    text: str
    target: str
    requirement: Requirement | None = None
    visibility: Visibility | None = None


class Entry(CamelModel):
    """A node of narrative text plus its outgoing choices."""

    id: str = ""
    text: list[str] = Field(default_factory=list)
    image_id: str | None = None
    choices: list[Choice] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return not self.choices


class ImageDimensions(CamelModel):
    width: int
    height: int
    format: str
    size: int | None = None  # bytes


class ImageMetadata(CamelModel):
    id: str
    filename: str
    alt_text: str = ""
    metadata: ImageDimensions | None = None


class CoverImage(CamelModel):
    full: ImageMetadata
    thumb: ImageMetadata


class BookMetadata(CamelModel):
    id: int
    title: str
    authors: list[str] = Field(default_factory=list)
    credits: list[str] = Field(default_factory=list)
    version: str = "1.0.0"
    published_at: str | None = None
    status: Literal["draft", "published", "archived"] = "published"
    cover_image: CoverImage | None = None


class Book(CamelModel):
    """A loaded book: metadata, the entry graph, and the image catalog."""

    metadata: BookMetadata
    entries: dict[str, Entry]
    images: dict[str, ImageMetadata] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _fill_entry_ids(self) -> Book:
        # Entries are keyed by id; content files may omit the redundant field.
        for entry_id, entry in self.entries.items():
            if not entry.id:
                entry.id = entry_id
        return self

    @property
    def start_entry(self) -> Entry:
        return self.entries[START_ENTRY_ID]

    def get_entry(self, entry_id: str) -> Entry | None:
        return self.entries.get(entry_id)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class ChoiceRecord(CamelModel):
    """One transition taken: source entry → chosen target."""

    entry_id: str
    target_id: str
    timestamp: datetime


class Progress(CamelModel):
    """A user's persisted position and history within one book."""

    user_id: str
    book_id: int
    current_entry_id: str
    visited_entries: list[str] = Field(default_factory=list)
    choices: list[ChoiceRecord] = Field(default_factory=list)
    completed_at: datetime | None = None

    @property
    def last_choice(self) -> ChoiceRecord | None:
        return self.choices[-1] if self.choices else None
