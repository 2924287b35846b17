"""Tests for gamebook.models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from gamebook.models import (
    AllOf,
    AnyOf,
    Book,
    Choice,
    ChoiceRecord,
    Entry,
    Not,
    Progress,
    Requirement,
    Visibility,
    parse_condition,
)


class TestConditionParsing:
    def test_string_is_target_literal(self) -> None:
        assert parse_condition("HUT") == "HUT"

    def test_and(self) -> None:
        c = parse_condition({"and": ["A", "B"]})
        assert isinstance(c, AllOf)
        assert c.conditions == ["A", "B"]

    def test_or(self) -> None:
        c = parse_condition({"or": ["A"]})
        assert isinstance(c, AnyOf)

    def test_not(self) -> None:
        c = parse_condition({"not": "A"})
        assert isinstance(c, Not)
        assert c.condition == "A"

    def test_nested(self) -> None:
        c = parse_condition({"and": ["FOREST", {"not": {"or": ["A", "B"]}}]})
        assert isinstance(c, AllOf)
        inner = c.conditions[1]
        assert isinstance(inner, Not)
        assert isinstance(inner.condition, AnyOf)

    def test_unknown_shape_kept(self) -> None:
        raw = {"xor": ["A", "B"]}
        assert parse_condition(raw) == raw

    def test_and_without_list_is_unknown(self) -> None:
        raw = {"and": "A"}
        assert not isinstance(parse_condition(raw), AllOf)

    def test_dump_uses_keyword_keys(self) -> None:
        v = Visibility.model_validate(
            {"startVisible": False, "states": {"show": {"when": {"and": ["A", {"not": "B"}]}}}}
        )
        dumped = v.model_dump(by_alias=True)
        assert dumped["startVisible"] is False
        assert dumped["states"]["show"]["when"] == {"and": ["A", {"not": "B"}]}


class TestVisibility:
    def test_start_visible_defaults_true(self) -> None:
        assert Visibility().start_visible is True

    def test_camel_case_input(self) -> None:
        v = Visibility.model_validate({"startVisible": False})
        assert v.start_visible is False
        assert v.states is None


class TestRequirement:
    def test_once_with_entry_id(self) -> None:
        r = Requirement.model_validate({"type": "once", "entryId": "A", "value": "B"})
        assert r.type == "once"
        assert r.entry_id == "A"
        assert r.value == "B"
        assert r.hides == []
        assert r.shows == []

    def test_unknown_kind_accepted(self) -> None:
        r = Requirement(type="charisma", value="12")
        assert r.type == "charisma"

    def test_type_required(self) -> None:
        with pytest.raises(ValidationError):
            Requirement.model_validate({"value": "B"})


class TestEntry:
    def test_terminal_when_no_choices(self) -> None:
        assert Entry(id="END").is_terminal

    def test_not_terminal_with_choices(self) -> None:
        e = Entry(id="A", choices=[Choice(text="go", target="B")])
        assert not e.is_terminal

    def test_image_id_alias(self) -> None:
        e = Entry.model_validate({"id": "A", "text": ["x"], "imageId": "img1", "choices": []})
        assert e.image_id == "img1"


class TestBook:
    def _book(self, entries: dict) -> Book:
        return Book.model_validate({"metadata": {"id": 7, "title": "T"}, "entries": entries})

    def test_entry_ids_filled_from_keys(self) -> None:
        book = self._book({"START": {"text": ["x"], "choices": []}})
        assert book.start_entry.id == "START"

    def test_get_entry_missing(self) -> None:
        book = self._book({"START": {"id": "START"}})
        assert book.get_entry("NOPE") is None

    def test_images_default_empty(self) -> None:
        book = self._book({"START": {"id": "START"}})
        assert book.images == {}

    def test_invalid_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Book.model_validate({
                "metadata": {"id": 1, "title": "T", "status": "lost"},
                "entries": {},
            })


class TestProgress:
    def test_defaults(self) -> None:
        p = Progress(user_id="u", book_id=1, current_entry_id="START")
        assert p.visited_entries == []
        assert p.choices == []
        assert p.completed_at is None
        assert p.last_choice is None

    def test_last_choice(self) -> None:
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        p = Progress(
            user_id="u", book_id=1, current_entry_id="C",
            choices=[
                ChoiceRecord(entry_id="A", target_id="B", timestamp=ts),
                ChoiceRecord(entry_id="B", target_id="C", timestamp=ts),
            ],
        )
        assert p.last_choice.target_id == "C"

    def test_serialise_roundtrip(self) -> None:
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        p = Progress(
            user_id="u", book_id=1, current_entry_id="B",
            visited_entries=["A", "B"],
            choices=[ChoiceRecord(entry_id="A", target_id="B", timestamp=ts)],
        )
        dumped = p.model_dump(by_alias=True)
        assert "currentEntryId" in dumped
        assert dumped["choices"][0]["targetId"] == "B"
        assert Progress.model_validate_json(p.model_dump_json(by_alias=True)) == p
