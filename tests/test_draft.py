"""Tests for draft initialization and creation field coercion."""

import pytest

from character_forge.draft import (
    CharacterDraft,
    coerce_field_value,
    initialize_draft,
    missing_required_fields,
    set_character_name,
    set_field_value,
)
from character_forge.exceptions import FieldValidationError
from character_forge.models import EssenceSelectionMode
from character_forge.rulesystems import CreationField, RuleSchema


def make_field(**overrides) -> CreationField:
    data = {"id": "note", "label": "Note", "kind": "text"}
    data.update(overrides)
    return CreationField.model_validate(data)


def make_schema() -> RuleSchema:
    return RuleSchema.model_validate({
        "id": "frontier",
        "name": "Frontier",
        "attributes": [
            {"id": "grit", "label": "Grit", "min": 1, "max": 10, "default": 4},
            {"id": "wits", "label": "Wits", "min": 1, "max": 10, "default": 6},
        ],
        "creationFields": [
            {"id": "title", "label": "Title", "kind": "text", "required": True},
            {"id": "homestead", "label": "Homestead", "kind": "select", "defaultValue": "Ridge",
             "options": [{"value": "Ridge", "label": "Ridge"}, {"value": "Delta", "label": "Delta"}]},
            {"id": "traits", "label": "Traits", "kind": "multiselect",
             "options": [{"value": "bold", "label": "Bold"}, {"value": "shy", "label": "Shy"}]},
            {"id": "age", "label": "Age", "kind": "slider", "validation": {"min": 16, "max": 90}},
            {"id": "sworn", "label": "Sworn", "kind": "checkbox", "required": True},
            {"id": "portrait", "label": "Portrait", "kind": "image"},
        ],
    })


class TestInitializeDraft:
    """A fresh draft mirrors the schema defaults."""

    def test_defaults(self):
        draft = initialize_draft(make_schema(), "  Ada ")
        assert draft.character_name == "Ada"
        assert draft.attribute_values == {"grit": 4, "wits": 6}
        assert draft.field_values == {
            "title": "",
            "homestead": "Ridge",
            "traits": [],
            "age": 16,
            "sworn": False,
            "portrait": None,
        }
        assert draft.essence_selection_mode is EssenceSelectionMode.DEFERRED
        assert draft.chosen_essence is None
        assert draft.imported_essences == []

    def test_idempotent(self):
        schema = make_schema()
        assert initialize_draft(schema) == initialize_draft(schema)

    def test_schema_without_attributes_or_fields(self):
        schema = RuleSchema.model_validate({"id": "blank", "name": "Blank"})
        draft = initialize_draft(schema)
        assert draft.attribute_values == {}
        assert draft.field_values == {}


class TestCoerceFieldValue:
    """Each field kind accepts its own values only."""

    def test_none_means_zero_value(self):
        assert coerce_field_value(make_field(), None) == ""
        assert coerce_field_value(make_field(kind="checkbox"), None) is False

    def test_text_length_limits(self):
        field = make_field(validation={"minLength": 2, "maxLength": 5})
        assert coerce_field_value(field, "abc") == "abc"
        assert coerce_field_value(field, "") == ""
        with pytest.raises(FieldValidationError, match="at least 2"):
            coerce_field_value(field, "a")
        with pytest.raises(FieldValidationError, match="at most 5"):
            coerce_field_value(field, "abcdef")

    def test_text_pattern(self):
        field = make_field(validation={"pattern": "[A-Z]+"})
        assert coerce_field_value(field, "ABC") == "ABC"
        with pytest.raises(FieldValidationError):
            coerce_field_value(field, "abc")

    def test_text_rejects_non_strings(self):
        with pytest.raises(FieldValidationError, match="expected text"):
            coerce_field_value(make_field(), 5)

    def test_number_parses_strings_and_bounds(self):
        field = make_field(kind="number", validation={"min": 0, "max": 10})
        assert coerce_field_value(field, "7") == 7
        assert coerce_field_value(field, 2.5) == 2.5
        with pytest.raises(FieldValidationError, match="at most 10"):
            coerce_field_value(field, 11)
        with pytest.raises(FieldValidationError, match="not a number"):
            coerce_field_value(field, "seven")

    def test_number_rejects_bool(self):
        with pytest.raises(FieldValidationError):
            coerce_field_value(make_field(kind="number"), True)

    def test_checkbox_needs_bool(self):
        field = make_field(kind="checkbox")
        assert coerce_field_value(field, True) is True
        with pytest.raises(FieldValidationError):
            coerce_field_value(field, "yes")

    def test_select_must_be_an_option(self):
        field = make_field(kind="select", options=[{"value": "a", "label": "A"}])
        assert coerce_field_value(field, "a") == "a"
        with pytest.raises(FieldValidationError, match="not one of"):
            coerce_field_value(field, "b")

    def test_multiselect_dedupes_and_limits(self):
        field = make_field(
            kind="multiselect",
            options=[{"value": "a", "label": "A"}, {"value": "b", "label": "B"}],
            validation={"maxSelections": 1},
        )
        assert coerce_field_value(field, ["a", "a"]) == ["a"]
        with pytest.raises(FieldValidationError, match="at most 1"):
            coerce_field_value(field, ["a", "b"])
        with pytest.raises(FieldValidationError):
            coerce_field_value(field, "a")

    def test_image_needs_non_empty_string(self):
        field = make_field(kind="image")
        assert coerce_field_value(field, " data:image/png;base64,xx ") == "data:image/png;base64,xx"
        with pytest.raises(FieldValidationError):
            coerce_field_value(field, "  ")


class TestDraftUpdates:
    """Updates return new drafts and leave the input draft alone."""

    def test_set_field_value_is_pure(self):
        schema = make_schema()
        draft = initialize_draft(schema)
        updated = set_field_value(draft, schema, "title", "Marshal")
        assert updated.field_values["title"] == "Marshal"
        assert draft.field_values["title"] == ""

    def test_unknown_field(self):
        schema = make_schema()
        with pytest.raises(FieldValidationError, match="unknown field"):
            set_field_value(initialize_draft(schema), schema, "nope", "x")

    def test_error_carries_field_id(self):
        schema = make_schema()
        with pytest.raises(FieldValidationError) as exc_info:
            set_field_value(initialize_draft(schema), schema, "age", 5)
        assert exc_info.value.field_id == "age"
        assert exc_info.value.message.startswith("age: ")

    def test_set_character_name_trims(self):
        draft = set_character_name(CharacterDraft(), "  Ada  ")
        assert draft.character_name == "Ada"

    def test_evolve_copies(self):
        draft = CharacterDraft(character_name="Ada")
        assert draft.evolve(character_name="Bo").character_name == "Bo"
        assert draft.character_name == "Ada"


class TestMissingRequiredFields:

    def test_blank_text_and_unchecked_box_are_missing(self):
        schema = make_schema()
        draft = initialize_draft(schema)
        assert missing_required_fields(draft, schema) == ["title", "sworn"]

    def test_filled_fields_are_not_missing(self):
        schema = make_schema()
        draft = initialize_draft(schema)
        draft = set_field_value(draft, schema, "title", "Marshal")
        draft = set_field_value(draft, schema, "sworn", True)
        assert missing_required_fields(draft, schema) == []
