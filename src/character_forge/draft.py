"""
Character draft: the in-progress character of one creation session.

A draft starts from the rule schema's defaults and is only changed through
the functions in this module, the budget allocator, the essence resolver
and ``apply_import``. Each of them returns a new draft and leaves its input
untouched, so a caller can always keep the previous state around.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from pydantic import BaseModel, Field

from .essences import Essence
from .exceptions import FieldValidationError
from .models import AbilityRecord, EssenceSelectionMode
from .rulesystems.models import CreationField, FieldKind, RuleSchema


class ChosenEssence(BaseModel):
    """The essence currently shown as selected (catalog pick or first imported)."""

    name: str
    rarity: str | None = None
    category: str | None = None

    @classmethod
    def from_catalog(cls, essence: Essence) -> "ChosenEssence":
        return cls(name=essence.name, rarity=essence.rarity.value, category=essence.category.value)


class CustomEssence(BaseModel):
    """A user-authored essence with its intrinsic ability text."""

    name: str = Field(min_length=1)
    intrinsic_ability: str = ""


class CharacterDraft(BaseModel):
    """Mutable-by-replacement state of one character being created."""

    character_name: str = ""
    field_values: dict[str, Any] = Field(default_factory=dict)
    attribute_values: dict[str, int] = Field(default_factory=dict)
    essence_selection_mode: EssenceSelectionMode = EssenceSelectionMode.DEFERRED
    chosen_essence: ChosenEssence | None = None
    custom_essence: CustomEssence | None = None
    imported_essences: list[str] = Field(default_factory=list)
    imported_abilities: list[AbilityRecord] = Field(default_factory=list)
    imported_rank: str | None = None

    def evolve(self, **changes: Any) -> "CharacterDraft":
        """Return a copy with the given attributes replaced."""
        return self.model_copy(update=changes)


# ----------------------------------------------------------------------
# Defaults
# ----------------------------------------------------------------------

def zero_value(field: CreationField) -> Any:
    """The empty value of a field kind, used when the schema gives no default."""
    kind = field.kind
    if kind is FieldKind.CHECKBOX:
        return False
    if kind is FieldKind.MULTISELECT:
        return []
    if kind in (FieldKind.SLIDER, FieldKind.NUMBER):
        if field.validation is not None and field.validation.min is not None:
            return _as_number(field.validation.min)
        return 0
    if kind in (FieldKind.TEXT, FieldKind.TEXTAREA):
        return ""
    # select, image
    return None


def initial_field_value(field: CreationField) -> Any:
    if field.default_value is None:
        return zero_value(field)
    if isinstance(field.default_value, list):
        return list(field.default_value)
    return field.default_value


def initialize_draft(schema: RuleSchema, character_name: str = "") -> CharacterDraft:
    """Build a fresh draft from schema defaults. Pure and idempotent."""
    return CharacterDraft(
        character_name=character_name.strip(),
        attribute_values={a.id: a.default for a in schema.attributes},
        field_values={f.id: initial_field_value(f) for f in schema.creation_fields},
    )


# ----------------------------------------------------------------------
# Field values
# ----------------------------------------------------------------------

def _as_number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def _coerce_text(field: CreationField, value: Any) -> str:
    if not isinstance(value, str):
        raise FieldValidationError(field.id, "expected text")
    rules = field.validation
    if rules is not None:
        if rules.min_length is not None and value and len(value) < rules.min_length:
            raise FieldValidationError(field.id, f"must be at least {rules.min_length} characters")
        if rules.max_length is not None and len(value) > rules.max_length:
            raise FieldValidationError(field.id, f"must be at most {rules.max_length} characters")
        if rules.pattern and value and re.fullmatch(rules.pattern, value) is None:
            raise FieldValidationError(field.id, f"does not match pattern {rules.pattern!r}")
    return value


def _coerce_number(field: CreationField, value: Any) -> int | float:
    if isinstance(value, bool):
        raise FieldValidationError(field.id, "expected a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise FieldValidationError(field.id, f"'{value}' is not a number") from None
    if not isinstance(value, (int, float)):
        raise FieldValidationError(field.id, "expected a number")
    rules = field.validation
    if rules is not None:
        if rules.min is not None and value < rules.min:
            raise FieldValidationError(field.id, f"must be at least {_as_number(rules.min)}")
        if rules.max is not None and value > rules.max:
            raise FieldValidationError(field.id, f"must be at most {_as_number(rules.max)}")
    return _as_number(value)


def _coerce_checkbox(field: CreationField, value: Any) -> bool:
    if not isinstance(value, bool):
        raise FieldValidationError(field.id, "expected true or false")
    return value


def _coerce_select(field: CreationField, value: Any) -> str:
    if not isinstance(value, str) or value not in field.option_values:
        raise FieldValidationError(
            field.id, f"'{value}' is not one of: {', '.join(field.option_values)}"
        )
    return value


def _coerce_multiselect(field: CreationField, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise FieldValidationError(field.id, "expected a list of options")
    selected: list[str] = []
    for item in value:
        _coerce_select(field, item)
        if item not in selected:
            selected.append(item)
    limit = field.validation.max_selections if field.validation else None
    if limit is not None and len(selected) > limit:
        raise FieldValidationError(field.id, f"at most {limit} selections allowed")
    return selected


def _coerce_image(field: CreationField, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise FieldValidationError(field.id, "expected an image URL or data URI")
    return value.strip()


_COERCERS: dict[FieldKind, Callable[[CreationField, Any], Any]] = {
    FieldKind.TEXT: _coerce_text,
    FieldKind.TEXTAREA: _coerce_text,
    FieldKind.NUMBER: _coerce_number,
    FieldKind.SLIDER: _coerce_number,
    FieldKind.CHECKBOX: _coerce_checkbox,
    FieldKind.SELECT: _coerce_select,
    FieldKind.MULTISELECT: _coerce_multiselect,
    FieldKind.IMAGE: _coerce_image,
}


def coerce_field_value(field: CreationField, value: Any) -> Any:
    """Validate a value for a field, returning its normalized form.

    ``None`` means "unset" and yields the field's zero value.

    Raises:
        FieldValidationError: If the value does not fit the field kind or its rules
    """
    if value is None:
        return zero_value(field)
    return _COERCERS[field.kind](field, value)


def set_field_value(draft: CharacterDraft, schema: RuleSchema, field_id: str, value: Any) -> CharacterDraft:
    """Return a draft with one creation field changed.

    Raises:
        FieldValidationError: If the field is unknown or the value invalid
    """
    field = schema.field(field_id)
    if field is None:
        raise FieldValidationError(field_id, f"unknown field for {schema.name}")
    values = dict(draft.field_values)
    values[field_id] = coerce_field_value(field, value)
    return draft.evolve(field_values=values)


def set_character_name(draft: CharacterDraft, name: str) -> CharacterDraft:
    return draft.evolve(character_name=name.strip())


def _is_empty(field: CreationField, value: Any) -> bool:
    if value is None:
        return True
    if field.kind is FieldKind.CHECKBOX:
        return value is False
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return not value
    return False


def missing_required_fields(draft: CharacterDraft, schema: RuleSchema) -> list[str]:
    """Ids of required creation fields that are still empty."""
    return [
        f.id for f in schema.creation_fields
        if f.required and _is_empty(f, draft.field_values.get(f.id))
    ]
