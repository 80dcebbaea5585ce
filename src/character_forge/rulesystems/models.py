"""
Pydantic models for declarative rule-system schemas.

A RuleSchema describes one world module: its attributes, stat-point budget,
free-form creation fields, resource pools and default starting loadout. The
engine interprets schemas it has never seen before, so everything it needs
to build and validate a character has to be stated here.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..models import AbilityRecord, CamelModel


# Canonical record keys a creation field may not shadow
RESERVED_FIELD_IDS = frozenset({
    "id", "name", "moduleId", "level", "hp", "attributes", "resources",
    "abilities", "inventory", "essences", "essenceSelection", "rank",
    "stats", "module_id", "essence_selection",
})


class FieldKind(str, Enum):
    """Closed set of creation field kinds."""
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    SLIDER = "slider"
    CHECKBOX = "checkbox"
    IMAGE = "image"


TEXT_KINDS = frozenset({FieldKind.TEXT, FieldKind.TEXTAREA})
OPTION_KINDS = frozenset({FieldKind.SELECT, FieldKind.MULTISELECT})


class SchemaModel(CamelModel):
    model_config = ConfigDict(frozen=True)


class AttributeDefinition(SchemaModel):
    """A numeric attribute (e.g. Strength, Power) with bounds and a default."""

    id: str = Field(min_length=1)
    label: str
    min: int
    max: int
    default: int
    abbreviation: str | None = None
    description: str | None = None

    @model_validator(mode="after")
    def _default_within_bounds(self) -> "AttributeDefinition":
        if self.min > self.max:
            raise ValueError(f"attribute '{self.id}': min {self.min} is greater than max {self.max}")
        if not self.min <= self.default <= self.max:
            raise ValueError(
                f"attribute '{self.id}': default {self.default} outside [{self.min}, {self.max}]"
            )
        return self


class FieldOption(SchemaModel):
    value: str
    label: str


class FieldValidation(SchemaModel):
    """Optional constraints on a creation field value."""

    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    min: float | None = None
    max: float | None = None
    step: float | None = Field(default=None, gt=0)
    pattern: str | None = None
    max_selections: int | None = Field(default=None, ge=1)


class CreationField(SchemaModel):
    """A free-form authoring field shown during character creation."""

    id: str = Field(min_length=1)
    label: str
    kind: FieldKind
    required: bool = False
    default_value: Any = None
    options: list[FieldOption] | None = None
    validation: FieldValidation | None = None
    ai_assist_eligible: bool = False
    placeholder: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_type_key(cls, data: Any) -> Any:
        # Older world configs call the kind "type"
        if isinstance(data, dict) and "kind" not in data and "type" in data:
            data = dict(data)
            data["kind"] = data.pop("type")
        return data

    @model_validator(mode="after")
    def _check_kind_rules(self) -> "CreationField":
        if self.id in RESERVED_FIELD_IDS:
            raise ValueError(f"field id '{self.id}' is reserved by the character record")
        if self.kind in OPTION_KINDS and not self.options:
            raise ValueError(f"field '{self.id}': {self.kind.value} fields need options")
        if self.ai_assist_eligible and self.kind not in TEXT_KINDS:
            raise ValueError(f"field '{self.id}': only text fields can be AI-assisted")
        if self.default_value is not None:
            from ..draft import coerce_field_value
            try:
                coerce_field_value(self, self.default_value)
            except ValueError as e:
                raise ValueError(f"field '{self.id}': invalid default value ({e})") from None
        return self

    @property
    def option_values(self) -> list[str]:
        return [option.value for option in self.options or []]


class ResourceDefinition(SchemaModel):
    """A schema-declared resource pool, overriding the family default of the same id."""

    id: str = Field(min_length=1)
    name: str | None = None
    default_value: int | None = None
    max_value: int | None = Field(default=None, ge=0)


class LoadoutEssence(SchemaModel):
    name: str = Field(min_length=1)
    intrinsic_ability: AbilityRecord | None = None


class DefaultLoadout(SchemaModel):
    """Baseline abilities, items and essences given to every new character."""

    abilities: list[AbilityRecord] = Field(default_factory=list)
    items: list[str] = Field(default_factory=list)
    essences: list[LoadoutEssence] = Field(default_factory=list)

    @field_validator("essences", mode="before")
    @classmethod
    def _accept_bare_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"name": v} if isinstance(v, str) else v for v in value]
        return value


class RuleSchema(SchemaModel):
    """Declarative description of one rule system. Read-only once loaded."""

    id: str = Field(min_length=1)
    name: str
    description: str | None = None
    attributes: list[AttributeDefinition] = Field(default_factory=list)
    stat_point_budget: int | None = Field(default=None, ge=0)
    creation_fields: list[CreationField] = Field(default_factory=list)
    resources: list[ResourceDefinition] = Field(default_factory=list)
    default_loadout: DefaultLoadout = Field(default_factory=DefaultLoadout)
    essence_system: bool | None = None

    @model_validator(mode="after")
    def _unique_ids(self) -> "RuleSchema":
        for label, ids in (
            ("attribute", [a.id for a in self.attributes]),
            ("creation field", [f.id for f in self.creation_fields]),
            ("resource", [r.id for r in self.resources]),
        ):
            duplicates = sorted({i for i in ids if ids.count(i) > 1})
            if duplicates:
                raise ValueError(f"duplicate {label} ids: {', '.join(duplicates)}")
        return self

    def attribute(self, attribute_id: str) -> AttributeDefinition | None:
        for attribute in self.attributes:
            if attribute.id == attribute_id:
                return attribute
        return None

    def field(self, field_id: str) -> CreationField | None:
        for creation_field in self.creation_fields:
            if creation_field.id == field_id:
                return creation_field
        return None

    @property
    def has_budget(self) -> bool:
        return self.stat_point_budget is not None

    @property
    def models_essences(self) -> bool:
        """Whether this rule system lets characters hold essences.

        An explicit ``essenceSystem`` flag wins; otherwise the rule family decides.
        """
        if self.essence_system is not None:
            return self.essence_system
        from .families import RuleFamily, classify_family
        return classify_family(self.id) is RuleFamily.ESSENCE
