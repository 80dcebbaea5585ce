"""
Shared data models for the character creation engine.

The wire format (import payloads, templates, the canonical record handed to
the campaign backend) uses camelCase keys, while Python code uses snake_case
attributes. CamelModel bridges the two.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from shortuuid import random


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Dump to the JSON-ready camelCase wire format."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class AbilityKind(str, Enum):
    ATTACK = "attack"
    DEFENSE = "defense"
    UTILITY = "utility"
    MOVEMENT = "movement"
    SPECIAL = "special"


class CostKind(str, Enum):
    MANA = "mana"
    HEALTH = "health"
    SPIRIT = "spirit"
    STAMINA = "stamina"
    NANITES = "nanites"
    NONE = "none"


class EssenceSelectionMode(str, Enum):
    """How the essence of an essence-based character is decided."""
    DEFERRED = "deferred"  # left to the session runtime
    CHOSEN = "chosen"      # picked from the catalog or custom-authored
    IMPORTED = "imported"  # taken from an accepted import


class AbilityCost(CamelModel):
    model_config = ConfigDict(frozen=True)

    kind: CostKind = CostKind.NONE
    amount: int = Field(default=0, ge=0)


class AbilityRecord(CamelModel):
    """A single ability. Immutable once created; many may share an essence."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    kind: AbilityKind = AbilityKind.SPECIAL
    rank: str | None = None
    essence: str | None = None
    cooldown: int = Field(default=0, ge=0)
    current_cooldown: int = Field(default=0, ge=0)
    cost: AbilityCost = Field(default_factory=AbilityCost)
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, data: Any) -> Any:
        """Accept the flat export format: ``type`` for kind, ``cost: "mana"`` + ``costAmount``."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "kind" not in data and "type" in data:
            data["kind"] = data.pop("type")
        cost = data.get("cost")
        if isinstance(cost, str):
            data["cost"] = {"kind": cost, "amount": data.pop("costAmount", 0) or 0}
        else:
            data.pop("costAmount", None)
        if isinstance(data.get("kind"), str):
            data["kind"] = data["kind"].lower()
        return data

    @property
    def key(self) -> str:
        """Case-insensitive identity used for de-duplication."""
        return self.name.strip().lower()


class ResourcePool(CamelModel):
    """A current/max resource bar (health, mana, stamina, nanites...)."""

    current: int
    max: int = Field(ge=0)

    def clamped(self) -> "ResourcePool":
        return ResourcePool(current=max(0, min(self.current, self.max)), max=self.max)


def union_abilities(*groups: list[AbilityRecord]) -> list[AbilityRecord]:
    """Merge ability lists, dropping case-insensitive name duplicates (first wins)."""
    seen: set[str] = set()
    merged: list[AbilityRecord] = []
    for group in groups:
        for ability in group:
            if ability.key in seen:
                continue
            seen.add(ability.key)
            merged.append(ability)
    return merged


class CanonicalCharacter(CamelModel):
    """The finalized character record handed to the campaign backend.

    Creation field values travel as extra top-level properties.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(default_factory=lambda: random(length=8))
    module_id: str
    name: str
    level: int = Field(ge=1)
    hp: ResourcePool
    attributes: dict[str, int] = Field(default_factory=dict)
    resources: dict[str, ResourcePool] = Field(default_factory=dict)
    abilities: list[AbilityRecord] = Field(default_factory=list)
    inventory: list[str] = Field(default_factory=list)
    essences: list[str] | None = None
    essence_selection: EssenceSelectionMode | None = None
    rank: str | None = None

    @property
    def field_values(self) -> dict[str, Any]:
        return dict(self.model_extra or {})
