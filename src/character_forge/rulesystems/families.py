"""
Rule-family classification.

Schemas do not always declare their resource pools. The family a schema
belongs to, guessed from its id, decides which pools a new character gets
when the schema is silent.
"""

from __future__ import annotations

from enum import Enum

from ..models import ResourcePool


class RuleFamily(str, Enum):
    CLASSIC = "classic"
    ESSENCE = "essence"
    TACTICAL = "tactical"
    GENERIC = "generic"


# Checked in order; the first family with a matching keyword wins
_FAMILY_KEYWORDS: tuple[tuple[RuleFamily, tuple[str, ...]], ...] = (
    (RuleFamily.ESSENCE, ("outworlder", "hwfwm", "essence")),
    (RuleFamily.TACTICAL, ("tactical", "praxis", "nanite", "shadowmonarch")),
    (RuleFamily.CLASSIC, ("classic", "dnd", "5e")),
)

_DEFAULT_POOLS: dict[RuleFamily, dict[str, tuple[int, int]]] = {
    RuleFamily.CLASSIC: {"mana": (100, 100), "stamina": (100, 100)},
    RuleFamily.ESSENCE: {"mana": (100, 100), "stamina": (100, 100)},
    RuleFamily.TACTICAL: {"nanites": (10, 100), "stamina": (100, 100)},
    RuleFamily.GENERIC: {"mana": (100, 100), "stamina": (100, 100)},
}


def classify_family(schema_id: str) -> RuleFamily:
    """Map a schema id such as ``"outworlder-v2"`` to its rule family."""
    normalized = schema_id.strip().lower().replace("_", "").replace(" ", "")
    for family, keywords in _FAMILY_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return family
    return RuleFamily.GENERIC


def default_pools(family: RuleFamily) -> dict[str, ResourcePool]:
    """Fresh copies of the family's default resource pools."""
    return {
        pool_id: ResourcePool(current=current, max=maximum)
        for pool_id, (current, maximum) in _DEFAULT_POOLS[family].items()
    }
