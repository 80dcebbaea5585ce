"""
Essence catalog: the immutable reference table of named affinities.

Essences are grouped by rarity and category. The catalog, the intrinsic
ability table and the rank ladder are process-wide read-only registries;
nothing in the engine mutates them.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict


class EssenceRarity(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


class EssenceCategory(str, Enum):
    ANIMAL = "Animal"
    ELEMENT = "Element"
    OBJECT = "Object"
    BODY = "Body"
    CONCEPT = "Concept"


class Essence(BaseModel):
    """A catalog essence."""

    model_config = ConfigDict(frozen=True)

    name: str
    rarity: EssenceRarity
    category: EssenceCategory
    description: str | None = None


class IntrinsicAbility(BaseModel):
    """Fixed starting ability granted by a well-known catalog essence."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: str
    description: str


# Rank ladder for essence-based rule systems, lowest first
RANKS: tuple[str, ...] = ("Iron", "Bronze", "Silver", "Gold", "Diamond")
STARTING_RANK = RANKS[0]

MAX_ESSENCES = 4


def _build(rarity: EssenceRarity, category: EssenceCategory, names: str) -> list[Essence]:
    return [Essence(name=n, rarity=rarity, category=category) for n in names.split()]


_C, _U, _R, _E, _L = (
    EssenceRarity.COMMON,
    EssenceRarity.UNCOMMON,
    EssenceRarity.RARE,
    EssenceRarity.EPIC,
    EssenceRarity.LEGENDARY,
)

ESSENCES: tuple[Essence, ...] = tuple(
    _build(_C, EssenceCategory.ANIMAL,
           "Ape Bat Bear Bee Bird Cat Cattle Crocodile Deer Dog Duck Fish Flea Fox "
           "Frog Goat Horse Lizard Locust Monkey Mouse Octopus Pangolin Rabbit Rat "
           "Shark Skunk Sloth Snake Spider Turtle Wasp Whale Wolf")
    + _build(_C, EssenceCategory.ELEMENT, "Air Earth Fire Water Plant Fungus Coral Tree Iron")
    + _build(_C, EssenceCategory.OBJECT,
             "Armour Axe Bow Cage Chain Cloth Fork Hammer Hook Knife Needle Net Paper "
             "Rake Sceptre Shield Ship Shovel Sickle Spear Spike Staff Sword Thread "
             "Trap Trowel Vehicle Wheel Whip")
    + _build(_C, EssenceCategory.BODY, "Eye Foot Hair Hand Tooth")
    + _build(_C, EssenceCategory.CONCEPT, "Adept Feast Hunt Might Swift")
    + _build(_U, EssenceCategory.CONCEPT, "Balance Dance Growth Hunger Omen Potent Renewal Rune")
    + _build(_U, EssenceCategory.BODY, "Blood Bone Claw Wing")
    + _build(_U, EssenceCategory.ELEMENT, "Cloud Cold Dark Light Wind")
    + _build(_U, EssenceCategory.OBJECT, "Gun Technology")
    + _build(_R, EssenceCategory.CONCEPT, "Death Magic Sin")
    + _build(_R, EssenceCategory.ELEMENT, "Void")
    + _build(_E, EssenceCategory.CONCEPT, "Dimension Doom Soul Time")
    + _build(_L, EssenceCategory.CONCEPT, "Absolution Apocalypse")
)

_BY_NAME: MappingProxyType[str, Essence] = MappingProxyType(
    {essence.name.lower(): essence for essence in ESSENCES}
)

INTRINSIC_ABILITIES: MappingProxyType[str, IntrinsicAbility] = MappingProxyType({
    "might": IntrinsicAbility(name="Power Strike", kind="attack",
                              description="A blow carrying the full weight of the Might essence."),
    "swift": IntrinsicAbility(name="Quick Step", kind="movement",
                              description="A burst of speed that repositions in an instant."),
    "fire": IntrinsicAbility(name="Fire Bolt", kind="attack",
                             description="Hurls a bolt of flame at a single target."),
    "water": IntrinsicAbility(name="Tide Shield", kind="defense",
                              description="A swirling barrier of water that absorbs blows."),
    "earth": IntrinsicAbility(name="Stone Skin", kind="defense",
                              description="Hardens the skin with a layer of living rock."),
    "air": IntrinsicAbility(name="Gust", kind="utility",
                            description="A sudden wind that pushes creatures and objects away."),
    "dark": IntrinsicAbility(name="Shadow Veil", kind="utility",
                             description="Wraps the user in concealing darkness."),
    "light": IntrinsicAbility(name="Radiant Flash", kind="attack",
                              description="A blinding burst of light."),
    "blood": IntrinsicAbility(name="Blood Harvest", kind="special",
                              description="Draws vitality from wounded foes."),
    "magic": IntrinsicAbility(name="Mana Bolt", kind="attack",
                              description="A focused lance of raw mana."),
    "death": IntrinsicAbility(name="Wither", kind="attack",
                              description="Saps the life force of a target over time."),
    "time": IntrinsicAbility(name="Haste", kind="special",
                             description="Briefly accelerates the user's personal time."),
    "wolf": IntrinsicAbility(name="Pack Instinct", kind="utility",
                             description="Senses allies and prey nearby."),
    "shield": IntrinsicAbility(name="Bulwark", kind="defense",
                               description="Raises a conjured shield against incoming harm."),
    "sword": IntrinsicAbility(name="Blade Dance", kind="attack",
                              description="A flurry of precise sword strikes."),
})


def find_essence(name: str) -> Essence | None:
    """Case-insensitive catalog lookup."""
    return _BY_NAME.get(name.strip().lower())


def is_catalog_essence(name: str) -> bool:
    return find_essence(name) is not None


def intrinsic_ability_for_catalog(name: str) -> IntrinsicAbility | None:
    """Return the fixed intrinsic ability for a catalog essence, if it has one."""
    return INTRINSIC_ABILITIES.get(name.strip().lower())


def essences_by_rarity(rarity: EssenceRarity | str) -> list[Essence]:
    rarity = EssenceRarity(rarity)
    return [e for e in ESSENCES if e.rarity == rarity]


def essences_by_category(category: EssenceCategory | str) -> list[Essence]:
    category = EssenceCategory(category)
    return [e for e in ESSENCES if e.category == category]


def essence_groups() -> list[tuple[str, list[Essence]]]:
    """Catalog grouped by rarity, in rarity order, for selection lists."""
    return [(rarity.value, essences_by_rarity(rarity)) for rarity in EssenceRarity]


def dedupe_names(names: list[str]) -> list[str]:
    """Case-insensitive de-duplication; the first-seen casing wins."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        key = name.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(name.strip())
    return result
