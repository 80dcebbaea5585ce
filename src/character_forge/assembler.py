"""
Character assembly: turn a finished draft into the canonical character record.

Assembly is an ordered list of pure merge steps. Each step takes the state
built so far plus the schema and draft and returns a new state; later steps
override earlier ones for the same key, except essence and ability lists,
which are case-insensitive de-duplicated unions keeping the first entry.

    1. starting values     level and the base hp pool
    2. family pools        default resource pools of the rule family
    3. schema resources    declared pools replace same-id family pools
    4. default loadout     starting abilities, items and essences
    5. attributes          draft attribute values
    6. creation fields     draft field values as top-level properties
    7. essences            essence resolution, essence-family pools and
                           Power/Spirit scaling of hp, spirit and mana
    8. clamp               every pool to 0 <= current <= max
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from .config import ForgeConfig
from .draft import CharacterDraft
from .essence_resolver import resolve_essences
from .essences import dedupe_names
from .models import AbilityRecord, CanonicalCharacter, EssenceSelectionMode, ResourcePool, union_abilities
from .rulesystems.families import classify_family, default_pools
from .rulesystems.models import RuleSchema


logger = logging.getLogger("character-forge.assembler")

DEFAULT_POOL_SIZE = 100
SPIRIT_SCALE = 10


@dataclass(frozen=True)
class AssemblyState:
    """The character record under construction."""
    config: ForgeConfig
    level: int = 1
    hp: ResourcePool = field(default_factory=lambda: ResourcePool(current=DEFAULT_POOL_SIZE, max=DEFAULT_POOL_SIZE))
    attributes: dict[str, int] = field(default_factory=dict)
    resources: dict[str, ResourcePool] = field(default_factory=dict)
    abilities: list[AbilityRecord] = field(default_factory=list)
    inventory: list[str] = field(default_factory=list)
    essences: list[str] | None = None
    essence_selection: EssenceSelectionMode | None = None
    rank: str | None = None
    field_values: dict[str, Any] = field(default_factory=dict)


MergeStep = Callable[[AssemblyState, RuleSchema, CharacterDraft], AssemblyState]


# ------------------------------------------------------------------
# Merge steps
# ------------------------------------------------------------------

def apply_starting_values(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    hp = state.config.starting_hp
    return replace(state, level=state.config.starting_level, hp=ResourcePool(current=hp, max=hp))


def apply_family_pools(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    return replace(state, resources=default_pools(classify_family(schema.id)))


def apply_schema_resources(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    resources = dict(state.resources)
    for definition in schema.resources:
        if definition.id == "hp":
            logger.debug(f"{schema.id}: ignoring declared 'hp' resource")
            continue
        maximum = definition.max_value if definition.max_value is not None else definition.default_value
        current = definition.default_value if definition.default_value is not None else definition.max_value
        if maximum is None:
            existing = resources.get(definition.id)
            maximum = existing.max if existing else DEFAULT_POOL_SIZE
            current = existing.current if existing else DEFAULT_POOL_SIZE
        resources[definition.id] = ResourcePool(current=current, max=maximum)
    return replace(state, resources=resources)


def apply_default_loadout(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    loadout = schema.default_loadout
    abilities = union_abilities(state.abilities, loadout.abilities)
    essences = list(state.essences or [])

    for entry in loadout.essences:
        if entry.name.strip().lower() not in {e.lower() for e in essences}:
            essences.append(entry.name.strip())
        # The intrinsic ability is added even when the essence was already there
        if entry.intrinsic_ability is not None:
            abilities = union_abilities(abilities, [entry.intrinsic_ability])

    return replace(
        state,
        abilities=abilities,
        inventory=[*state.inventory, *loadout.items],
        essences=essences if (essences or state.essences is not None) else None,
    )


def apply_attributes(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    return replace(state, attributes=dict(draft.attribute_values))


def apply_field_values(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    values = dict(state.field_values)
    values.update(draft.field_values)
    return replace(state, field_values=values)


def apply_essences(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    if not schema.models_essences:
        return state

    resolution = resolve_essences(draft, schema, starting_rank=state.config.starting_rank)

    hp = state.hp
    power = schema.attribute("power")
    if power is not None:
        size = max(0, hp.max + (state.attributes.get("power", power.default) - power.default) * SPIRIT_SCALE)
        hp = ResourcePool(current=size, max=size)

    declared = {definition.id for definition in schema.resources}
    resources = dict(state.resources)
    bonus = 0
    spirit = schema.attribute("spirit")
    if spirit is not None:
        bonus = (state.attributes.get("spirit", spirit.default) - spirit.default) * SPIRIT_SCALE
    if "spirit" not in declared:
        size = max(0, DEFAULT_POOL_SIZE + bonus)
        resources["spirit"] = ResourcePool(current=size, max=size)
    if "mana" not in declared:
        base = resources["mana"].max if "mana" in resources else DEFAULT_POOL_SIZE
        size = max(0, base + bonus)
        resources["mana"] = ResourcePool(current=size, max=size)

    return replace(
        state,
        essences=dedupe_names([*(state.essences or []), *resolution.essences]),
        abilities=union_abilities(state.abilities, resolution.abilities),
        hp=hp,
        essence_selection=resolution.mode,
        rank=resolution.rank,
        resources=resources,
    )


def clamp_pools(state: AssemblyState, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
    return replace(
        state,
        hp=state.hp.clamped(),
        resources={pool_id: pool.clamped() for pool_id, pool in state.resources.items()},
    )


MERGE_STEPS: tuple[MergeStep, ...] = (
    apply_starting_values,
    apply_family_pools,
    apply_schema_resources,
    apply_default_loadout,
    apply_attributes,
    apply_field_values,
    apply_essences,
    clamp_pools,
)


# ------------------------------------------------------------------
# Assembler
# ------------------------------------------------------------------

class CharacterAssembler:
    """Runs the merge steps and builds the CanonicalCharacter."""

    def __init__(self, config: ForgeConfig | None = None, steps: tuple[MergeStep, ...] = MERGE_STEPS):
        self.config = config or ForgeConfig()
        self.steps = steps

    def build_state(self, schema: RuleSchema, draft: CharacterDraft) -> AssemblyState:
        state = AssemblyState(config=self.config)
        for step in self.steps:
            state = step(state, schema, draft)
        return state

    def assemble(
        self,
        schema: RuleSchema,
        draft: CharacterDraft,
        module_id: str | None = None,
    ) -> CanonicalCharacter:
        """Produce the canonical character for a draft of ``schema``."""
        state = self.build_state(schema, draft)
        character = CanonicalCharacter(
            module_id=module_id or schema.id,
            name=draft.character_name,
            level=state.level,
            hp=state.hp,
            attributes=state.attributes,
            resources=state.resources,
            abilities=state.abilities,
            inventory=state.inventory,
            essences=state.essences,
            essence_selection=state.essence_selection,
            rank=state.rank,
            **state.field_values,
        )
        logger.debug(f"Assembled '{character.name}' for {schema.id} ({len(character.abilities)} abilities)")
        return character
