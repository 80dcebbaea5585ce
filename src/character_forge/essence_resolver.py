"""
Essence selection for rule systems that model essences.

The selection moves between three modes:

- ``deferred``: nothing is chosen now; the session runtime offers essences later
- ``chosen``: one catalog essence or one custom-authored essence
- ``imported``: the full essence list (and abilities) of an accepted import

At assembly the mode decides which essences and abilities the character
starts with, in the precedence imported > chosen > deferred. Imported
abilities and rank apply in every mode, after any intrinsic ability.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .draft import CharacterDraft, ChosenEssence, CustomEssence
from .essences import (
    MAX_ESSENCES,
    STARTING_RANK,
    dedupe_names,
    find_essence,
    intrinsic_ability_for_catalog,
)
from .exceptions import EssenceSelectionError
from .models import AbilityCost, AbilityKind, AbilityRecord, CostKind, EssenceSelectionMode, union_abilities
from .rulesystems.models import RuleSchema


logger = logging.getLogger("character-forge.essences")

INTRINSIC_COST = AbilityCost(kind=CostKind.MANA, amount=10)


@dataclass(frozen=True)
class EssenceResolution:
    """What the essence selection contributes to the final character."""
    mode: EssenceSelectionMode
    essences: list[str] = field(default_factory=list)
    abilities: list[AbilityRecord] = field(default_factory=list)
    rank: str = STARTING_RANK


# ------------------------------------------------------------------
# Intrinsic abilities
# ------------------------------------------------------------------

def intrinsic_ability_for(name: str, custom_text: str = "", rank: str = STARTING_RANK) -> AbilityRecord:
    """The starting ability a freshly chosen essence grants.

    User-authored text wins. Otherwise well-known catalog essences map to a
    fixed ability and everything else gets ``"Manifest <name>"``.
    """
    name = name.strip()
    custom_text = custom_text.strip()
    known = intrinsic_ability_for_catalog(name)

    if custom_text:
        ability_name, kind, description = custom_text, AbilityKind.SPECIAL, f"Starting ability from {name} essence"
    elif known is not None:
        ability_name, kind, description = known.name, AbilityKind(known.kind), known.description
    else:
        ability_name, kind, description = f"Manifest {name}", AbilityKind.SPECIAL, f"Starting ability from {name} essence"

    return AbilityRecord(
        name=ability_name,
        kind=kind,
        rank=rank,
        essence=name,
        cost=INTRINSIC_COST,
        description=description,
    )


# ------------------------------------------------------------------
# Mode transitions
# ------------------------------------------------------------------

def _display_essence(name: str) -> ChosenEssence:
    essence = find_essence(name)
    return ChosenEssence.from_catalog(essence) if essence else ChosenEssence(name=name)


def set_essence_mode(draft: CharacterDraft, mode: EssenceSelectionMode | str) -> CharacterDraft:
    """Switch the selection mode.

    Switching to ``chosen`` clears any chosen or custom essence. The imported
    list survives switching away so that switching back restores it.

    Raises:
        EssenceSelectionError: If switching to ``imported`` with nothing imported
    """
    try:
        mode = EssenceSelectionMode(mode)
    except ValueError:
        raise EssenceSelectionError(f"Unknown essence selection mode: '{mode}'") from None

    if mode == draft.essence_selection_mode:
        return draft

    if mode is EssenceSelectionMode.CHOSEN:
        return draft.evolve(essence_selection_mode=mode, chosen_essence=None, custom_essence=None)

    if mode is EssenceSelectionMode.IMPORTED:
        if not draft.imported_essences:
            raise EssenceSelectionError("No imported essences to use; import a character first")
        return draft.evolve(
            essence_selection_mode=mode,
            chosen_essence=_display_essence(draft.imported_essences[0]),
            custom_essence=None,
        )

    return draft.evolve(essence_selection_mode=mode)


def _require_chosen_mode(draft: CharacterDraft) -> None:
    if draft.essence_selection_mode is not EssenceSelectionMode.CHOSEN:
        raise EssenceSelectionError(
            f"Essences can only be picked in 'chosen' mode (current: "
            f"'{draft.essence_selection_mode.value}')"
        )


def choose_catalog_essence(draft: CharacterDraft, name: str) -> CharacterDraft:
    """Pick a catalog essence. Replaces any custom essence.

    Raises:
        EssenceSelectionError: Outside ``chosen`` mode or for an unknown name
    """
    _require_chosen_mode(draft)
    essence = find_essence(name)
    if essence is None:
        raise EssenceSelectionError(f"'{name}' is not in the essence catalog")
    return draft.evolve(chosen_essence=ChosenEssence.from_catalog(essence), custom_essence=None)


def author_custom_essence(draft: CharacterDraft, name: str, intrinsic_ability: str = "") -> CharacterDraft:
    """Author a custom essence and its intrinsic ability. Replaces any catalog pick.

    Raises:
        EssenceSelectionError: Outside ``chosen`` mode or with a blank name
    """
    _require_chosen_mode(draft)
    if not name.strip():
        raise EssenceSelectionError("A custom essence needs a name")
    custom = CustomEssence(name=name.strip(), intrinsic_ability=intrinsic_ability.strip())
    return draft.evolve(custom_essence=custom, chosen_essence=None)


def apply_imported_essences(
    draft: CharacterDraft,
    essences: list[str],
    abilities: list[AbilityRecord] | None = None,
    rank: str | None = None,
) -> CharacterDraft:
    """Record an accepted import's essence data.

    A non-empty essence list forces ``imported`` mode and keeps the whole
    list; its first entry becomes the displayed essence.
    """
    names = dedupe_names(essences)[:MAX_ESSENCES]
    changes: dict = {}
    if abilities is not None:
        changes["imported_abilities"] = union_abilities(abilities)
    if rank is not None:
        changes["imported_rank"] = rank
    if names:
        changes.update(
            imported_essences=names,
            essence_selection_mode=EssenceSelectionMode.IMPORTED,
            chosen_essence=_display_essence(names[0]),
            custom_essence=None,
        )
        logger.debug(f"Imported essences: {', '.join(names)}")
    return draft.evolve(**changes)


# ------------------------------------------------------------------
# Resolution
# ------------------------------------------------------------------

def resolve_essences(
    draft: CharacterDraft,
    schema: RuleSchema,
    starting_rank: str = STARTING_RANK,
) -> EssenceResolution:
    """Turn the draft's selection into essences, abilities and a rank.

    Raises:
        EssenceSelectionError: If the rule system does not model essences
    """
    if not schema.models_essences:
        raise EssenceSelectionError(f"{schema.name} does not use essences")

    mode = draft.essence_selection_mode
    rank = draft.imported_rank or starting_rank
    imported = draft.imported_abilities

    if mode is EssenceSelectionMode.IMPORTED:
        return EssenceResolution(
            mode=mode,
            essences=dedupe_names(draft.imported_essences),
            abilities=union_abilities(imported),
            rank=rank,
        )

    if mode is EssenceSelectionMode.CHOSEN:
        if draft.custom_essence is not None:
            custom = draft.custom_essence
            ability = intrinsic_ability_for(custom.name, custom.intrinsic_ability, rank=starting_rank)
            return EssenceResolution(
                mode=mode, essences=[custom.name], abilities=union_abilities([ability], imported), rank=rank
            )
        if draft.chosen_essence is not None:
            chosen = draft.chosen_essence.name
            ability = intrinsic_ability_for(chosen, rank=starting_rank)
            return EssenceResolution(
                mode=mode, essences=[chosen], abilities=union_abilities([ability], imported), rank=rank
            )

    return EssenceResolution(mode=mode, abilities=union_abilities(imported), rank=rank)
