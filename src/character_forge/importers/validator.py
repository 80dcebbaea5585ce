"""
Validate externally authored character data against a rule schema.

Validation never touches a draft. It produces an ImportPatch that the
caller may preview and then commit with ``apply_import``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import yaml
from pydantic import ValidationError

from ..draft import CharacterDraft, coerce_field_value
from ..essence_resolver import apply_imported_essences
from ..essences import MAX_ESSENCES, RANKS, dedupe_names
from ..exceptions import FieldValidationError
from ..models import AbilityKind, AbilityRecord
from ..rulesystems.models import RuleSchema
from .base import ImportPatch, ImportResult


logger = logging.getLogger("character-forge.import")

_TRAILING_COMMA = re.compile(r",\s*([}\]])")

# Keys of the canonical record; present in exported characters and ignored on import
_RECORD_KEYS = frozenset({"id", "moduleId", "level", "hp", "resources", "inventory", "essenceSelection"})
_ESSENCE_KEYS = ("essences", "abilities", "rank")
_VALID_KINDS = [kind.value for kind in AbilityKind]


def parse_payload(raw_text: str, fmt: str = "json") -> Any:
    """Parse raw import text.

    JSON tolerates trailing commas before a closing brace or bracket.

    Raises:
        ValueError: With a single user-facing message on malformed input
    """
    if not raw_text or not raw_text.strip():
        raise ValueError("Import is empty")

    fmt = fmt.lower()
    if fmt == "json":
        try:
            return json.loads(_TRAILING_COMMA.sub(r"\1", raw_text))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON format: {e}") from None
    if fmt in ("yaml", "yml"):
        try:
            return yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML format: {e}") from None
    raise ValueError(f"Unsupported import format: {fmt}")


def _unwrap_save(data: dict[str, Any], schema: RuleSchema, warnings: list[str]) -> dict[str, Any]:
    """Accept a whole campaign save and import its character."""
    if isinstance(data.get("character"), dict) and "worldType" in data:
        world_type = str(data["worldType"])
        if world_type.lower() != schema.id.lower():
            warnings.append(f"Save was made for '{world_type}', importing into {schema.name}")
        return data["character"]
    return data


def _integral(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return int(value)


def _read_attributes(
    data: dict[str, Any],
    schema: RuleSchema,
    errors: list[str],
    warnings: list[str],
) -> tuple[dict[str, int], bool]:
    """Every schema attribute, from the payload by id, then label, then default."""
    source_key = "attributes" if "attributes" in data else "stats"
    if "attributes" in data and "stats" in data:
        warnings.append("Both 'attributes' and 'stats' given; using 'attributes'")

    raw = data.get(source_key)
    if raw is None:
        return {a.id: a.default for a in schema.attributes}, False
    if not isinstance(raw, dict):
        errors.append(f"'{source_key}' must be an object of attribute values")
        return {a.id: a.default for a in schema.attributes}, False

    by_label = {str(k).strip().lower(): k for k in raw}
    used: set[str] = set()
    values: dict[str, int] = {}

    for attribute in schema.attributes:
        key: Any = None
        if attribute.id in raw:
            key = attribute.id
        elif attribute.label.lower() in by_label:
            key = by_label[attribute.label.lower()]

        if key is None:
            values[attribute.id] = attribute.default
            continue

        used.add(key)
        value = _integral(raw[key])
        if value is None:
            errors.append(f"Missing or invalid stat: {attribute.id}")
            values[attribute.id] = attribute.default
        elif not attribute.min <= value <= attribute.max:
            errors.append(
                f"Stat {attribute.id} must be between {attribute.min} and {attribute.max} (got {value})"
            )
            values[attribute.id] = attribute.default
        else:
            values[attribute.id] = value

    for key in raw:
        if key not in used:
            warnings.append(f"Unknown attribute '{key}' ignored")

    if schema.stat_point_budget is not None:
        spend = sum(max(0, values[a.id] - a.default) for a in schema.attributes)
        if spend > schema.stat_point_budget:
            errors.append(
                f"Attribute points exceed the budget: {spend} spent, {schema.stat_point_budget} allowed"
            )

    return values, True


def _read_abilities(raw: Any, errors: list[str]) -> list[AbilityRecord]:
    if not isinstance(raw, list):
        errors.append("Abilities must be an array")
        return []

    abilities: list[AbilityRecord] = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            errors.append(f"Ability {index}: must be an object")
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append(f"Ability {index}: name is required")
            continue
        kind = item.get("kind", item.get("type"))
        if kind is not None and str(kind).lower() not in _VALID_KINDS:
            errors.append(f"Ability {index}: invalid type. Must be one of: {', '.join(_VALID_KINDS)}")
            continue
        try:
            abilities.append(AbilityRecord.model_validate(item))
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            errors.append(f"Ability {index}: {location}: {first['msg']}")
    return abilities


def _read_rank(raw: Any, errors: list[str]) -> str | None:
    if isinstance(raw, str):
        for rank in RANKS:
            if rank.lower() == raw.strip().lower():
                return rank
    errors.append(f"Invalid rank. Must be one of: {', '.join(RANKS)}")
    return None


def validate_import(raw_text: str, schema: RuleSchema, *, fmt: str = "json") -> ImportResult:
    """Parse and validate an import payload.

    Returns a successful ImportResult carrying an ImportPatch, or a failed
    one carrying field-level error messages. Never mutates anything.
    """
    try:
        data = parse_payload(raw_text, fmt)
    except ValueError as e:
        return ImportResult.failure([str(e)], schema.name)

    if not isinstance(data, dict):
        return ImportResult.failure(["Character data must be an object"], schema.name)

    errors: list[str] = []
    warnings: list[str] = []
    mapped: list[str] = []
    ignored: list[str] = []
    patch = ImportPatch()

    data = _unwrap_save(data, schema, warnings)

    if "name" in data:
        if isinstance(data["name"], str):
            patch.character_name = data["name"].strip()
            mapped.append("name")
        else:
            errors.append("Character name must be a string")

    patch.attribute_values, from_payload = _read_attributes(data, schema, errors, warnings)
    if from_payload:
        mapped.append("attributes")

    for field in schema.creation_fields:
        if field.id not in data:
            continue
        try:
            patch.field_values[field.id] = coerce_field_value(field, data[field.id])
            mapped.append(field.id)
        except FieldValidationError as e:
            errors.append(e.message)

    present_essence_keys = [key for key in _ESSENCE_KEYS if key in data]
    if schema.models_essences:
        if "essences" in data:
            raw = data["essences"]
            if not isinstance(raw, list) or not all(isinstance(n, str) for n in raw):
                errors.append("Essences must be an array of names")
            else:
                names = dedupe_names(raw)
                if len(names) > MAX_ESSENCES:
                    errors.append(f"Maximum {MAX_ESSENCES} essences allowed")
                else:
                    patch.essences = names
                    mapped.append("essences")
        if "abilities" in data:
            patch.abilities = _read_abilities(data["abilities"], errors)
            mapped.append("abilities")
        if "rank" in data:
            patch.rank = _read_rank(data["rank"], errors)
            mapped.append("rank")
    else:
        for key in present_essence_keys:
            warnings.append(f"'{key}' ignored: {schema.name} does not use essences")
            ignored.append(key)

    known = {"name", "attributes", "stats", "character", "worldType", *_ESSENCE_KEYS, *_RECORD_KEYS}
    known.update(f.id for f in schema.creation_fields)
    for key in data:
        if key not in known:
            ignored.append(key)

    if errors:
        logger.debug(f"Import rejected for {schema.id}: {len(errors)} error(s)")
        return ImportResult(
            ok=False,
            errors=errors,
            warnings=warnings,
            ignored_fields=ignored,
            module_name=schema.name,
        )

    return ImportResult(
        ok=True,
        patch=patch,
        warnings=warnings,
        mapped_fields=mapped,
        ignored_fields=ignored,
        module_name=schema.name,
    )


def apply_import(draft: CharacterDraft, patch: ImportPatch) -> CharacterDraft:
    """Commit a validated import to a draft, returning the new draft.

    Attributes are replaced wholesale; only creation fields present in the
    payload change. Essence data goes through the essence resolver so a
    non-empty essence list switches the draft to ``imported`` mode.
    """
    field_values = dict(draft.field_values)
    field_values.update(patch.field_values)
    changes: dict[str, Any] = {"field_values": field_values}
    if patch.attribute_values:
        changes["attribute_values"] = dict(patch.attribute_values)
    if patch.character_name:
        changes["character_name"] = patch.character_name
    updated = draft.evolve(**changes)

    if patch.essences is not None or patch.abilities is not None or patch.rank is not None:
        updated = apply_imported_essences(updated, patch.essences or [], patch.abilities, patch.rank)
    return updated
