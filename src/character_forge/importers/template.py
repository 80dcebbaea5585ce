"""
Blank character templates for offline authoring.

A template lists every key the import validator reads for a rule system,
filled with the values a fresh draft would have, so it imports cleanly
as-is.
"""

from __future__ import annotations

import json
from typing import Any

from ..draft import initial_field_value
from ..essences import STARTING_RANK
from ..rulesystems.models import RuleSchema


def template_data(schema: RuleSchema) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": "",
        "attributes": {a.id: a.default for a in schema.attributes},
    }
    for field in schema.creation_fields:
        data[field.id] = initial_field_value(field)
    if schema.models_essences:
        data["rank"] = STARTING_RANK
        data["essences"] = []
        data["abilities"] = []
    return data


def generate_template(schema: RuleSchema) -> str:
    """Indented JSON skeleton of a character for ``schema``."""
    return json.dumps(template_data(schema), indent=2, ensure_ascii=False)


def template_filename(schema: RuleSchema) -> str:
    return f"{schema.id}_character_template.json"
