"""
Stat-point budget allocation.

Raising an attribute above its default costs one point per step; the total
positive deviation may never exceed the schema's budget. Lowering an
attribute below its default is allowed down to its minimum but earns no
points back.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .draft import CharacterDraft
from .exceptions import UnknownAttribute
from .rulesystems.models import RuleSchema


logger = logging.getLogger("character-forge.budget")


def attribute_spend(values: Mapping[str, int], schema: RuleSchema) -> int:
    """Points spent: the sum of positive deviations from attribute defaults."""
    return sum(
        max(0, values.get(attribute.id, attribute.default) - attribute.default)
        for attribute in schema.attributes
    )


def remaining_points(values: Mapping[str, int], schema: RuleSchema) -> int | None:
    """Points left to spend, or None when the schema has no budget."""
    if schema.stat_point_budget is None:
        return None
    return schema.stat_point_budget - attribute_spend(values, schema)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def adjust_attribute(
    draft: CharacterDraft,
    schema: RuleSchema,
    attribute_id: str,
    delta: int,
) -> CharacterDraft:
    """Move one attribute by ``delta``, clamped to its bounds.

    A raise that would push the spend over budget is rejected by returning
    the very same draft object; no error is raised. Lowering is never
    limited by the budget.

    Raises:
        UnknownAttribute: If the schema does not declare the attribute
    """
    attribute = schema.attribute(attribute_id)
    if attribute is None:
        raise UnknownAttribute(attribute_id)

    current = draft.attribute_values.get(attribute_id, attribute.default)
    candidate = clamp(current + delta, attribute.min, attribute.max)
    if candidate == current:
        return draft

    values = dict(draft.attribute_values)
    values[attribute_id] = candidate

    if schema.stat_point_budget is not None and candidate > current:
        spend = attribute_spend(values, schema)
        if spend > schema.stat_point_budget:
            logger.debug(
                f"Rejected {attribute_id} {current} -> {candidate}: "
                f"spend {spend} exceeds budget {schema.stat_point_budget}"
            )
            return draft

    return draft.evolve(attribute_values=values)
