"""
Pytest configuration and fixtures for character-forge tests.
"""

import sys
from pathlib import Path
import pytest

# Add src directory to Python path to allow importing character_forge
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from character_forge.rulesystems.models import RuleSchema


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def point_buy_schema() -> RuleSchema:
    """Two attributes defaulting to 10 with a budget of 10 points."""
    return RuleSchema.model_validate({
        "id": "pointbuy",
        "name": "Point Buy",
        "statPointBudget": 10,
        "attributes": [
            {"id": "a", "label": "Alpha", "min": 5, "max": 20, "default": 10},
            {"id": "b", "label": "Beta", "min": 5, "max": 20, "default": 10},
        ],
    })


@pytest.fixture
def essence_schema() -> RuleSchema:
    """A small essence-based rule system."""
    return RuleSchema.model_validate({
        "id": "outworlder-test",
        "name": "Outworlder Test",
        "statPointBudget": 10,
        "attributes": [
            {"id": "power", "label": "Power", "min": 5, "max": 20, "default": 10},
            {"id": "spirit", "label": "Spirit", "min": 5, "max": 20, "default": 10},
        ],
        "creationFields": [
            {"id": "origin", "label": "Life on Earth", "kind": "textarea", "aiAssistEligible": True},
        ],
    })
