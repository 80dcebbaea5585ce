"""
Character Forge - schema-driven character creation for interchangeable rule systems.
"""

from .assembler import CharacterAssembler
from .config import ForgeConfig
from .draft import CharacterDraft, initialize_draft
from .models import CanonicalCharacter
from .rulesystems import RuleSchema, RuleSchemaRegistry
from .session import AdjustOutcome, CreationSession

try:
    from importlib.metadata import PackageNotFoundError, version as _get_version
    __version__ = _get_version("character-forge")
except PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "CharacterAssembler",
    "ForgeConfig",
    "CharacterDraft",
    "initialize_draft",
    "CanonicalCharacter",
    "RuleSchema",
    "RuleSchemaRegistry",
    "AdjustOutcome",
    "CreationSession",
]
