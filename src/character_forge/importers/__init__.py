"""
Character import: validation against a rule schema, templates, and file I/O.
"""

from .base import ImportPatch, ImportReport, ImportResult
from .files import read_character_file, write_character_file
from .template import generate_template, template_data, template_filename
from .validator import apply_import, parse_payload, validate_import

__all__ = [
    "ImportPatch",
    "ImportReport",
    "ImportResult",
    "read_character_file",
    "write_character_file",
    "generate_template",
    "template_data",
    "template_filename",
    "apply_import",
    "parse_payload",
    "validate_import",
]
