"""
Rule systems: declarative schemas, where they come from, and how they are classified.
"""

from .families import RuleFamily, classify_family, default_pools
from .manager import RuleSchemaRegistry, create_default_registry
from .models import (
    RESERVED_FIELD_IDS,
    AttributeDefinition,
    CreationField,
    DefaultLoadout,
    FieldKind,
    FieldOption,
    FieldValidation,
    LoadoutEssence,
    ResourceDefinition,
    RuleSchema,
)
from .sources import (
    BuiltinSchemaSource,
    FileSchemaSource,
    RemoteSchemaSource,
    SchemaSource,
    StaticSchemaSource,
)

__all__ = [
    "RuleFamily",
    "classify_family",
    "default_pools",
    "RuleSchemaRegistry",
    "create_default_registry",
    "RESERVED_FIELD_IDS",
    "AttributeDefinition",
    "CreationField",
    "DefaultLoadout",
    "FieldKind",
    "FieldOption",
    "FieldValidation",
    "LoadoutEssence",
    "ResourceDefinition",
    "RuleSchema",
    "BuiltinSchemaSource",
    "FileSchemaSource",
    "RemoteSchemaSource",
    "SchemaSource",
    "StaticSchemaSource",
]
