"""Rule-schema sources."""

from .base import SchemaSource, StaticSchemaSource
from .builtin import BuiltinSchemaSource
from .custom import FileSchemaSource
from .remote import RemoteSchemaSource

__all__ = [
    "SchemaSource",
    "StaticSchemaSource",
    "BuiltinSchemaSource",
    "FileSchemaSource",
    "RemoteSchemaSource",
]
