"""
Abstract base class for rule-schema sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ...exceptions import SchemaSourceError
from ..models import RuleSchema


class SchemaSource(ABC):
    """
    A place rule schemas come from.

    Subclasses either load everything up front (files, bundled data) or
    answer lookups lazily (remote service). ``get_schema`` returns None for
    an id the source does not know so the registry can try the next one.
    """

    def __init__(self, source_id: str):
        self.source_id = source_id
        self.loaded_at: datetime | None = None
        self._loaded = False
        self._schemas: dict[str, RuleSchema] = {}

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @abstractmethod
    async def load(self) -> None:
        """Load eagerly available schemas. Lazy sources only mark themselves loaded."""
        ...

    async def get_schema(self, module_id: str) -> RuleSchema | None:
        return self._schemas.get(module_id.strip().lower())

    def list_schemas(self) -> list[RuleSchema]:
        """Schemas this source knows about without a lookup, sorted by id."""
        return [self._schemas[key] for key in sorted(self._schemas)]

    def _register(self, schema: RuleSchema) -> None:
        self._schemas[schema.id.lower()] = schema

    def _mark_loaded(self) -> None:
        self._loaded = True
        self.loaded_at = datetime.now()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_id={self.source_id!r}, schemas={len(self._schemas)})"


class StaticSchemaSource(SchemaSource):
    """In-memory schemas, for embedding the engine and for tests."""

    def __init__(self, schemas: list[RuleSchema | dict[str, Any]], source_id: str = "static"):
        super().__init__(source_id)
        self._pending = list(schemas)

    async def load(self) -> None:
        for schema in self._pending:
            try:
                if not isinstance(schema, RuleSchema):
                    schema = RuleSchema.model_validate(schema)
            except ValidationError as e:
                raise SchemaSourceError(f"Invalid schema in {self.source_id}: {e}") from e
            self._register(schema)
        self._mark_loaded()
