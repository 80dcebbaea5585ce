"""
RuleSchemaRegistry - resolves module ids against several schema sources.

Sources are kept in load order. When more than one source knows the same
module id, the most recently loaded source wins, so a local homebrew file
can override a bundled world module.
"""

from __future__ import annotations

import logging

from ..exceptions import SchemaNotFound, SchemaSourceError
from .models import RuleSchema
from .sources.base import SchemaSource


logger = logging.getLogger("character-forge.rulesystems")


class RuleSchemaRegistry:
    """Unified lookup over all loaded schema sources."""

    def __init__(self) -> None:
        self._sources: dict[str, SchemaSource] = {}
        self._priority: list[str] = []
        self._cache: dict[str, RuleSchema] = {}

    @property
    def priority(self) -> list[str]:
        """Source ids, first to last (last wins)."""
        return list(self._priority)

    @property
    def sources(self) -> dict[str, SchemaSource]:
        return dict(self._sources)

    # ------------------------------------------------------------------
    # Source management
    # ------------------------------------------------------------------

    async def load_source(self, source: SchemaSource) -> None:
        """Load a source and put it on top of the priority order.

        Raises:
            SchemaSourceError: If the source fails to load
        """
        if not source.is_loaded:
            await source.load()

        if source.source_id in self._sources:
            self._priority.remove(source.source_id)
        self._sources[source.source_id] = source
        self._priority.append(source.source_id)
        self._cache.clear()
        logger.info(f"Loaded schema source: {source.source_id}")

    def unload_source(self, source_id: str) -> bool:
        if source_id not in self._sources:
            return False
        del self._sources[source_id]
        self._priority.remove(source_id)
        self._cache.clear()
        logger.info(f"Unloaded schema source: {source_id}")
        return True

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_schema(self, module_id: str) -> RuleSchema:
        """Return the schema for a module id (case-insensitive).

        Raises:
            SchemaNotFound: If no source knows the id
            SchemaSourceError: If a source that should answer fails
        """
        key = module_id.strip().lower()
        if not key:
            raise SchemaNotFound(module_id)
        if key in self._cache:
            return self._cache[key]

        for source_id in reversed(self._priority):
            schema = await self._sources[source_id].get_schema(key)
            if schema is not None:
                self._cache[key] = schema
                logger.debug(f"Resolved rule schema '{schema.id}' from {source_id}")
                return schema

        raise SchemaNotFound(module_id)

    async def find_schema(self, module_id: str) -> RuleSchema | None:
        try:
            return await self.get_schema(module_id)
        except SchemaNotFound:
            return None

    def list_schemas(self) -> list[RuleSchema]:
        """Every schema known without a remote lookup, winners only, sorted by id."""
        merged: dict[str, RuleSchema] = {}
        for source_id in self._priority:
            for schema in self._sources[source_id].list_schemas():
                merged[schema.id.lower()] = schema
        return [merged[key] for key in sorted(merged)]


async def create_default_registry(
    schema_paths: list[str] | None = None,
    schema_service_url: str | None = None,
    request_timeout: float = 10.0,
) -> RuleSchemaRegistry:
    """Registry with the bundled schemas, then local files, then the remote service."""
    from .sources.builtin import BuiltinSchemaSource
    from .sources.custom import FileSchemaSource
    from .sources.remote import RemoteSchemaSource

    registry = RuleSchemaRegistry()
    await registry.load_source(BuiltinSchemaSource())
    for path in schema_paths or []:
        try:
            await registry.load_source(FileSchemaSource(path))
        except SchemaSourceError as e:
            logger.warning(f"Could not load schemas from {path}: {e.message}")
    if schema_service_url:
        await registry.load_source(RemoteSchemaSource(schema_service_url, timeout=request_timeout))
    return registry
