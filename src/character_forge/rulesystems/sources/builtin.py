"""
Rule schemas bundled with the package (classic, outworlder, tactical).
"""

from __future__ import annotations

import logging
from pathlib import Path

from .base import SchemaSource
from .custom import parse_schema_document, read_schema_document


logger = logging.getLogger("character-forge.rulesystems")

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class BuiltinSchemaSource(SchemaSource):
    """The world modules that ship with the engine."""

    def __init__(self, data_dir: Path | None = None):
        super().__init__("builtin")
        self.data_dir = data_dir or DATA_DIR

    async def load(self) -> None:
        for file_path in sorted(self.data_dir.glob("*.yaml")):
            for schema in parse_schema_document(read_schema_document(file_path), file_path.name):
                self._register(schema)
        self._mark_loaded()
        logger.debug(f"Bundled rule schemas: {', '.join(s.id for s in self.list_schemas())}")
