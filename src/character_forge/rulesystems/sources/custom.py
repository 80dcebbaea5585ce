"""
Rule-schema source for local JSON/YAML files.

Lets a game master drop homebrew world modules next to the bundled ones.
A path may point at a single file or at a directory of files. A document
holds one schema, a list of schemas, or ``{"schemas": [...]}``:

```yaml
id: frontier
name: Frontier
statPointBudget: 12
attributes:
  - {id: grit, label: Grit, min: 1, max: 20, default: 10}
creationFields:
  - {id: backstory, label: Backstory, kind: textarea, aiAssistEligible: true}
```
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ...exceptions import SchemaSourceError
from ..models import RuleSchema
from .base import SchemaSource


logger = logging.getLogger("character-forge.rulesystems")

SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def read_schema_document(path: Path) -> Any:
    """Read and parse one JSON or YAML file."""
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise SchemaSourceError(
            f"Unsupported file format: {suffix}. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    try:
        raw_content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaSourceError(f"Failed to read file: {e}") from e

    try:
        if suffix == ".json":
            return json.loads(raw_content)
        return yaml.safe_load(raw_content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaSourceError(f"Failed to parse {path.name}: {e}") from e


def parse_schema_document(data: Any, origin: str) -> list[RuleSchema]:
    """Validate every schema in a parsed document, skipping invalid entries."""
    if isinstance(data, dict) and "schemas" in data:
        entries = data["schemas"]
    elif isinstance(data, dict):
        entries = [data]
    else:
        entries = data

    if not isinstance(entries, list):
        raise SchemaSourceError(f"{origin}: expected a schema object or a list of schemas")

    schemas: list[RuleSchema] = []
    for entry in entries:
        try:
            schemas.append(RuleSchema.model_validate(entry))
        except ValidationError as e:
            label = entry.get("id", "?") if isinstance(entry, dict) else "?"
            logger.warning(f"Invalid rule schema '{label}' in {origin}: {e}")
    return schemas


class FileSchemaSource(SchemaSource):
    """Schemas from a JSON/YAML file or a directory of them."""

    def __init__(self, path: Path | str, source_id: str | None = None):
        self.path = Path(path)
        if source_id is None:
            # "my_worlds.yaml" -> "file-my-worlds"
            source_id = f"file-{self.path.stem.replace('_', '-').lower()}"
        super().__init__(source_id)

    async def load(self) -> None:
        if not self.path.exists():
            raise SchemaSourceError(f"Schema path not found: {self.path}")

        if self.path.is_dir():
            for file_path in sorted(self.path.iterdir()):
                if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                    continue
                try:
                    self._load_file(file_path)
                except SchemaSourceError as e:
                    logger.warning(f"Skipping schema file {file_path}: {e.message}")
        else:
            self._load_file(self.path)

        self._mark_loaded()
        logger.info(f"Loaded {len(self._schemas)} rule schema(s) from {self.path}")

    def _load_file(self, file_path: Path) -> None:
        for schema in parse_schema_document(read_schema_document(file_path), str(file_path)):
            if schema.id.lower() in self._schemas:
                logger.warning(f"Schema '{schema.id}' redefined in {file_path}")
            self._register(schema)
