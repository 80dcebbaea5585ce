"""
Rule-schema source backed by a remote world-configuration service.

Schemas are fetched lazily with ``GET {base_url}/{module_id}`` and kept for
the lifetime of the source.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ...exceptions import SchemaSourceError
from ..models import RuleSchema
from .base import SchemaSource


logger = logging.getLogger("character-forge.rulesystems")

DEFAULT_TIMEOUT = 10.0


class RemoteSchemaSource(SchemaSource):
    """Schemas served over HTTP. A 404 means "not mine", not an error."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        source_id: str = "remote",
    ):
        super().__init__(source_id)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def load(self) -> None:
        self._mark_loaded()

    async def get_schema(self, module_id: str) -> RuleSchema | None:
        cached = await super().get_schema(module_id)
        if cached is not None:
            return cached

        url = f"{self.base_url}/{module_id.strip()}"
        logger.debug(f"Fetching rule schema from {url}")
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url)

            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()

        except httpx.TimeoutException:
            raise SchemaSourceError(
                f"Timed out fetching rule schema '{module_id}'",
                {"url": url},
            ) from None
        except httpx.HTTPStatusError as e:
            raise SchemaSourceError(
                f"Schema service returned HTTP {e.response.status_code} for '{module_id}'",
                {"url": url, "status_code": e.response.status_code},
            ) from None
        except httpx.RequestError as e:
            raise SchemaSourceError(
                f"Could not reach schema service: {e}",
                {"url": url},
            ) from None
        except ValueError as e:
            raise SchemaSourceError(f"Schema service returned invalid JSON: {e}", {"url": url}) from None

        try:
            schema = RuleSchema.model_validate(data)
        except ValidationError as e:
            raise SchemaSourceError(f"Schema service returned an invalid schema for '{module_id}': {e}") from e

        self._register(schema)
        logger.info(f"Fetched rule schema '{schema.id}' from {self.base_url}")
        return schema
