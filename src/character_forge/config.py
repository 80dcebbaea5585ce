"""
Configuration model for the character creation engine.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .essences import RANKS, STARTING_RANK


ENV_PREFIX = "FORGE_"


class ForgeConfig(BaseModel):
    """Settings for character creation, schema loading and the external collaborators."""

    # Starting values
    starting_level: int = Field(
        default=1,
        ge=1,
        le=20,
        description="Level every new character starts at"
    )
    starting_hp: int = Field(
        default=100,
        ge=1,
        description="Base hit points before any rule-system adjustment"
    )
    starting_rank: str = Field(
        default=STARTING_RANK,
        description="Rank of new characters in essence-based rule systems"
    )

    # Schema sources
    schema_paths: list[str] = Field(
        default_factory=list,
        description="Local JSON/YAML schema files or directories, loaded after the bundled schemas"
    )
    schema_service_url: str | None = Field(
        default=None,
        description="Base URL of a remote world-configuration service"
    )

    # Campaign backend
    backend_url: str | None = Field(
        default=None,
        description="Base URL of the campaign backend that receives finished characters"
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Seconds before an HTTP request to a collaborator times out"
    )

    # Text generation
    generation_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Model used to draft creation field text"
    )
    generation_max_length: int = Field(
        default=150,
        ge=10,
        le=2000,
        description="Maximum length, in words, of generated field text"
    )
    generation_temperature: float = Field(
        default=0.8,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for generated field text"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level for the server process"
    )

    @field_validator("starting_rank")
    @classmethod
    def validate_starting_rank(cls, v: str) -> str:
        for rank in RANKS:
            if rank.lower() == v.strip().lower():
                return rank
        raise ValueError(f"starting_rank must be one of: {', '.join(RANKS)}")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("schema_paths", mode="before")
    @classmethod
    def validate_schema_paths(cls, v: Any) -> Any:
        # Environment variables carry a path list separated by os.pathsep
        if isinstance(v, str):
            return [p for p in v.split(os.pathsep) if p.strip()]
        return v

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ForgeConfig":
        """Build a config from ``FORGE_*`` environment variables; unset ones keep defaults."""
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)

    @classmethod
    def from_file(cls, path: str | Path) -> "ForgeConfig":
        """Load a YAML config file."""
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.model_validate(data)
