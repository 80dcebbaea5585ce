"""
Unit tests for ForgeConfig.

Tests cover:
- Default configuration values
- Field validation (starting rank, log level, numeric ranges)
- Loading from FORGE_* environment variables
- Loading from a YAML file
"""

import os

import pytest
from pydantic import ValidationError

from character_forge.config import ForgeConfig


class TestForgeConfigDefaults:
    """Tests for ForgeConfig default values."""

    def test_starting_values(self) -> None:
        """New characters start at level 1 with 100 hp and the Iron rank."""
        config = ForgeConfig()
        assert config.starting_level == 1
        assert config.starting_hp == 100
        assert config.starting_rank == "Iron"

    def test_no_collaborators_by_default(self) -> None:
        config = ForgeConfig()
        assert config.schema_paths == []
        assert config.schema_service_url is None
        assert config.backend_url is None

    def test_generation_defaults(self) -> None:
        config = ForgeConfig()
        assert config.generation_max_length == 150
        assert config.generation_temperature == 0.8
        assert config.log_level == "INFO"


class TestForgeConfigValidation:
    """Tests for ForgeConfig field validation."""

    def test_rank_is_canonicalized(self) -> None:
        assert ForgeConfig(starting_rank=" silver ").starting_rank == "Silver"

    def test_unknown_rank(self) -> None:
        with pytest.raises(ValidationError, match="starting_rank must be one of"):
            ForgeConfig(starting_rank="Platinum")

    def test_log_level_upper_cased(self) -> None:
        assert ForgeConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            ForgeConfig(log_level="chatty")

    @pytest.mark.parametrize("field,value", [
        ("starting_level", 0),
        ("starting_level", 21),
        ("starting_hp", 0),
        ("request_timeout", 0),
        ("generation_temperature", 2.5),
        ("generation_max_length", 5),
    ])
    def test_out_of_range(self, field, value) -> None:
        with pytest.raises(ValidationError):
            ForgeConfig(**{field: value})


class TestForgeConfigSources:
    """Tests for building a config from the environment or a file."""

    def test_from_env(self) -> None:
        config = ForgeConfig.from_env({
            "FORGE_STARTING_LEVEL": "3",
            "FORGE_BACKEND_URL": "https://play.example.com/api",
            "FORGE_SCHEMA_PATHS": os.pathsep.join(["/srv/worlds", "", "/home/gm/homebrew.yaml"]),
            "FORGE_LOG_LEVEL": "warning",
            "FORGE_SCHEMA_SERVICE_URL": "",
            "UNRELATED": "x",
        })
        assert config.starting_level == 3
        assert config.backend_url == "https://play.example.com/api"
        assert config.schema_paths == ["/srv/worlds", "/home/gm/homebrew.yaml"]
        assert config.log_level == "WARNING"
        assert config.schema_service_url is None

    def test_from_env_invalid_value(self) -> None:
        with pytest.raises(ValidationError):
            ForgeConfig.from_env({"FORGE_REQUEST_TIMEOUT": "soon"})

    def test_from_file(self, tmp_path) -> None:
        path = tmp_path / "forge.yaml"
        path.write_text("starting_hp: 80\nschema_paths:\n  - worlds\n", encoding="utf-8")
        config = ForgeConfig.from_file(path)
        assert config.starting_hp == 80
        assert config.schema_paths == ["worlds"]

    def test_from_empty_file(self, tmp_path) -> None:
        path = tmp_path / "forge.yaml"
        path.write_text("", encoding="utf-8")
        assert ForgeConfig.from_file(path) == ForgeConfig()

    def test_from_file_needs_mapping(self, tmp_path) -> None:
        path = tmp_path / "forge.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must contain a mapping"):
            ForgeConfig.from_file(path)
