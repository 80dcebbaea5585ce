"""
Unit tests for the MCP tool logic in main.py.

Tests cover:
- Rule system listing
- Attribute adjustment feedback
- Character import from text and files, with and without preview
- Template output and saving
- Preview and finalize output
"""

import json

import pytest

from character_forge.backend import CampaignCreated
from character_forge.main import (
    _adjust_attribute_logic,
    _finalize_logic,
    _format_draft,
    _get_template_logic,
    _import_character_logic,
    _list_modules_logic,
    _preview_logic,
)
from character_forge.rulesystems import RuleSchemaRegistry, StaticSchemaSource
from character_forge.session import CreationSession


class StubBackend:
    async def create_campaign(self, request):
        return CampaignCreated(campaign_id="camp-7", initial_narrative="The road is long.")


class TestListModules:

    @pytest.mark.anyio
    async def test_lists_schemas(self, point_buy_schema, essence_schema):
        registry = RuleSchemaRegistry()
        await registry.load_source(StaticSchemaSource([point_buy_schema, essence_schema]))
        result = _list_modules_logic(registry)
        assert result.splitlines() == [
            "Available rule systems:",
            "  - outworlder-test: Outworlder Test, 10 stat points, essences",
            "  - pointbuy: Point Buy, 10 stat points",
        ]

    def test_empty_registry(self) -> None:
        assert _list_modules_logic(RuleSchemaRegistry()) == "No rule systems available."


class TestAdjustAttributeLogic:
    """Each allocator outcome gets its own message."""

    def test_messages(self, point_buy_schema) -> None:
        session = CreationSession(point_buy_schema)
        assert _adjust_attribute_logic(session, "a", 5) == "a set to 15 (5 points left)"
        assert _adjust_attribute_logic(session, "b", 6) == "Not enough points: b stays at 10 (5 points left)"
        assert _adjust_attribute_logic(session, "b", -10) == "b set to 5 (limit reached) (5 points left)"
        assert _adjust_attribute_logic(session, "b", -1) == "b is already at 5 (5 points left)"


class TestImportCharacterLogic:

    def test_preview_does_not_apply(self, point_buy_schema) -> None:
        session = CreationSession(point_buy_schema)
        result = _import_character_logic(session, json.dumps({"name": "Ada"}), None, preview_only=True)
        assert "Preview only" in result
        assert session.draft.character_name == ""

    def test_apply_from_text(self, point_buy_schema) -> None:
        session = CreationSession(point_buy_schema)
        result = _import_character_logic(session, json.dumps({"name": "Ada"}), None, preview_only=False)
        assert result.startswith("Character Import Report - Ada (Point Buy)")
        assert "Preview only" not in result
        assert session.draft.character_name == "Ada"

    def test_apply_from_yaml_file(self, point_buy_schema, tmp_path) -> None:
        path = tmp_path / "ada.yaml"
        path.write_text("name: Ada\nattributes:\n  b: 13\n", encoding="utf-8")
        session = CreationSession(point_buy_schema)
        _import_character_logic(session, None, str(path), preview_only=False)
        assert session.draft.attribute_values == {"a": 10, "b": 13}

    def test_failed_import_reported(self, point_buy_schema) -> None:
        session = CreationSession(point_buy_schema)
        result = _import_character_logic(session, "{oops", None, preview_only=False)
        assert "Status: FAILED" in result
        assert "Invalid JSON format" in result

    def test_needs_input(self, point_buy_schema) -> None:
        session = CreationSession(point_buy_schema)
        assert _import_character_logic(session, None, None, False) == "Error: provide either 'data' or 'file_path'"


class TestTemplateLogic:

    def test_returns_template(self, essence_schema) -> None:
        session = CreationSession(essence_schema)
        data = json.loads(_get_template_logic(session, None))
        assert data["attributes"] == {"power": 10, "spirit": 10}

    def test_saves_template(self, essence_schema, tmp_path) -> None:
        session = CreationSession(essence_schema)
        result = _get_template_logic(session, str(tmp_path))
        path = tmp_path / "outworlder-test_character_template.json"
        assert str(path) in result
        assert json.loads(path.read_text(encoding="utf-8"))["rank"] == "Iron"


class TestPreviewAndFinalize:

    def test_format_draft(self, essence_schema) -> None:
        session = CreationSession(essence_schema, "Ada")
        session.adjust_attribute("power", 2)
        text = _format_draft(session)
        assert "Ada - Outworlder Test" in text
        assert "Attributes (8 of 10 points left):" in text
        assert "  Power: 12 [5-20]" in text
        assert "Essence selection: deferred" in text

    def test_preview_lists_missing(self, point_buy_schema) -> None:
        session = CreationSession(point_buy_schema)
        text = _preview_logic(session)
        assert text.endswith("Still missing: name")
        assert '"moduleId": "pointbuy"' in text

    @pytest.mark.anyio
    async def test_finalize_without_backend_returns_record(self, point_buy_schema):
        session = CreationSession(point_buy_schema, "Ada")
        record = json.loads(await _finalize_logic(session, None))
        assert record["name"] == "Ada"
        assert record["attributes"] == {"a": 10, "b": 10}
        assert session.is_active

    @pytest.mark.anyio
    async def test_finalize_with_backend(self, point_buy_schema):
        session = CreationSession(point_buy_schema, "Ada", backend=StubBackend())
        result = await _finalize_logic(session, "Night Run")
        assert "Campaign camp-7 created!" in result
        assert result.endswith("The road is long.")
        assert not session.is_active
