"""
Character Forge MCP Server
Schema-driven character creation for interchangeable rule systems, built on FastMCP.
"""

import json
import logging
import os
from typing import Annotated, Any, Literal

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from .backend import HttpCampaignBackend
from .config import ForgeConfig
from .essences import essence_groups
from .exceptions import DraftIncomplete, ForgeError
from .generation import AnthropicTextGenerator
from .importers import read_character_file, template_filename, write_character_file
from .importers.base import ImportResult
from .rulesystems import RuleSchemaRegistry, create_default_registry
from .session import AdjustOutcome, CreationSession

logger = logging.getLogger("character-forge")

if not load_dotenv():
    logger.debug("No .env file found, using process environment only")

config = ForgeConfig.from_env()

logging.basicConfig(level=config.log_level)

mcp = FastMCP(
    name="character-forge"
)

_registry: RuleSchemaRegistry | None = None
_session: CreationSession | None = None


async def get_registry() -> RuleSchemaRegistry:
    global _registry
    if _registry is None:
        _registry = await create_default_registry(
            schema_paths=config.schema_paths,
            schema_service_url=config.schema_service_url,
            request_timeout=config.request_timeout,
        )
        logger.info(f"📚 Rule schemas ready: {', '.join(s.id for s in _registry.list_schemas())}")
    return _registry


def _build_collaborators() -> dict[str, Any]:
    collaborators: dict[str, Any] = {"config": config}
    if os.getenv("ANTHROPIC_API_KEY"):
        collaborators["generator"] = AnthropicTextGenerator(
            model=config.generation_model,
            temperature=config.generation_temperature,
        )
    if config.backend_url:
        collaborators["backend"] = HttpCampaignBackend(config.backend_url, timeout=config.request_timeout)
    return collaborators


def _active_session() -> CreationSession:
    if _session is None or not _session.is_active:
        raise ForgeError("No character creation in progress. Use 'start_character_creation' first.")
    return _session


# ----------------------------------------------------------------------
# Formatting
# ----------------------------------------------------------------------

def _format_draft(session: CreationSession) -> str:
    draft = session.draft
    schema = session.schema
    lines = [f"🧙 {draft.character_name or '(unnamed)'} - {schema.name}"]

    if schema.attributes:
        remaining = session.remaining_points
        header = "Attributes"
        if remaining is not None:
            header += f" ({remaining} of {schema.stat_point_budget} points left)"
        lines.append(f"{header}:")
        for attribute in schema.attributes:
            value = draft.attribute_values.get(attribute.id, attribute.default)
            lines.append(f"  {attribute.label}: {value} [{attribute.min}-{attribute.max}]")

    if schema.creation_fields:
        lines.append("Fields:")
        for field in schema.creation_fields:
            value = draft.field_values.get(field.id)
            marker = " *" if field.required else ""
            ai = " (AI)" if field.ai_assist_eligible else ""
            lines.append(f"  {field.label}{marker}{ai}: {value!r}")
            if field.id in session.field_errors:
                lines.append(f"    ⚠️ {session.field_errors[field.id]}")

    if schema.models_essences:
        lines.append(f"Essence selection: {draft.essence_selection_mode.value}")
        if draft.custom_essence:
            lines.append(f"  Custom: {draft.custom_essence.name}")
        elif draft.chosen_essence:
            lines.append(f"  Chosen: {draft.chosen_essence.name}")
        if draft.imported_essences:
            lines.append(f"  Imported: {', '.join(draft.imported_essences)}")

    return "\n".join(lines)


def _format_import(result: ImportResult, applied: bool) -> str:
    report = result.build_report().format()
    if result.ok and not applied:
        report += "\n\nPreview only: call again with preview_only=false to apply."
    return report


# ----------------------------------------------------------------------
# Tool logic
# ----------------------------------------------------------------------

def _list_modules_logic(registry: RuleSchemaRegistry) -> str:
    schemas = registry.list_schemas()
    if not schemas:
        return "No rule systems available."
    lines = ["Available rule systems:"]
    for schema in schemas:
        budget = f", {schema.stat_point_budget} stat points" if schema.has_budget else ""
        essences = ", essences" if schema.models_essences else ""
        lines.append(f"  - {schema.id}: {schema.name}{budget}{essences}")
    return "\n".join(lines)


def _adjust_attribute_logic(session: CreationSession, attribute_id: str, delta: int) -> str:
    outcome = session.adjust_attribute(attribute_id, delta)
    value = session.draft.attribute_values[attribute_id]
    remaining = session.remaining_points
    left = f" ({remaining} points left)" if remaining is not None else ""

    if outcome is AdjustOutcome.REJECTED_BUDGET:
        return f"Not enough points: {attribute_id} stays at {value}{left}"
    if outcome is AdjustOutcome.UNCHANGED:
        return f"{attribute_id} is already at {value}{left}"
    if outcome is AdjustOutcome.CLAMPED:
        return f"{attribute_id} set to {value} (limit reached){left}"
    return f"{attribute_id} set to {value}{left}"


def _import_character_logic(
    session: CreationSession,
    data: str | None,
    file_path: str | None,
    preview_only: bool,
) -> str:
    if file_path:
        raw_text, fmt = read_character_file(file_path)
    elif data:
        raw_text, fmt = data, "json"
    else:
        return "Error: provide either 'data' or 'file_path'"

    result = session.validate_import(raw_text, fmt)
    applied = False
    if result.ok and not preview_only:
        session.apply_import(result)
        applied = True
    return _format_import(result, applied)


def _get_template_logic(session: CreationSession, save_to: str | None) -> str:
    template = session.template()
    if not save_to:
        return template
    path = write_character_file(template, template_filename(session.schema), save_to)
    return f"📄 Template saved to {path}"


def _preview_logic(session: CreationSession) -> str:
    character = session.preview()
    text = json.dumps(character.to_payload(), indent=2, ensure_ascii=False)
    missing = session.missing_fields()
    if missing:
        text += f"\n\nStill missing: {', '.join(missing)}"
    return text


async def _finalize_logic(session: CreationSession, campaign_name: str | None) -> str:
    if session.backend is None:
        character = session.finalize()
        return json.dumps(character.to_payload(), indent=2, ensure_ascii=False)
    created = await session.submit(campaign_name)
    return f"🎉 Campaign {created.campaign_id} created!\n\n{created.initial_narrative}"


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------

@mcp.tool
async def list_modules() -> str:
    """List the rule systems characters can be created for."""
    try:
        return _list_modules_logic(await get_registry())
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
async def start_character_creation(
    module_id: Annotated[str, Field(description="Rule system id (see list_modules)")],
    character_name: Annotated[str, Field(description="Name of the new character")] = "",
) -> str:
    """Start creating a character. Replaces any creation already in progress."""
    global _session
    try:
        registry = await get_registry()
        session = await CreationSession.start(registry, module_id, character_name, **_build_collaborators())
    except ForgeError as e:
        return f"Error: {e.message}"

    if _session is not None:
        _session.abandon()
    _session = session
    return _format_draft(session)


@mcp.tool
def adjust_attribute(
    attribute_id: Annotated[str, Field(description="Attribute id, e.g. 'strength'")],
    delta: Annotated[int, Field(description="Points to add (negative to remove)")],
) -> str:
    """Raise or lower an attribute within its bounds and the stat-point budget."""
    try:
        return _adjust_attribute_logic(_active_session(), attribute_id, delta)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def set_creation_field(
    field_id: Annotated[str, Field(description="Creation field id")],
    value: Annotated[
        str | int | float | bool | list[str] | None,
        Field(description="New value; null clears the field"),
    ],
) -> str:
    """Set one of the rule system's creation fields."""
    try:
        session = _active_session()
        if field_id == "name":
            session.set_character_name(str(value or ""))
        else:
            session.set_field(field_id, value)
        return _format_draft(session)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def set_essence_mode(
    mode: Annotated[
        Literal["deferred", "chosen", "imported"],
        Field(description="deferred: pick during play; chosen: pick now; imported: use the imported essences"),
    ],
) -> str:
    """Choose how the character's essence is decided."""
    try:
        session = _active_session()
        session.set_essence_mode(mode)
        return _format_draft(session)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def choose_essence(
    name: Annotated[str | None, Field(description="Catalog essence name; omit to list the catalog")] = None,
) -> str:
    """Pick a catalog essence (requires 'chosen' mode), or list the catalog."""
    if not name:
        lines = []
        for rarity, essences in essence_groups():
            lines.append(f"{rarity}: {', '.join(e.name for e in essences)}")
        return "\n".join(lines)
    try:
        session = _active_session()
        session.choose_essence(name)
        return _format_draft(session)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def author_custom_essence(
    name: Annotated[str, Field(description="Name of the custom essence")],
    intrinsic_ability: Annotated[str, Field(description="Name of its intrinsic ability")] = "",
) -> str:
    """Create a custom essence with its intrinsic ability (requires 'chosen' mode)."""
    try:
        session = _active_session()
        session.author_custom_essence(name, intrinsic_ability)
        return _format_draft(session)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def import_character(
    data: Annotated[str | None, Field(description="Character JSON text")] = None,
    file_path: Annotated[str | None, Field(description="Path to a .json or .yaml character file")] = None,
    preview_only: Annotated[bool, Field(description="Validate and report without applying")] = False,
) -> str:
    """Import character data into the current creation."""
    try:
        return _import_character_logic(_active_session(), data, file_path, preview_only)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def get_character_template(
    save_to: Annotated[str | None, Field(description="Directory to save the template in")] = None,
) -> str:
    """Get a blank character template for the current rule system."""
    try:
        return _get_template_logic(_active_session(), save_to)
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
async def generate_field_text(
    field_id: Annotated[str, Field(description="Text field to draft")],
    guidance: Annotated[str, Field(description="Optional direction for the writer")] = "",
) -> str:
    """Draft a text field with the AI writing assistant."""
    try:
        session = _active_session()
        result = await session.generate_field(field_id, guidance)
    except ForgeError as e:
        return f"Error: {e.message}"
    if not result.success:
        return f"⚠️ {field_id} unchanged: {result.error}"
    return f"✍️ {field_id}:\n{result.text}"


@mcp.tool
def preview_character() -> str:
    """Show the character record as it would be created right now."""
    try:
        return _preview_logic(_active_session())
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
async def finalize_character(
    campaign_name: Annotated[str | None, Field(description="Name for the new campaign")] = None,
) -> str:
    """Finish the character and start the campaign."""
    try:
        return await _finalize_logic(_active_session(), campaign_name)
    except DraftIncomplete as e:
        return f"Error: {e.message}. Fill them in and try again."
    except ForgeError as e:
        return f"Error: {e.message}"


@mcp.tool
def abandon_character_creation() -> str:
    """Discard the character currently being created."""
    global _session
    if _session is None or not _session.is_active:
        return "No character creation in progress."
    _session.abandon()
    _session = None
    return "Character creation abandoned."


def main() -> None:
    """Main entry point for the Character Forge MCP server."""
    logger.info("🎲 Character Forge server starting")
    mcp.run()


if __name__ == "__main__":
    main()
