"""
Creation session: one player building one character for one rule system.

The session owns the draft and is the only thing that replaces it. Two
operations wait on collaborators (AI text generation and file import). If
the session ends while one of them is in flight, its result is dropped when
it arrives and the draft is left alone.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from . import budget, draft as drafts, essence_resolver
from .assembler import CharacterAssembler
from .backend import CampaignBackend, CampaignCreated, CampaignRequest
from .config import ForgeConfig
from .draft import CharacterDraft, initialize_draft, missing_required_fields
from .exceptions import (
    DraftIncomplete,
    EssenceSelectionError,
    FieldValidationError,
    GenerationFailure,
    ImportParseError,
    SessionClosed,
    SubmissionFailure,
)
from .generation import GenerationResult, TextGenerator, build_field_prompt
from .importers import ImportResult, apply_import, generate_template, template_data, template_filename, validate_import
from .models import CanonicalCharacter, EssenceSelectionMode
from .rulesystems.manager import RuleSchemaRegistry
from .rulesystems.models import RuleSchema


logger = logging.getLogger("character-forge.session")

FilePicker = Callable[[], Awaitable[str | None]]
FileExporter = Callable[[dict[str, Any], str], Awaitable[Any]]


class SessionState(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class AdjustOutcome(str, Enum):
    """What an attribute adjustment did, for UI feedback."""
    APPLIED = "applied"
    CLAMPED = "clamped"                  # moved, but less than asked because of a bound
    REJECTED_BUDGET = "rejected_budget"  # over budget; nothing changed
    UNCHANGED = "unchanged"              # already at the bound, or a zero delta


class CreationSession:
    """State and operations of one character creation session."""

    def __init__(
        self,
        schema: RuleSchema,
        character_name: str = "",
        *,
        config: ForgeConfig | None = None,
        generator: TextGenerator | None = None,
        backend: CampaignBackend | None = None,
        module_id: str | None = None,
    ):
        self.schema = schema
        self.module_id = module_id or schema.id
        self.config = config or ForgeConfig()
        self.generator = generator
        self.backend = backend
        self.assembler = CharacterAssembler(self.config)
        self.state = SessionState.ACTIVE
        self.field_errors: dict[str, str] = {}
        self.result: CampaignCreated | None = None
        self._draft: CharacterDraft | None = initialize_draft(schema, character_name)
        logger.info(f"Character creation started for {schema.name} ({self.module_id})")

    @classmethod
    async def start(
        cls,
        registry: RuleSchemaRegistry,
        module_id: str,
        character_name: str = "",
        **kwargs: Any,
    ) -> "CreationSession":
        """Resolve the schema for ``module_id`` and open a session.

        Raises:
            SchemaNotFound: If no schema source knows the module id
        """
        schema = await registry.get_schema(module_id)
        return cls(schema, character_name, module_id=module_id, **kwargs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def draft(self) -> CharacterDraft:
        self._ensure_active()
        return self._draft

    @property
    def spend(self) -> int:
        return budget.attribute_spend(self.draft.attribute_values, self.schema)

    @property
    def remaining_points(self) -> int | None:
        return budget.remaining_points(self.draft.attribute_values, self.schema)

    def _ensure_active(self) -> None:
        if not self.is_active:
            raise SessionClosed(f"The creation session is {self.state.value}")

    def _ensure_essences(self) -> None:
        if not self.schema.models_essences:
            raise EssenceSelectionError(f"{self.schema.name} does not use essences")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_character_name(self, name: str) -> None:
        self._draft = drafts.set_character_name(self.draft, name)

    def adjust_attribute(self, attribute_id: str, delta: int) -> AdjustOutcome:
        """Adjust an attribute through the budget allocator.

        Raises:
            UnknownAttribute: If the schema does not declare the attribute
        """
        current = self.draft
        updated = budget.adjust_attribute(current, self.schema, attribute_id, delta)
        attribute = self.schema.attribute(attribute_id)
        before = current.attribute_values.get(attribute_id, attribute.default)

        if updated is current:
            candidate = budget.clamp(before + delta, attribute.min, attribute.max)
            return AdjustOutcome.UNCHANGED if candidate == before else AdjustOutcome.REJECTED_BUDGET

        self._draft = updated
        after = updated.attribute_values[attribute_id]
        return AdjustOutcome.APPLIED if after == before + delta else AdjustOutcome.CLAMPED

    def set_field(self, field_id: str, value: Any) -> None:
        """Set a creation field.

        Raises:
            FieldValidationError: If the field is unknown or the value invalid
        """
        self._draft = drafts.set_field_value(self.draft, self.schema, field_id, value)
        self.field_errors.pop(field_id, None)

    def set_essence_mode(self, mode: EssenceSelectionMode | str) -> None:
        self._ensure_essences()
        self._draft = essence_resolver.set_essence_mode(self.draft, mode)

    def choose_essence(self, name: str) -> None:
        self._ensure_essences()
        self._draft = essence_resolver.choose_catalog_essence(self.draft, name)

    def author_custom_essence(self, name: str, intrinsic_ability: str = "") -> None:
        self._ensure_essences()
        self._draft = essence_resolver.author_custom_essence(self.draft, name, intrinsic_ability)

    # ------------------------------------------------------------------
    # Import and templates
    # ------------------------------------------------------------------

    def validate_import(self, raw_text: str, fmt: str = "json") -> ImportResult:
        """Validate an import without touching the draft."""
        self._ensure_active()
        return validate_import(raw_text, self.schema, fmt=fmt)

    def apply_import(self, result: ImportResult) -> None:
        """Commit a validated import.

        Raises:
            ImportParseError: If the import did not validate
        """
        if not result.ok or result.patch is None:
            raise ImportParseError(result.errors or ["Import did not validate"])
        self._draft = apply_import(self.draft, result.patch)
        logger.info(f"Import applied ({', '.join(result.mapped_fields) or 'attributes only'})")

    def import_text(self, raw_text: str, fmt: str = "json") -> ImportResult:
        """Validate and, when valid, apply an import in one step."""
        result = self.validate_import(raw_text, fmt)
        if result.ok:
            self.apply_import(result)
        return result

    async def import_file(self, picker: FilePicker, fmt: str = "json") -> ImportResult | None:
        """Pick, validate and apply a character file.

        Returns None when the pick is cancelled or the session ended while
        the picker was open.
        """
        self._ensure_active()
        raw_text = await picker()
        if raw_text is None:
            return None
        if not self.is_active:
            logger.debug("Discarding file import: session ended while picking")
            return None
        return self.import_text(raw_text, fmt)

    def template(self) -> str:
        return generate_template(self.schema)

    async def export_template(self, exporter: FileExporter) -> str:
        """Hand the blank template to the file-export collaborator; returns the file name."""
        filename = template_filename(self.schema)
        await exporter(template_data(self.schema), filename)
        return filename

    # ------------------------------------------------------------------
    # AI text generation
    # ------------------------------------------------------------------

    async def generate_field(self, field_id: str, guidance: str = "") -> GenerationResult:
        """Draft a text field with the AI collaborator.

        On failure the field keeps its value and the error is kept in
        ``field_errors``.

        Raises:
            FieldValidationError: If the field is unknown
            GenerationFailure: If the field is not AI-assisted or no generator is configured
        """
        self._ensure_active()
        field = self.schema.field(field_id)
        if field is None:
            raise FieldValidationError(field_id, f"unknown field for {self.schema.name}")
        if self.generator is None:
            raise GenerationFailure(field_id, "no text generator is configured")

        max_length = self.config.generation_max_length
        prompt = build_field_prompt(field, self.draft.character_name, self.schema.name, guidance, max_length)
        result = await self.generator.generate(prompt, max_length)

        if not self.is_active:
            logger.debug(f"Discarding generated text for '{field_id}': session ended")
            return result

        if not result.success:
            self.field_errors[field_id] = result.error or "Generation failed"
            logger.warning(f"Generation failed for '{field_id}': {self.field_errors[field_id]}")
            return result

        text = result.text
        limit = field.validation.max_length if field.validation else None
        if limit is not None and len(text) > limit:
            text = text[:limit].rstrip()
        try:
            self.set_field(field_id, text)
        except FieldValidationError as e:
            self.field_errors[field_id] = e.message
            return GenerationResult.failed(e.message)
        return GenerationResult(success=True, text=text)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def missing_fields(self) -> list[str]:
        missing = missing_required_fields(self.draft, self.schema)
        if not self.draft.character_name:
            missing.insert(0, "name")
        return missing

    def preview(self) -> CanonicalCharacter:
        """Assemble the character as it would be finalized now."""
        return self.assembler.assemble(self.schema, self.draft, self.module_id)

    def finalize(self) -> CanonicalCharacter:
        """Assemble the final character.

        Raises:
            DraftIncomplete: If the name or required fields are missing
        """
        missing = self.missing_fields()
        if missing:
            raise DraftIncomplete(missing)
        return self.preview()

    async def submit(self, campaign_name: str | None = None) -> CampaignCreated:
        """Finalize and hand the character to the campaign backend.

        The session completes only on success; on SubmissionFailure the
        draft stays as it was so the player can retry. If the session is
        abandoned while the backend call is in flight it stays abandoned and
        the created campaign is returned without being recorded.

        Raises:
            DraftIncomplete: If the name or required fields are missing
            SubmissionFailure: If there is no backend or it rejects the character
        """
        character = self.finalize()
        if self.backend is None:
            raise SubmissionFailure("No campaign backend is configured")

        request = CampaignRequest(
            name=(campaign_name or f"{character.name}'s Adventure").strip(),
            module_id=self.module_id,
            character_name=character.name,
            initial_character=character,
        )
        try:
            created = await self.backend.create_campaign(request)
        except SubmissionFailure as e:
            logger.warning(f"Submission failed, draft kept: {e.message}")
            raise

        if not self.is_active:
            logger.warning(
                f"Session ended while submitting; campaign {created.campaign_id} not attached to it"
            )
            return created

        self.result = created
        self.state = SessionState.COMPLETED
        self._draft = None
        logger.info(f"Character '{character.name}' submitted as campaign {created.campaign_id}")
        return created

    def abandon(self) -> None:
        """End the session without a character. In-flight results are dropped."""
        if self.is_active:
            self.state = SessionState.ABANDONED
            self._draft = None
            logger.info(f"Character creation abandoned for {self.schema.name}")
