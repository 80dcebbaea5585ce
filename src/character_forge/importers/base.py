"""
Result and report models for the character import pipeline.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from ..models import AbilityRecord


class ImportedField(BaseModel):
    """A field that was accepted from the import."""

    name: str = Field(description="Field name")
    summary: str = Field(default="", description="Brief summary of the imported value")


class ImportWarning(BaseModel):
    """A warning generated during import."""

    field: str = Field(description="Field that triggered the warning")
    message: str = Field(description="Human-readable warning message")
    suggestion: str = Field(default="", description="Actionable suggestion to resolve the warning")


class NotImported(BaseModel):
    """A field that could not be imported."""

    field: str = Field(description="Field name that was not imported")
    reason: str = Field(description="Reason why the field was not imported")


class ImportReport(BaseModel):
    """Structured import report with status, imported fields, warnings, and suggestions."""

    status: str = Field(description='Import status: "success", "success_with_warnings", or "failed"')
    character_name: str = Field(description="Name of the imported character")
    module_name: str = Field(default="", description="Rule system the import was validated against")
    imported_fields: list[ImportedField] = Field(
        default_factory=list,
        description="Fields accepted from the import with value summaries",
    )
    warnings: list[ImportWarning] = Field(
        default_factory=list,
        description="Non-fatal issues encountered during import",
    )
    not_imported: list[NotImported] = Field(
        default_factory=list,
        description="Fields that were rejected or ignored, with reasons",
    )
    suggestions: list[str] = Field(
        default_factory=list,
        description="Actionable advice for fixing the import",
    )

    def format(self) -> str:
        """Format the report as a readable text block for a tool response."""
        lines: list[str] = []

        header = f"Character Import Report - {self.character_name or 'unnamed'}"
        if self.module_name:
            header += f" ({self.module_name})"
        lines.append(header)
        lines.append(f"Status: {self.status.upper().replace('_', ' ')}")
        lines.append("")

        if self.imported_fields:
            lines.append(f"Imported ({len(self.imported_fields)} fields):")
            categories: dict[str, list[ImportedField]] = {}
            for field in self.imported_fields:
                categories.setdefault(_categorize_field(field.name), []).append(field)
            for cat_name, fields in categories.items():
                summaries = [f.summary if f.summary else f.name for f in fields]
                lines.append(f"  {cat_name}: {', '.join(summaries)}")
            lines.append("")

        if self.warnings:
            lines.append(f"Warnings ({len(self.warnings)}):")
            for w in self.warnings:
                line = f"  - {w.message}"
                if w.suggestion:
                    line += f" ({w.suggestion})"
                lines.append(line)
            lines.append("")

        if self.not_imported:
            lines.append(f"Not Imported ({len(self.not_imported)}):")
            for ni in self.not_imported:
                lines.append(f"  - {ni.field}: {ni.reason}")
            lines.append("")

        if self.suggestions:
            lines.append("Suggestions:")
            for s in self.suggestions:
                lines.append(f"  - {s}")
            lines.append("")

        return "\n".join(lines).rstrip()


def _categorize_field(field_name: str) -> str:
    if field_name == "name":
        return "Identity"
    if field_name == "attributes":
        return "Attributes"
    if field_name in {"essences", "abilities", "rank"}:
        return "Essences"
    return "Fields"


class ImportPatch(BaseModel):
    """A validated, not yet applied change to a draft.

    ``attribute_values`` always covers every schema attribute; the other
    members are only set for keys present in the payload.
    """

    character_name: str | None = None
    attribute_values: dict[str, int] = Field(default_factory=dict)
    field_values: dict[str, Any] = Field(default_factory=dict)
    essences: list[str] | None = None
    abilities: list[AbilityRecord] | None = None
    rank: str | None = None


class ImportResult(BaseModel):
    """Outcome of validating an import payload against a rule schema."""

    ok: bool
    patch: ImportPatch | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    mapped_fields: list[str] = Field(
        default_factory=list,
        description="Payload keys that were accepted",
    )
    ignored_fields: list[str] = Field(
        default_factory=list,
        description="Payload keys the rule system does not use",
    )
    module_name: str = ""

    @classmethod
    def failure(cls, errors: list[str], module_name: str = "") -> "ImportResult":
        return cls(ok=False, errors=list(errors), module_name=module_name)

    def build_report(self) -> ImportReport:
        """Build a structured ImportReport from this result."""
        patch = self.patch

        imported: list[ImportedField] = []
        if patch is not None:
            for field_name in self.mapped_fields:
                imported.append(ImportedField(name=field_name, summary=_summarize_field(field_name, patch)))

        structured_warnings = [_parse_warning(w) for w in self.warnings]

        not_imported = [NotImported(field="payload", reason=e) for e in self.errors]
        for field_name in self.ignored_fields:
            not_imported.append(NotImported(field=field_name, reason="Not used by this rule system"))

        if not self.ok:
            status = "failed"
        elif self.warnings or self.ignored_fields:
            status = "success_with_warnings"
        else:
            status = "success"

        return ImportReport(
            status=status,
            character_name=(patch.character_name or "") if patch else "",
            module_name=self.module_name,
            imported_fields=imported,
            warnings=structured_warnings,
            not_imported=not_imported,
            suggestions=_generate_suggestions(self),
        )


def _summarize_field(field_name: str, patch: ImportPatch) -> str:
    if field_name == "name":
        return patch.character_name or ""
    if field_name == "attributes":
        return ", ".join(f"{k} {v}" for k, v in patch.attribute_values.items())
    if field_name == "essences":
        return ", ".join(patch.essences or []) or "none"
    if field_name == "abilities":
        return f"{len(patch.abilities or [])} abilities"
    if field_name == "rank":
        return patch.rank or ""
    value = patch.field_values.get(field_name)
    if isinstance(value, str) and len(value) > 40:
        value = value[:37] + "..."
    return f"{field_name}={value}"


def _parse_warning(warning_text: str) -> ImportWarning:
    lower = warning_text.lower()
    field = "general"
    suggestion = ""

    if "essence" in lower:
        field = "essences"
        suggestion = "Choose a rule system that uses essences to keep them"
    elif "attribute" in lower or "stat" in lower:
        field = "attributes"
        suggestion = "Check attribute ids against the character template"
    elif "ability" in lower or "abilities" in lower:
        field = "abilities"
    elif "rank" in lower:
        field = "rank"

    return ImportWarning(field=field, message=warning_text, suggestion=suggestion)


def _generate_suggestions(result: ImportResult) -> list[str]:
    suggestions: list[str] = []
    joined = " ".join(result.errors).lower()

    if "invalid json" in joined or "invalid yaml" in joined:
        suggestions.append("Fix the file syntax, or start again from 'get_character_template'")
    if "budget" in joined:
        suggestions.append("Lower some attributes; raises above the defaults cost one point each")
    if "essences allowed" in joined:
        suggestions.append("Keep at most four essences")
    if result.ok and result.patch is not None and not result.patch.character_name:
        suggestions.append("No name in the import; the name entered at creation is kept")

    return suggestions
