"""
Exception hierarchy for the character creation engine.

Every error raised by the engine derives from ForgeError so callers can
catch the whole family at a single seam, while the subclasses map onto the
recovery strategies of the creation flow (fatal to the current step,
field-scoped, or retryable).
"""

from __future__ import annotations

from typing import Any


class ForgeError(Exception):
    """Base exception for all character creation errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary of additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SchemaNotFound(ForgeError):
    """No schema source recognizes the requested module id.

    The creation session cannot start without a rule schema.
    """

    def __init__(self, module_id: str):
        super().__init__(
            f"Rule system '{module_id}' not found. "
            "Check the module id or load a schema file for it.",
            {"module_id": module_id},
        )
        self.module_id = module_id


class SchemaSourceError(ForgeError):
    """A schema source failed to load or answer (bad file, unreachable service)."""
    pass


class ImportParseError(ForgeError):
    """An import payload was malformed or incompatible with the rule schema.

    Attributes:
        errors: Field-level error messages
    """

    def __init__(self, errors: list[str]):
        summary = errors[0] if len(errors) == 1 else f"{len(errors)} import errors"
        super().__init__(summary, {"errors": list(errors)})
        self.errors = list(errors)


class CharacterFileError(ForgeError):
    """A character file could not be read or written."""
    pass


class FieldValidationError(ForgeError, ValueError):
    """A creation field value does not satisfy the field's kind or validation rules."""

    def __init__(self, field_id: str, message: str):
        super().__init__(f"{field_id}: {message}", {"field": field_id})
        self.field_id = field_id


class UnknownAttribute(ForgeError, KeyError):
    """The attribute id is not declared by the rule schema."""

    def __init__(self, attribute_id: str):
        super().__init__(f"Unknown attribute: '{attribute_id}'", {"attribute": attribute_id})
        self.attribute_id = attribute_id

    def __str__(self) -> str:
        return self.message


class EssenceSelectionError(ForgeError, ValueError):
    """An essence operation is not valid in the current selection state."""
    pass


class GenerationFailure(ForgeError):
    """The AI text-generation collaborator failed or returned nothing usable.

    Field-scoped: the field keeps its previous value.
    """

    def __init__(self, field_id: str, reason: str):
        super().__init__(f"Could not generate '{field_id}': {reason}", {"field": field_id})
        self.field_id = field_id
        self.reason = reason


class DraftIncomplete(ForgeError):
    """Required creation fields are still empty at finalize time."""

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Missing required fields: {', '.join(missing)}",
            {"missing": list(missing)},
        )
        self.missing = list(missing)


class SubmissionFailure(ForgeError):
    """The campaign backend rejected the character or could not be reached.

    The draft is preserved so the user can retry without re-entering data.
    """
    pass


class SessionClosed(ForgeError):
    """The creation session already ended (completed or abandoned)."""
    pass
