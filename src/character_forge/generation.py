"""
AI-assisted text for creation fields.

Only text and textarea fields marked ``aiAssistEligible`` can be generated.
The prompt is built from the field label, the character name, the rule
system name and optional guidance from the user. Generators never raise for
API trouble; they return a failed GenerationResult so the caller can keep
the field's previous value and show the error next to it.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import anthropic
from anthropic import AsyncAnthropic
from pydantic import BaseModel

from .exceptions import GenerationFailure
from .rulesystems.models import TEXT_KINDS, CreationField, FieldKind


logger = logging.getLogger("character-forge.generation")

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_MAX_LENGTH = 150
DEFAULT_TEMPERATURE = 0.8


class GenerationResult(BaseModel):
    success: bool
    text: str = ""
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "GenerationResult":
        return cls(success=False, error=error)


class TextGenerator(Protocol):
    async def generate(self, prompt: str, max_length: int = DEFAULT_MAX_LENGTH) -> GenerationResult:
        ...


def build_field_prompt(
    field: CreationField,
    character_name: str,
    module_name: str,
    guidance: str = "",
    max_length: int = DEFAULT_MAX_LENGTH,
) -> str:
    """Prompt asking for the content of one creation field.

    Raises:
        GenerationFailure: If the field does not allow AI assistance
    """
    if field.kind not in TEXT_KINDS or not field.ai_assist_eligible:
        raise GenerationFailure(field.id, "this field does not support AI assistance")

    who = character_name.strip() or "a new character"
    shape = "a single short phrase" if field.kind is FieldKind.TEXT else "one or two short paragraphs"
    lines = [
        f"You are helping a player create a character for the {module_name} setting.",
        f"Write the \"{field.label}\" for {who}.",
        f"Answer with {shape}, no more than {max_length} words, in plain prose.",
        "Do not add a title, a preamble or quotation marks.",
    ]
    if field.placeholder:
        lines.append(f"Hint shown to the player: {field.placeholder}")
    if guidance.strip():
        lines.append(f"Player guidance: {guidance.strip()}")
    return "\n".join(lines)


def clean_generated_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Strip wrapping quotes and whitespace, and cut to ``max_length`` words."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1].strip()
    words = text.split(" ")
    if len(words) > max_length:
        text = " ".join(words[:max_length]).rstrip(",;:") + "..."
    return text


class MockTextGenerator:
    """Canned-response generator for tests and offline use.

    Responses are returned in order and cycle when exhausted. With
    ``fail_with`` set every call fails with that message.
    """

    def __init__(
        self,
        responses: list[str] | None = None,
        default_response: str = "A wanderer with a quiet past.",
        fail_with: str | None = None,
    ) -> None:
        self.responses = responses or []
        self.default_response = default_response
        self.fail_with = fail_with
        self.call_count = 0
        self.calls: list[dict[str, Any]] = []

    async def generate(self, prompt: str, max_length: int = DEFAULT_MAX_LENGTH) -> GenerationResult:
        self.calls.append({"prompt": prompt, "max_length": max_length})
        self.call_count += 1

        if self.fail_with is not None:
            return GenerationResult.failed(self.fail_with)
        if not self.responses:
            return GenerationResult(success=True, text=self.default_response)
        return GenerationResult(success=True, text=self.responses[(self.call_count - 1) % len(self.responses)])

    def reset(self) -> None:
        self.call_count = 0
        self.calls.clear()


class AnthropicTextGenerator:
    """Text generator backed by the Anthropic Messages API.

    Args:
        api_key: Anthropic API key. If None, the SDK reads ANTHROPIC_API_KEY.
        model: Model identifier
        temperature: Sampling temperature (0.0-2.0)
        client: Pre-built AsyncAnthropic client, mainly for tests
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.client = client or AsyncAnthropic(api_key=api_key)
        logger.info(f"Text generation using model={model}, temperature={temperature}")

    async def generate(self, prompt: str, max_length: int = DEFAULT_MAX_LENGTH) -> GenerationResult:
        try:
            message = await self.client.messages.create(
                model=self.model,
                # Roughly two tokens per word, with room for punctuation
                max_tokens=max(64, max_length * 2),
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            logger.warning(f"Text generation rate limited: {e}")
            return GenerationResult.failed("The writing assistant is busy. Try again in a moment.")
        except anthropic.APIError as e:
            logger.warning(f"Text generation failed: {e}")
            return GenerationResult.failed(f"The writing assistant failed: {e}")

        text = "".join(block.text for block in message.content if hasattr(block, "text"))
        text = clean_generated_text(text, max_length)
        if not text:
            return GenerationResult.failed("The writing assistant returned no text")
        return GenerationResult(success=True, text=text)
