"""
Tests for AI-assisted field text: prompts, the mock generator and the Anthropic generator.

The Anthropic SDK client is always mocked; no real API calls are made.
"""

from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from character_forge.exceptions import GenerationFailure
from character_forge.generation import (
    AnthropicTextGenerator,
    MockTextGenerator,
    build_field_prompt,
    clean_generated_text,
)
from character_forge.rulesystems import CreationField

API_URL = "https://api.anthropic.com/v1/messages"


def make_field(**overrides) -> CreationField:
    data = {
        "id": "origin",
        "label": "Life on Earth",
        "kind": "textarea",
        "aiAssistEligible": True,
        "placeholder": "Who were you before?",
    }
    data.update(overrides)
    return CreationField.model_validate(data)


def make_message(text: str) -> MagicMock:
    message = MagicMock()
    content_block = MagicMock()
    content_block.text = text
    message.content = [content_block]
    return message


def make_client(**create_kwargs) -> AsyncMock:
    client = AsyncMock()
    client.messages.create = AsyncMock(**create_kwargs)
    return client


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class TestBuildFieldPrompt:

    def test_prompt_contents(self):
        prompt = build_field_prompt(make_field(), "Jason", "Outworlder", "  He was a cook  ", 80)
        assert "for the Outworlder setting" in prompt
        assert 'Write the "Life on Earth" for Jason.' in prompt
        assert "no more than 80 words" in prompt
        assert "Hint shown to the player: Who were you before?" in prompt
        assert prompt.endswith("Player guidance: He was a cook")

    def test_unnamed_character_and_short_text(self):
        prompt = build_field_prompt(make_field(kind="text", placeholder=None), "", "Classic Fantasy")
        assert "for a new character." in prompt
        assert "a single short phrase" in prompt
        assert "Player guidance" not in prompt

    def test_ineligible_field(self):
        with pytest.raises(GenerationFailure) as exc_info:
            build_field_prompt(make_field(aiAssistEligible=False), "Jason", "Outworlder")
        assert exc_info.value.field_id == "origin"

    def test_non_text_field(self):
        field = make_field(kind="number", aiAssistEligible=False)
        with pytest.raises(GenerationFailure):
            build_field_prompt(field, "Jason", "Outworlder")


class TestCleanGeneratedText:

    def test_strips_quotes_and_whitespace(self):
        assert clean_generated_text('  "A quiet cook."  ') == "A quiet cook."

    def test_truncates_to_word_limit(self):
        assert clean_generated_text("one two, three four", max_length=2) == "one two..."

    def test_leaves_short_text_alone(self):
        assert clean_generated_text("It's fine", max_length=5) == "It's fine"


# ---------------------------------------------------------------------------
# Mock generator
# ---------------------------------------------------------------------------


class TestMockTextGenerator:

    @pytest.mark.anyio
    async def test_cycles_responses(self):
        generator = MockTextGenerator(responses=["first", "second"])
        texts = [(await generator.generate("p")).text for _ in range(3)]
        assert texts == ["first", "second", "first"]
        assert generator.call_count == 3

    @pytest.mark.anyio
    async def test_default_response_and_call_log(self):
        generator = MockTextGenerator()
        result = await generator.generate("prompt", 40)
        assert result.success
        assert result.text == "A wanderer with a quiet past."
        assert generator.calls == [{"prompt": "prompt", "max_length": 40}]
        generator.reset()
        assert generator.calls == []

    @pytest.mark.anyio
    async def test_failure(self):
        result = await MockTextGenerator(fail_with="offline").generate("prompt")
        assert not result.success
        assert result.error == "offline"


# ---------------------------------------------------------------------------
# Anthropic generator
# ---------------------------------------------------------------------------


class TestAnthropicTextGenerator:

    @pytest.mark.anyio
    async def test_generate_success(self):
        client = make_client(return_value=make_message('"A line cook from Sydney."'))
        generator = AnthropicTextGenerator(model="test-model", temperature=0.5, client=client)

        result = await generator.generate("Write it", max_length=100)

        assert result.success
        assert result.text == "A line cook from Sydney."
        call_kwargs = client.messages.create.call_args[1]
        assert call_kwargs["model"] == "test-model"
        assert call_kwargs["max_tokens"] == 200
        assert call_kwargs["temperature"] == 0.5
        assert call_kwargs["messages"] == [{"role": "user", "content": "Write it"}]

    @pytest.mark.anyio
    async def test_minimum_max_tokens(self):
        client = make_client(return_value=make_message("Ok"))
        await AnthropicTextGenerator(client=client).generate("Write it", max_length=10)
        assert client.messages.create.call_args[1]["max_tokens"] == 64

    @pytest.mark.anyio
    async def test_empty_text_is_a_failure(self):
        client = make_client(return_value=make_message("   "))
        result = await AnthropicTextGenerator(client=client).generate("Write it")
        assert not result.success
        assert "no text" in result.error

    @pytest.mark.anyio
    async def test_rate_limit(self):
        response = httpx.Response(429, request=httpx.Request("POST", API_URL))
        client = make_client(side_effect=anthropic.RateLimitError("Rate limit exceeded", response=response, body=None))
        result = await AnthropicTextGenerator(client=client).generate("Write it")
        assert not result.success
        assert "busy" in result.error

    @pytest.mark.anyio
    async def test_api_error(self):
        error = anthropic.APIConnectionError(request=httpx.Request("POST", API_URL))
        client = make_client(side_effect=error)
        result = await AnthropicTextGenerator(client=client).generate("Write it")
        assert not result.success
        assert result.error.startswith("The writing assistant failed")
