"""
Tests for the concrete providers (OpenAI, Anthropic, Gemini) with mocked SDK clients.

Covers:
  - request shape: system prompt, ordered text/image parts, max_tokens
  - data: URLs vs remote URLs per provider
  - usage and cost mapping into Completion
  - SDK failures and empty replies surface as ProviderError
"""
from __future__ import annotations

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from errors import ProviderError
from providers.anthropic_provider import AnthropicProvider
from providers.base import MessagePart
from providers.gemini_provider import GeminiProvider
from providers.openai_provider import OpenAIProvider

DATA_URL = "data:image/jpeg;base64," + base64.b64encode(b"jpeg-bytes").decode()
REMOTE_URL = "https://x.test/photo.jpg"
PARTS = [MessagePart.text("Analyze"), MessagePart.image(DATA_URL), MessagePart.image(REMOTE_URL)]


# ── OpenAI ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestOpenAIProvider:
    def make(self, response=None, error=None) -> OpenAIProvider:
        provider = OpenAIProvider("sk-test", "gpt-4o-mini")
        create = AsyncMock(return_value=response, side_effect=error)
        provider._client = MagicMock()
        provider._client.chat.completions.create = create
        return provider

    async def test_request_and_completion(self):
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": true}'))],
            usage=SimpleNamespace(prompt_tokens=2000, completion_tokens=100),
        )
        provider = self.make(response)
        completion = await provider.complete("system", PARTS, 500)

        kwargs = provider._client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 500
        assert kwargs["response_format"] == {"type": "json_object"}
        system, user = kwargs["messages"]
        assert system == {"role": "system", "content": "system"}
        assert [c["type"] for c in user["content"]] == ["text", "image_url", "image_url"]
        assert user["content"][1]["image_url"]["url"] == DATA_URL
        assert user["content"][2]["image_url"]["url"] == REMOTE_URL

        assert completion.text == '{"ok": true}'
        assert completion.provider_name == "openai/gpt-4o-mini"
        assert completion.input_tokens == 2000
        assert completion.cost_usd == pytest.approx(2 * 0.00015 + 0.1 * 0.0006)

    async def test_sdk_error(self):
        import openai
        provider = self.make(error=openai.OpenAIError("quota exceeded"))
        with pytest.raises(ProviderError, match="quota exceeded"):
            await provider.complete("system", PARTS, 500)

    async def test_no_choices(self):
        provider = self.make(SimpleNamespace(choices=[], usage=None))
        with pytest.raises(ProviderError, match="empty response"):
            await provider.complete("system", PARTS, 500)


# ── Anthropic ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestAnthropicProvider:
    def make(self, message=None, error=None) -> AnthropicProvider:
        provider = AnthropicProvider("sk-ant-test")
        provider._client = MagicMock()
        provider._client.messages.create = AsyncMock(return_value=message, side_effect=error)
        return provider

    async def test_request_and_completion(self):
        message = SimpleNamespace(
            content=[SimpleNamespace(type="text", text='{"a": '), SimpleNamespace(type="text", text="1}")],
            usage=SimpleNamespace(input_tokens=1500, output_tokens=80),
        )
        provider = self.make(message)
        completion = await provider.complete("system", PARTS, 800)

        kwargs = provider._client.messages.create.await_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["max_tokens"] == 800
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "Analyze"}
        assert content[1]["source"] == {
            "type": "base64",
            "media_type": "image/jpeg",
            "data": base64.b64encode(b"jpeg-bytes").decode(),
        }
        assert content[2]["source"] == {"type": "url", "url": REMOTE_URL}

        assert completion.text == '{"a": 1}'
        assert completion.output_tokens == 80

    async def test_sdk_error(self):
        import anthropic
        provider = self.make(error=anthropic.AnthropicError("overloaded"))
        with pytest.raises(ProviderError, match="overloaded"):
            await provider.complete("system", PARTS, 800)

    async def test_no_text_blocks(self):
        message = SimpleNamespace(content=[], usage=SimpleNamespace(input_tokens=1, output_tokens=0))
        provider = self.make(message)
        with pytest.raises(ProviderError, match="empty response"):
            await provider.complete("system", PARTS, 800)


# ── Gemini ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestGeminiProvider:
    def make(self, response=None, error=None) -> GeminiProvider:
        provider = GeminiProvider("g-test")
        provider._client = MagicMock()
        provider._client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
        return provider

    async def test_request_and_completion(self):
        response = SimpleNamespace(
            text='{"ok": 1}',
            usage_metadata=SimpleNamespace(prompt_token_count=900, candidates_token_count=60),
        )
        provider = self.make(response)
        fetch = AsyncMock(return_value=("image/png", b"remote-bytes"))
        with patch("providers.gemini_provider.fetch_image", fetch):
            completion = await provider.complete("system", PARTS, 400)

        fetch.assert_awaited_once_with(REMOTE_URL, "google/gemini-2.0-flash")
        kwargs = provider._client.aio.models.generate_content.await_args.kwargs
        contents = kwargs["contents"]
        assert contents[0] == "Analyze"
        assert contents[1].inline_data.data == b"jpeg-bytes"
        assert contents[1].inline_data.mime_type == "image/jpeg"
        assert contents[2].inline_data.data == b"remote-bytes"
        assert kwargs["config"].system_instruction == "system"
        assert kwargs["config"].max_output_tokens == 400
        assert kwargs["config"].response_mime_type == "application/json"

        assert completion.text == '{"ok": 1}'
        assert completion.input_tokens == 900

    async def test_empty_text(self):
        provider = self.make(SimpleNamespace(text=None, usage_metadata=None))
        with pytest.raises(ProviderError, match="empty response"):
            await provider.complete("system", PARTS[:2], 400)

    async def test_fetch_failure_propagates(self):
        provider = self.make()
        fetch = AsyncMock(side_effect=ProviderError("google/gemini-2.0-flash", "HTTP 404"))
        with patch("providers.gemini_provider.fetch_image", fetch):
            with pytest.raises(ProviderError, match="HTTP 404"):
                await provider.complete("system", PARTS, 400)
        provider._client.aio.models.generate_content.assert_not_awaited()
