"""
Anthropic vision provider: claude-3-5-sonnet and claude-3-haiku.

Pricing (as of early 2025):
  claude-3-5-sonnet-20241022: $3.00 / 1M input,  $15.00 / 1M output
  claude-3-haiku-20240307:    $0.25 / 1M input,  $1.25  / 1M output

data: URLs are sent as base64 image sources, remote URLs as url sources.
"""
from __future__ import annotations

import logging
import time
from typing import Sequence

import anthropic

from errors import ProviderError
from providers.base import Completion, MessagePart, VisionProvider, split_data_url_b64

logger = logging.getLogger(__name__)

_PRICING: dict[str, tuple[float, float]] = {
    "claude-3-5-sonnet-20241022": (0.003,   0.015),
    "claude-3-haiku-20240307":    (0.00025, 0.00125),
}


class AnthropicProvider(VisionProvider):

    def __init__(self, api_key: str, model: str = "claude-3-5-sonnet-20241022"):
        self.name = "anthropic"
        self.model_id = model
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self.cost_per_1k_input_tokens, self.cost_per_1k_output_tokens = _PRICING.get(
            model, _PRICING["claude-3-5-sonnet-20241022"]
        )

    @staticmethod
    def _content(parts: Sequence[MessagePart]) -> list[dict]:
        content = []
        for part in parts:
            if part.kind == "text":
                content.append({"type": "text", "text": part.value})
            elif part.is_data_url:
                media_type, b64 = split_data_url_b64(part.value)
                content.append({
                    "type": "image",
                    "source": {"type": "base64", "media_type": media_type, "data": b64},
                })
            else:
                content.append({
                    "type": "image",
                    "source": {"type": "url", "url": part.value},
                })
        return content

    async def complete(
        self,
        system_prompt: str,
        parts: Sequence[MessagePart],
        max_tokens: int,
    ) -> Completion:
        t0 = time.monotonic()
        try:
            message = await self._client.messages.create(
                model=self.model_id,
                max_tokens=max_tokens,
                temperature=0,
                system=system_prompt,
                messages=[{"role": "user", "content": self._content(parts)}],
            )
        except anthropic.AnthropicError as exc:
            raise ProviderError(self.full_name, str(exc)) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        raw = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        if not raw:
            raise ProviderError(self.full_name, "empty response")
        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens

        return Completion(
            provider_name=self.full_name,
            text=raw,
            latency_ms=latency_ms,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=self.estimate_cost(input_tokens, output_tokens),
        )
