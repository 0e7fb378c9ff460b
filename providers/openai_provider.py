"""
OpenAI vision provider: gpt-4o and gpt-4o-mini.

Pricing (as of early 2025):
  gpt-4o:       $5.00 / 1M input tokens,  $15.00 / 1M output tokens
  gpt-4o-mini:  $0.15 / 1M input tokens,  $0.60 / 1M output tokens

Images are passed as image_url parts, so both remote URLs and data: URLs work
unchanged. JSON object mode keeps the reply parseable; the schema itself is
part of the system prompt.
"""
from __future__ import annotations

import logging
import time
from typing import Sequence

import openai
from openai import AsyncOpenAI

from errors import ProviderError
from providers.base import Completion, MessagePart, VisionProvider

logger = logging.getLogger(__name__)

_PRICING: dict[str, tuple[float, float]] = {
    # model_id: ($/1k_input_tokens, $/1k_output_tokens)
    "gpt-4o":      (0.005,   0.015),
    "gpt-4o-mini": (0.00015, 0.0006),
}


class OpenAIProvider(VisionProvider):

    def __init__(self, api_key: str, model: str = "gpt-4o"):
        self.name = "openai"
        self.model_id = model
        self._client = AsyncOpenAI(api_key=api_key)
        self.cost_per_1k_input_tokens, self.cost_per_1k_output_tokens = _PRICING.get(
            model, _PRICING["gpt-4o"]
        )

    @staticmethod
    def _content(parts: Sequence[MessagePart]) -> list[dict]:
        content = []
        for part in parts:
            if part.kind == "text":
                content.append({"type": "text", "text": part.value})
            else:
                content.append({
                    "type": "image_url",
                    "image_url": {"url": part.value, "detail": "high"},
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
            response = await self._client.chat.completions.create(
                model=self.model_id,
                max_tokens=max_tokens,
                temperature=0,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": self._content(parts)},
                ],
            )
        except openai.OpenAIError as exc:
            raise ProviderError(self.full_name, str(exc)) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        if not response.choices:
            raise ProviderError(self.full_name, "empty response")
        raw = response.choices[0].message.content or ""
        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return Completion(
            provider_name=self.full_name,
            text=raw,
            latency_ms=latency_ms,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=self.estimate_cost(input_tokens, output_tokens),
        )
