"""
Google Gemini vision provider: uses the google-genai SDK.

Pricing (as of early 2025):
  gemini-1.5-pro:        $3.50 / 1M input,  $10.50 / 1M output
  gemini-1.5-flash:      $0.075 / 1M input,  $0.30  / 1M output
  gemini-2.0-flash:      $0.10  / 1M input,  $0.40  / 1M output

Gemini only takes inline bytes for arbitrary web images, so remote http(s)
references are downloaded with aiohttp before the call.
"""
from __future__ import annotations

import logging
import time
from typing import Sequence

import aiohttp
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

import config
from errors import ProviderError
from providers.base import Completion, MessagePart, VisionProvider, split_data_url

logger = logging.getLogger(__name__)

_PRICING: dict[str, tuple[float, float]] = {
    # model_id: ($/1k_input_tokens, $/1k_output_tokens)
    "gemini-1.5-pro":   (0.0035,   0.0105),
    "gemini-1.5-flash": (0.000075, 0.0003),
    "gemini-2.0-flash": (0.0001,   0.0004),
}


async def fetch_image(url: str, provider_name: str) -> tuple[str, bytes]:
    """Download a remote image; returns (mime_type, bytes)."""
    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=config.REMOTE_IMAGE_TIMEOUT),
            ) as resp:
                if resp.status != 200:
                    raise ProviderError(provider_name, f"Failed to fetch image: HTTP {resp.status}")
                mime = resp.content_type or "image/jpeg"
                return mime, await resp.read()
    except aiohttp.ClientError as exc:
        raise ProviderError(provider_name, f"Failed to fetch image: {exc}") from exc


class GeminiProvider(VisionProvider):

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self.name     = "google"
        self.model_id = model
        # default API version: JSON response_mime_type is not exposed on v1
        self._client  = genai.Client(api_key=api_key)

        rates = _PRICING.get(model, _PRICING["gemini-2.0-flash"])
        self.cost_per_1k_input_tokens  = rates[0]
        self.cost_per_1k_output_tokens = rates[1]

    async def _contents(self, parts: Sequence[MessagePart]) -> list:
        contents: list = []
        for part in parts:
            if part.kind == "text":
                contents.append(part.value)
                continue
            if part.is_data_url:
                mime, data = split_data_url(part.value)
            else:
                mime, data = await fetch_image(part.value, self.full_name)
            contents.append(genai_types.Part.from_bytes(data=data, mime_type=mime))
        return contents

    async def complete(
        self,
        system_prompt: str,
        parts: Sequence[MessagePart],
        max_tokens: int,
    ) -> Completion:
        gen_config = genai_types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=0,
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
        )
        contents = await self._contents(parts)

        t0 = time.monotonic()
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model_id,
                contents=contents,
                config=gen_config,
            )
        except genai_errors.APIError as exc:
            raise ProviderError(self.full_name, str(exc)) from exc

        latency_ms = int((time.monotonic() - t0) * 1000)
        raw = response.text or ""
        if not raw:
            raise ProviderError(self.full_name, "empty response")

        usage         = response.usage_metadata
        input_tokens  = getattr(usage, "prompt_token_count", 0) or 0
        output_tokens = getattr(usage, "candidates_token_count", 0) or 0

        return Completion(
            provider_name = self.full_name,
            text          = raw,
            latency_ms    = latency_ms,
            input_tokens  = input_tokens,
            output_tokens = output_tokens,
            cost_usd      = self.estimate_cost(input_tokens, output_tokens),
        )
