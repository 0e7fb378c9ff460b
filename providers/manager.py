"""
Provider Manager: builds the configured vision provider and runs
schema-constrained generation against it.

Keys and the provider choice come from config (environment / .env). Built
providers are cached per "name/model"; reset_providers() clears the cache
after a key change.

generate_object() is the inference boundary the draft extractor talks to:
prompt + ordered parts + pydantic schema in, validated object out, retried
sequentially (no backoff) up to max_attempts on provider or validation
failures.
"""
from __future__ import annotations

import json
import logging
from typing import Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

import config
from errors import ConfigurationError, GenerationError, ProviderError
from providers.base import MessagePart, VisionProvider, parse_json_response

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Module-level cache; reset_providers() empties it
_providers: dict[str, VisionProvider] = {}

_KEY_ATTRS = {
    "openai":    "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google":    "GOOGLE_API_KEY",
}


def _build_provider(name: str, model: str) -> VisionProvider:
    key_attr = _KEY_ATTRS.get(name)
    if key_attr is None:
        available = ", ".join(_KEY_ATTRS)
        raise ConfigurationError(f"Unknown provider '{name}'. Available: {available}")

    api_key = getattr(config, key_attr)
    if not api_key:
        raise ConfigurationError(f"No API key for provider '{name}'. Set {key_attr} in .env")

    if name == "openai":
        from providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key, model)
    if name == "anthropic":
        from providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key, model)
    from providers.gemini_provider import GeminiProvider
    return GeminiProvider(api_key, model)


def get_provider(name: Optional[str] = None, model: Optional[str] = None) -> VisionProvider:
    """Return the (cached) provider; defaults come from config.DRAFT_PROVIDER / DRAFT_MODEL."""
    name = (name or config.DRAFT_PROVIDER).strip().lower()
    model = model or config.DRAFT_MODEL or config.DEFAULT_MODELS.get(name, "")
    cache_key = f"{name}/{model}"
    if cache_key not in _providers:
        provider = _build_provider(name, model)
        _providers[cache_key] = provider
        logger.info("Loaded provider: %s", provider.full_name)
    return _providers[cache_key]


def reset_providers() -> None:
    _providers.clear()


def build_system_prompt(system_prompt: str, schema: Type[BaseModel]) -> str:
    """Append the JSON Schema the reply must conform to."""
    schema_json = json.dumps(schema.model_json_schema(), ensure_ascii=False)
    return (
        f"{system_prompt.strip()}\n\n"
        "Respond with a single JSON object that validates against this JSON Schema:\n"
        f"{schema_json}"
    )


async def generate_object(
    provider: VisionProvider,
    system_prompt: str,
    parts: Sequence[MessagePart],
    schema: Type[T],
    max_tokens: int,
    max_attempts: int = 3,
) -> T:
    """
    Run one logical structured-generation call.

    Raises:
        GenerationError: every attempt failed; __cause__ is the last failure.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    full_prompt = build_system_prompt(system_prompt, schema)
    last_exc: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            completion = await provider.complete(full_prompt, parts, max_tokens)
            data = parse_json_response(completion.text, provider.full_name)
            obj = schema.model_validate(data)
        # pydantic.ValidationError is a ValueError, like parse failures
        except (ProviderError, ValueError) as exc:
            last_exc = exc
            logger.warning(
                "[%s] Attempt %d/%d failed: %s",
                provider.full_name, attempt, max_attempts, exc,
            )
            continue

        logger.info(
            "[%s] OK on attempt %d, tokens=%d/%d cost=%s latency=%dms",
            provider.full_name, attempt, completion.input_tokens,
            completion.output_tokens, completion.cost_str, completion.latency_ms,
        )
        return obj

    raise GenerationError(
        f"[{provider.full_name}] No valid {schema.__name__} after {max_attempts} attempts: {last_exc}",
        attempts=max_attempts,
    ) from last_exc
