"""
Draft extractor: normalized product photos in, validated ListingDraft out.

The requested language is checked before anything else happens, the prompt
pair (single or N-image) comes from the language table, and the model's own
language claim is always replaced by the caller's.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

import config
from image_input import ImageRequest, normalize_request
from languages import get_prompts, require_supported
from listing_draft import ListingDraft
from pipeline_hooks import PipelineHooks, resolve
from providers.base import MessagePart, VisionProvider
from providers.manager import generate_object, get_provider

logger = logging.getLogger(__name__)

GENERATION_ATTEMPTS = 3


async def create_listing_draft(
    request: ImageRequest,
    language: Optional[str] = None,
    max_tokens: Optional[int] = None,
    provider: Optional[VisionProvider] = None,
    hooks: Optional[PipelineHooks] = None,
) -> ListingDraft:
    """
    Analyse one or more product photos and return a listing draft.

    Raises:
        UnsupportedLanguageError: before any provider is resolved or called.
        UnsupportedReferenceError / UnsupportedMediaTypeError: bad image input.
        GenerationError: no valid draft after GENERATION_ATTEMPTS tries.
    """
    language = require_supported(language or config.DEFAULT_LANGUAGE)
    max_tokens = max_tokens or config.MAX_OUTPUT_TOKENS
    hooks = resolve(hooks)

    images = normalize_request(request)
    prompts = get_prompts(language)
    if images.is_multiple:
        system_prompt = prompts.image_analysis.multiple(images.count)
        user_text = prompts.user_message.multiple(images.count)
    else:
        system_prompt = prompts.image_analysis.single
        user_text = prompts.user_message.single

    parts = [MessagePart.text(user_text)] + [MessagePart.image(url) for url in images.images]
    provider = provider or get_provider()

    hooks.emit(
        "pre_inference",
        provider=provider.full_name,
        language=language,
        image_count=images.count,
        is_multiple=images.is_multiple,
        system_prompt_length=len(system_prompt),
        max_tokens=max_tokens,
    )
    t0 = time.monotonic()

    draft = await generate_object(
        provider,
        system_prompt,
        parts,
        ListingDraft,
        max_tokens=max_tokens,
        max_attempts=GENERATION_ATTEMPTS,
    )
    if draft.language != language:
        logger.debug("Model tagged draft as %s; overriding with %s", draft.language, language)
    draft = draft.with_language(language)

    hooks.emit(
        "post_inference",
        provider=provider.full_name,
        language=language,
        image_count=images.count,
        duration_ms=int((time.monotonic() - t0) * 1000),
        title=draft.title,
        category=draft.category.primary,
        price=draft.pricing.suggested_price_nok,
        condition=draft.attributes.condition,
        brand=draft.attributes.brand,
        model=draft.attributes.model,
    )
    return draft
