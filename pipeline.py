"""
End-to-end assembly: uploaded files → optimized images → image request → draft.

prepare_request() applies the upload guards (image/* only, 10 MiB per file),
compresses when the batch estimator asks for it, and refuses payloads whose
token estimate is still too large for one vision call.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

import config
from draft_extractor import create_listing_draft
from errors import ImageReferenceError, ImageTooLargeError, InvalidImageFileError
from image_input import (
    ImageRequest,
    InlineImage,
    MultiImageRequest,
    SingleImageRequest,
    check_inline_mime_type,
)
from imaging.estimator import should_compress_batch
from imaging.files import ImageFile
from imaging.optimizer import BatchCompressionResult, aggregate, optimize_batch_for_api, passthrough
from languages import require_supported
from listing_draft import ListingDraft
from pipeline_hooks import PipelineHooks, resolve
from providers.base import VisionProvider

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES        = 10 * 1024 * 1024
MAX_SINGLE_IMAGE_TOKENS = 80_000
MAX_MULTI_IMAGE_TOKENS  = 100_000


def validate_uploads(files: Sequence[ImageFile]) -> None:
    if not files:
        raise ImageReferenceError("At least one image file is required", field="files")
    for i, f in enumerate(files):
        if not f.is_image:
            raise InvalidImageFileError(
                f"File {i + 1}: Only image files are supported (got {f.mime_type})",
                field=f"files[{i}]",
            )
        if f.size > MAX_UPLOAD_BYTES:
            raise ImageTooLargeError(
                f"File {i + 1}: File size must be less than 10MB",
                field=f"files[{i}]",
            )


async def optimize_uploads(
    files: Sequence[ImageFile],
    hooks: Optional[PipelineHooks] = None,
) -> BatchCompressionResult:
    """Compress the batch only when the estimator says it needs it."""
    if should_compress_batch(files):
        return await optimize_batch_for_api(files, hooks=hooks)
    logger.debug("Batch of %d image(s) within budget, sending as-is", len(files))
    return aggregate([passthrough(f) for f in files])


async def prepare_request(
    files: Sequence[ImageFile],
    primary_index: int = 0,
    hooks: Optional[PipelineHooks] = None,
) -> ImageRequest:
    validate_uploads(files)
    batch = await optimize_uploads(files, hooks=hooks)

    limit = MAX_SINGLE_IMAGE_TOKENS if len(batch.files) == 1 else MAX_MULTI_IMAGE_TOKENS
    if batch.total_estimated_tokens > limit:
        raise ImageTooLargeError(
            f"{len(batch.files)} image(s) are estimated to use {batch.total_estimated_tokens} "
            f"tokens (limit {limit}). Upload smaller or fewer images.",
            field="files",
        )

    for i, f in enumerate(batch.files):
        check_inline_mime_type(f.mime_type, field_name=f"files[{i}]")

    if len(batch.files) == 1:
        only = batch.files[0]
        return SingleImageRequest(InlineImage(data=only.data, mime_type=only.mime_type))
    return MultiImageRequest(
        images=[f.to_data_url() for f in batch.files],
        primary_index=primary_index,
    )


async def analyze_files(
    files: Sequence[ImageFile],
    language: Optional[str] = None,
    primary_index: int = 0,
    max_tokens: Optional[int] = None,
    provider: Optional[VisionProvider] = None,
    hooks: Optional[PipelineHooks] = None,
) -> ListingDraft:
    language = require_supported(language or config.DEFAULT_LANGUAGE)
    hooks = resolve(hooks)
    request = await prepare_request(files, primary_index=primary_index, hooks=hooks)
    return await create_listing_draft(
        request,
        language=language,
        max_tokens=max_tokens,
        provider=provider,
        hooks=hooks,
    )
