"""
Resize and re-encode an image so it fits the vision model's budget.

Pillow work is blocking, so compress_image() runs it in a worker thread and
only suspends the event loop while the decode/encode completes.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Literal

import pillow_heif
from PIL import Image, ImageOps, UnidentifiedImageError

from errors import ImageDecodeError, ImageEncodeError
from imaging.files import ImageFile

logger = logging.getLogger(__name__)

# phone uploads are often HEIC/HEIF, which stock Pillow cannot open
pillow_heif.register_heif_opener()

_PIL_FORMATS = {"jpeg": "JPEG", "webp": "WEBP"}


@dataclass(frozen=True)
class CompressionOptions:
    max_width: int = 1024
    max_height: int = 1024
    quality: float = 0.8                       # 0..1, mapped onto Pillow's 1..100
    format: Literal["jpeg", "webp"] = "jpeg"


@dataclass(frozen=True)
class CompressionResult:
    file: ImageFile
    original_size: int
    compressed_size: int
    compression_ratio: float                   # percent; negative if the output grew
    new_dimensions: tuple[int, int]            # (width, height)


def target_dimensions(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """
    Scale (width, height) down into the bounds, preserving aspect ratio.
    Images already within both bounds pass through unchanged.
    """
    if width <= max_width and height <= max_height:
        return width, height

    aspect = width / height
    if width >= height:
        new_w = min(width, max_width)
        new_h = new_w / aspect
    else:
        new_h = min(height, max_height)
        new_w = new_h * aspect
    return max(1, round(new_w)), max(1, round(new_h))


def _output_name(name: str, fmt: str) -> str:
    ext = ".jpg" if fmt == "jpeg" else f".{fmt}"
    return f"compressed_{Path(name).stem}{ext}"


def _compress_sync(file: ImageFile, options: CompressionOptions) -> CompressionResult:
    try:
        img = Image.open(BytesIO(file.data))
        img.load()
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Failed to load image for compression: {file.name}: {exc}") from exc

    width, height = img.size
    new_w, new_h = target_dimensions(width, height, options.max_width, options.max_height)
    if (new_w, new_h) != (width, height):
        img = img.resize((new_w, new_h), Image.Resampling.LANCZOS)

    pil_format = _PIL_FORMATS.get(options.format)
    if pil_format is None:
        raise ImageEncodeError(f"Unsupported target format: {options.format}")

    # JPEG has no alpha channel
    if pil_format == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    quality = min(100, max(1, round(options.quality * 100)))
    buf = BytesIO()
    try:
        img.save(buf, format=pil_format, quality=quality, optimize=True)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageEncodeError(f"Failed to compress image {file.name}: {exc}") from exc

    data = buf.getvalue()
    if not data:
        raise ImageEncodeError(f"Failed to compress image {file.name}: encoder produced no output")

    compressed = ImageFile(
        name=_output_name(file.name, options.format),
        data=data,
        mime_type=f"image/{options.format}",
    )
    ratio = (1 - compressed.size / file.size) * 100 if file.size else 0.0
    return CompressionResult(
        file=compressed,
        original_size=file.size,
        compressed_size=compressed.size,
        compression_ratio=ratio,
        new_dimensions=(new_w, new_h),
    )


async def compress_image(file: ImageFile, options: CompressionOptions | None = None) -> CompressionResult:
    options = options or CompressionOptions()
    logger.debug(
        "Compressing %s (%d bytes) to fit %dx%d at quality %.2f",
        file.name, file.size, options.max_width, options.max_height, options.quality,
    )
    result = await asyncio.to_thread(_compress_sync, file, options)
    logger.debug(
        "Compressed %s: %d → %d bytes (%.1f%%), %dx%d",
        file.name, result.original_size, result.compressed_size,
        result.compression_ratio, *result.new_dimensions,
    )
    return result
