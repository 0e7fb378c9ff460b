"""
Shared pytest fixtures.

Images are generated in memory with Pillow so tests never touch real photos,
and the provider cache is emptied around every test so a fake provider never
leaks from one test into another.
"""
from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from imaging.files import ImageFile  # noqa: E402


_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG":  "image/png",
    "WEBP": "image/webp",
    "BMP":  "image/bmp",
    "GIF":  "image/gif",
    "HEIF": "image/heic",   # needs imaging.compressor imported (registers the opener)
}


def encode_image(
    width: int,
    height: int,
    fmt: str = "JPEG",
    noise: bool = False,
    mode: str = "RGB",
    quality: int = 90,
) -> bytes:
    """Encode a solid (or gaussian-noise) image of the given size."""
    if noise:
        img = Image.effect_noise((width, height), 80).convert(mode)
    else:
        img = Image.new(mode, (width, height), color=(200, 120, 40, 255)[: len(mode)])
    buf = BytesIO()
    if fmt == "JPEG":
        img.save(buf, format=fmt, quality=quality)
    else:
        img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def make_image_file():
    def _make(
        width: int = 800,
        height: int = 600,
        name: str = "photo.jpg",
        fmt: str = "JPEG",
        noise: bool = False,
        mode: str = "RGB",
        quality: int = 90,
    ) -> ImageFile:
        mime = _MIME_TYPES[fmt]
        return ImageFile(
            name=name,
            data=encode_image(width, height, fmt=fmt, noise=noise, mode=mode, quality=quality),
            mime_type=mime,
        )
    return _make


@pytest.fixture(autouse=True)
def reset_provider_cache():
    """Each test starts with a clean provider cache."""
    import providers.manager as manager_mod
    manager_mod.reset_providers()
    yield
    manager_mod.reset_providers()


@pytest.fixture
def draft_payload() -> dict:
    """A minimal reply that satisfies the ListingDraft schema."""
    return {
        "version": "1.0",
        "language": "en-US",
        "title": "Oakley Holbrook sunglasses",
        "description": "Oakley Holbrook sunglasses in matte black with Prizm lenses, lightly used.",
        "category": {"primary": "Sunglasses", "secondary": "Accessories", "confidence": 0.9},
        "attributes": {
            "condition": "used_good",
            "brand": "Oakley",
            "model": "Holbrook",
            "brand_confidence": 0.95,
            "model_confidence": 0.8,
        },
        "pricing": {
            "suggested_price_nok": 900,
            "confidence": 0.7,
            "basis": ["Comparable used listings", "Visible light wear"],
        },
        "media": {
            "image_count": 1,
            "main_image_summary": "Sunglasses on a white table, front view",
            "quality_score": 0.8,
        },
        "moderation": {"flags": [], "uncertainties": []},
        "tags": ["oakley", "sunglasses"],
    }
