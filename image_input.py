"""
Image requests and their normalization into inference-ready references.

Callers build either a SingleImageRequest or a MultiImageRequest. The old
route handlers packed several images into one JSON string shaped like
{"type": "multiple", "images": [...], "primaryIndex": 0, "count": N};
parse_image_reference() still accepts that form and falls back to treating
the text as a single URL whenever it isn't a well-formed container.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

from errors import ImageReferenceError, UnsupportedMediaTypeError, UnsupportedReferenceError

logger = logging.getLogger(__name__)

ALLOWED_INLINE_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
})

_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


# ── Request variants ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImageUrl:
    """A remote http(s) URL or an inline data: URL."""
    url: str


@dataclass(frozen=True)
class InlineImage:
    """Raw image bytes with their declared media type."""
    data: bytes
    mime_type: str = "image/jpeg"

    @classmethod
    def from_base64(cls, payload: str, mime_type: str = "image/jpeg") -> "InlineImage":
        return cls(data=base64.b64decode(payload), mime_type=mime_type)


ImageReference = Union[ImageUrl, InlineImage]


@dataclass(frozen=True)
class SingleImageRequest:
    reference: ImageReference


@dataclass(frozen=True)
class MultiImageRequest:
    images: list[str]
    primary_index: int = 0

    def __post_init__(self) -> None:
        if not self.images:
            raise ImageReferenceError("MultiImageRequest needs at least one image", field="images")
        if not 0 <= self.primary_index < len(self.images):
            raise ImageReferenceError(
                f"primary_index {self.primary_index} out of range for {len(self.images)} images",
                field="primary_index",
            )

    @property
    def count(self) -> int:
        return len(self.images)


ImageRequest = Union[SingleImageRequest, MultiImageRequest]


@dataclass(frozen=True)
class NormalizedImages:
    """Ordered, validated image references ready for the vision model."""
    images: list[str] = field(default_factory=list)
    primary_index: int = 0
    is_multiple: bool = False

    @property
    def count(self) -> int:
        return len(self.images)


# ── Validation ────────────────────────────────────────────────────────────────

def validate_url(url: str, field_name: str = "url") -> str:
    """Pass through data: and http(s) URLs; reject every other scheme."""
    if url.startswith("data:"):
        return url
    if not _HTTP_RE.match(url):
        raise UnsupportedReferenceError(
            "Only http(s) or data: URLs are supported in 'url'.", field=field_name
        )
    return url


def check_inline_mime_type(mime_type: str, field_name: str = "mime_type") -> str:
    """Return the lower-cased media type, or raise if it is not on the allow-list."""
    mime = mime_type.lower()
    if mime not in ALLOWED_INLINE_TYPES:
        raise UnsupportedMediaTypeError(
            f"Unsupported image mime type for inline input: {mime_type}",
            field=field_name,
        )
    return mime


def inline_to_data_url(image: InlineImage) -> str:
    mime = check_inline_mime_type(image.mime_type)
    payload = base64.b64encode(image.data).decode("ascii")
    return f"data:{mime};base64,{payload}"


def resolve_reference(reference: ImageReference) -> str:
    if isinstance(reference, ImageUrl):
        return validate_url(reference.url)
    return inline_to_data_url(reference)


def normalize_request(request: ImageRequest) -> NormalizedImages:
    if isinstance(request, MultiImageRequest):
        images = [
            validate_url(url, field_name=f"images[{i}]")
            for i, url in enumerate(request.images)
        ]
        return NormalizedImages(images=images, primary_index=request.primary_index, is_multiple=True)

    return NormalizedImages(images=[resolve_reference(request.reference)])


# ── Legacy container boundary ─────────────────────────────────────────────────

def _parse_container(text: str) -> Optional[MultiImageRequest]:
    """Return a MultiImageRequest for a well-formed container, else None."""
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        return None

    if not isinstance(data, dict) or data.get("type") != "multiple":
        return None

    images = data.get("images")
    if not isinstance(images, list) or not images:
        return None
    if not all(isinstance(img, str) for img in images):
        return None

    count = data.get("count")
    if not isinstance(count, int) or isinstance(count, bool) or count != len(images):
        return None

    primary = data.get("primaryIndex", 0)
    if not isinstance(primary, int) or isinstance(primary, bool) or not 0 <= primary < len(images):
        return None

    return MultiImageRequest(images=list(images), primary_index=primary)


def parse_image_reference(text: str) -> ImageRequest:
    """
    Turn a textual reference from an old-style caller into a request.

    A container is only recognised when the text starts with "{" and parses
    into a consistent multi-image payload. Anything else, including a
    malformed container, becomes a single-image request for the text as-is.
    """
    if text.startswith("{"):
        multi = _parse_container(text)
        if multi is not None:
            return multi
        logger.warning("Failed to parse multiple image data, falling back to single image")
    return SingleImageRequest(ImageUrl(text))


def build_container(images: list[str], primary_index: int = 0) -> str:
    """Serialize images into the legacy multi-image container string."""
    request = MultiImageRequest(images=list(images), primary_index=primary_index)
    return json.dumps({
        "type": "multiple",
        "images": request.images,
        "primaryIndex": request.primary_index,
        "count": request.count,
    })
