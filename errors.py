"""
Exception hierarchy for the listing-draft pipeline.

Every failure the pipeline raises derives from ListingDraftError so callers
can catch the whole family in one place, while the concrete classes keep
validation, image processing and generation failures distinguishable.
"""
from __future__ import annotations

from typing import Optional


class ListingDraftError(Exception):
    """Base class for all pipeline errors."""


# ── Validation ────────────────────────────────────────────────────────────────

class ImageReferenceError(ListingDraftError, ValueError):
    """An image reference or uploaded file was rejected before any external call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnsupportedReferenceError(ImageReferenceError):
    """URL reference is neither a data: URL nor http(s)."""


class UnsupportedMediaTypeError(ImageReferenceError):
    """Declared media type is outside the allow-list."""


class InvalidImageFileError(ImageReferenceError):
    """Uploaded file does not declare an image/* media type."""


class ImageTooLargeError(ImageReferenceError):
    """File size or estimated token cost exceeds what a request may carry."""


class ConfigurationError(ListingDraftError):
    """Bad runtime configuration: unknown language, provider or missing key."""


class UnsupportedLanguageError(ConfigurationError, ValueError):
    def __init__(self, language: str, supported: tuple[str, ...]):
        super().__init__(
            f"Unsupported language: {language}. "
            f"Supported languages: {', '.join(supported)}"
        )
        self.language = language
        self.field = "language"


# ── Image processing ──────────────────────────────────────────────────────────

class ImageProcessingError(ListingDraftError):
    """Decoding or re-encoding an image failed."""


class ImageDecodeError(ImageProcessingError):
    pass


class ImageEncodeError(ImageProcessingError):
    pass


# ── Inference ─────────────────────────────────────────────────────────────────

class ProviderError(ListingDraftError, RuntimeError):
    """A single call to a vision provider failed (transport, auth, empty reply)."""

    def __init__(self, provider_name: str, message: str):
        super().__init__(f"[{provider_name}] {message}")
        self.provider_name = provider_name


class GenerationError(ListingDraftError, RuntimeError):
    """Structured generation did not produce a valid object within its attempt budget."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts
