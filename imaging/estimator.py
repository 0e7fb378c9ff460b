"""
Size and token-cost estimates for images sent to a vision model.

Base64 inflates a payload by about a third, and roughly four base64
characters cost one input token. The thresholds below are fixed policy and
are deliberately not per-call arguments.
"""
from __future__ import annotations

import math
from typing import Iterable, Protocol

MAX_TOKENS_PER_IMAGE  = 50_000
MAX_BYTES_PER_IMAGE   = 1024 * 1024          # 1 MiB
MAX_TOKENS_PER_BATCH  = 80_000
MAX_BYTES_PER_BATCH   = 5 * 1024 * 1024      # 5 MiB

BASE64_INFLATION = 1.33
CHARS_PER_TOKEN  = 4


class Sized(Protocol):
    @property
    def size(self) -> int: ...


def estimate_encoded_size(byte_size: int) -> int:
    return math.ceil(byte_size * BASE64_INFLATION)


def estimate_token_count(encoded_size: int) -> int:
    return math.ceil(encoded_size / CHARS_PER_TOKEN)


def estimate_tokens_for_bytes(byte_size: int) -> int:
    """Token estimate for a raw (not yet base64-encoded) payload."""
    return estimate_token_count(estimate_encoded_size(byte_size))


def should_compress_image(file: Sized) -> bool:
    return (
        estimate_tokens_for_bytes(file.size) > MAX_TOKENS_PER_IMAGE
        or file.size > MAX_BYTES_PER_IMAGE
    )


def should_compress_batch(files: Iterable[Sized]) -> bool:
    """
    True when any single file needs compression, or when the batch as a whole
    overflows the token or byte budget even though each file is small.
    """
    files = list(files)
    if any(should_compress_image(f) for f in files):
        return True
    total_tokens = sum(estimate_tokens_for_bytes(f.size) for f in files)
    total_bytes  = sum(f.size for f in files)
    return total_tokens > MAX_TOKENS_PER_BATCH or total_bytes > MAX_BYTES_PER_BATCH
