"""
Shared types and base class for all vision providers.

A provider knows one SDK and one wire format. It receives a system prompt and
an ordered list of message parts (text and image references) and returns the
raw model text; schema handling and retries live in providers/manager.py.
"""
from __future__ import annotations

import base64
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal, Sequence

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


# ── Message parts ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MessagePart:
    kind: Literal["text", "image"]
    value: str            # text, or an http(s) / data: URL

    @classmethod
    def text(cls, value: str) -> "MessagePart":
        return cls(kind="text", value=value)

    @classmethod
    def image(cls, url: str) -> "MessagePart":
        return cls(kind="image", value=url)

    @property
    def is_data_url(self) -> bool:
        return self.kind == "image" and self.value.startswith("data:")


def split_data_url(url: str) -> tuple[str, bytes]:
    """Return (mime_type, raw_bytes) for a base64 data: URL."""
    m = _DATA_URL_RE.match(url)
    if not m:
        raise ValueError("Not a base64 data: URL")
    return m.group("mime"), base64.b64decode(m.group("payload"))


def split_data_url_b64(url: str) -> tuple[str, str]:
    """Return (mime_type, base64_payload) without decoding."""
    m = _DATA_URL_RE.match(url)
    if not m:
        raise ValueError("Not a base64 data: URL")
    return m.group("mime"), m.group("payload")


# ── Shared result type ─────────────────────────────────────────────────────────

@dataclass
class Completion:
    """Raw reply from a single provider call."""
    provider_name: str          # e.g. "openai/gpt-4o"
    text: str
    latency_ms: int
    input_tokens: int
    output_tokens: int
    cost_usd: float             # estimated cost

    @property
    def cost_str(self) -> str:
        if self.cost_usd < 0.001:
            return f"${self.cost_usd * 1000:.3f}m"   # show in milli-dollars
        return f"${self.cost_usd:.4f}"


def parse_json_response(raw: str, provider_name: str) -> dict:
    """
    Parse JSON from a model response, handling markdown fences gracefully.
    Raises ValueError on parse failure or when the reply isn't a JSON object.
    """
    text = (raw or "").strip()
    # Strip ```json ... ``` or ``` ... ``` fences if present
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("[%s] Non-JSON response: %s", provider_name, (raw or "")[:300])
        raise ValueError(f"[{provider_name}] JSON parse error: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"[{provider_name}] Expected a JSON object, got {type(data).__name__}")
    return data


# ── Abstract base ──────────────────────────────────────────────────────────────

class VisionProvider(ABC):
    """Base class all vision providers must implement."""

    name: str           # e.g. "openai"
    model_id: str       # e.g. "gpt-4o"
    cost_per_1k_input_tokens: float
    cost_per_1k_output_tokens: float

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        parts: Sequence[MessagePart],
        max_tokens: int,
    ) -> Completion:
        """
        Run one vision inference call and return the raw reply.
        Must raise errors.ProviderError for SDK or transport failures.
        """
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens / 1000 * self.cost_per_1k_input_tokens
            + output_tokens / 1000 * self.cost_per_1k_output_tokens
        )
