"""
Central configuration: reads from .env file.

Everything here is a plain module attribute so that callers (and tests) can
read config.X at call time and monkeypatch it freely. Importing this module
never fails on a missing key: the provider manager raises ConfigurationError
only when a provider is actually requested without its key.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── AI Vision providers ────────────────────────────────────────────────────────
# Add keys for whichever providers you have access to.
OPENAI_API_KEY: str | None    = os.getenv("OPENAI_API_KEY")
ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
GOOGLE_API_KEY: str | None    = os.getenv("GOOGLE_API_KEY")

# Which provider drafts listings:
#   openai     → gpt-4o (default)
#   anthropic  → claude-3-5-sonnet-20241022
#   google     → gemini-2.0-flash
DRAFT_PROVIDER: str = os.getenv("DRAFT_PROVIDER", "openai").strip().lower()

# Optional model override for the selected provider, e.g. "gpt-4o-mini"
DRAFT_MODEL: str | None = os.getenv("DRAFT_MODEL", "").strip() or None

DEFAULT_MODELS: dict[str, str] = {
    "openai":    "gpt-4o",
    "anthropic": "claude-3-5-sonnet-20241022",
    "google":    "gemini-2.0-flash",
}

# ── Draft generation ──────────────────────────────────────────────────────────
DEFAULT_LANGUAGE: str        = os.getenv("DEFAULT_LANGUAGE", "en-US")
MAX_OUTPUT_TOKENS: int       = int(os.getenv("MAX_OUTPUT_TOKENS", "1200"))

# Seconds allowed for downloading a remote http(s) image that a provider
# cannot fetch by itself (Gemini)
REMOTE_IMAGE_TIMEOUT: float = float(os.getenv("REMOTE_IMAGE_TIMEOUT", "15"))

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
