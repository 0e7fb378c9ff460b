"""
Command-line entry point.

Reads one or more product photos, runs the whole pipeline in one asyncio
event loop and prints the resulting listing draft as JSON:

    python main.py front.jpg back.jpg --language nb-NO --primary 0

Provider, model and keys come from .env (see config.py); --provider and
--model override them for a single run.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

import config
from errors import ListingDraftError
from imaging.files import ImageFile
from languages import SUPPORTED_LANGUAGES, format_price
from pipeline import analyze_files
from providers.manager import get_provider

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=getattr(logging, level, logging.INFO),
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a listing draft from product photos.")
    parser.add_argument("images", nargs="+", help="image files (jpeg, png, webp, heic)")
    parser.add_argument("--language", default=config.DEFAULT_LANGUAGE, help=f"one of {', '.join(SUPPORTED_LANGUAGES)}")
    parser.add_argument("--primary", type=int, default=0, help="index of the main photo")
    parser.add_argument("--provider", default=None, help="openai | anthropic | google")
    parser.add_argument("--model", default=None, help="model id override")
    parser.add_argument("--max-tokens", type=int, default=config.MAX_OUTPUT_TOKENS)
    return parser


async def run(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        files = [ImageFile.from_path(p) for p in args.images]
        provider = get_provider(args.provider, args.model)
        draft = await analyze_files(
            files,
            language=args.language,
            primary_index=args.primary,
            max_tokens=args.max_tokens,
            provider=provider,
        )
    except OSError as exc:
        logger.error("Could not read image: %s", exc)
        return 2
    except ListingDraftError as exc:
        logger.error("Listing draft failed: %s", exc)
        return 1

    logger.info(
        "✅ %s (%s)",
        draft.summary(), format_price(draft.pricing.suggested_price_nok, draft.language),
    )
    print(draft.model_dump_json(indent=2, exclude_none=True))
    return 0


def main() -> None:
    configure_logging()
    try:
        sys.exit(asyncio.run(run()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
