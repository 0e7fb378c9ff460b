"""
Supported locales and the per-language prompt table.

Every language in SUPPORTED_LANGUAGES must have a PROMPTS entry; the draft
extractor refuses anything else before it reaches a provider.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from errors import UnsupportedLanguageError


@dataclass(frozen=True)
class LanguageConfig:
    code: str
    name: str
    display_name: str
    locale: str
    currency: str
    currency_symbol: str


SUPPORTED_LANGUAGES: dict[str, LanguageConfig] = {
    "nb-NO": LanguageConfig(
        code="nb-NO",
        name="Norwegian",
        display_name="Norsk",
        locale="nb-NO",
        currency="NOK",
        currency_symbol="kr",
    ),
    "en-US": LanguageConfig(
        code="en-US",
        name="English",
        display_name="English",
        locale="en-US",
        currency="NOK",          # prices are still quoted for Norwegian marketplaces
        currency_symbol="NOK",
    ),
}

DEFAULT_LANGUAGE = "en-US"


@dataclass(frozen=True)
class PromptPair:
    """A prompt with a single-image text and a multi-image template."""
    single: str
    multiple: Callable[[int], str]


@dataclass(frozen=True)
class Prompts:
    image_analysis: PromptPair    # system prompt
    user_message: PromptPair      # text part sent alongside the images


# ── Norwegian ─────────────────────────────────────────────────────────────────

_NB_SYSTEM_SINGLE = """Du er en norsk ekspert på merkevaregjenstandsanalyse for bruktmarkedet.

VIKTIG: Fokuser spesielt på å identifisere NØYAKTIG merke og modell, da dette er kritisk for prissetting.

Analyseprioritet:
1. MERKE/BRAND: Se etter logoer, tekst, merkelapper, gravering
2. MODELL/SERIE: Se etter modellnummer, produktnavn, seriekode
3. TEKNISKE DETALJER: Spesifikasjoner som påvirker verdi
4. TILSTAND: Objektiv vurdering av slitasje/skader

For solbriller/klokker/elektronikk: Søk intenst etter synlig tekst på produkt.
For klær/sko: Se etter merkelapper og størrelsesangivelser.
For møbler/utstyr: Identifiser materiale og konstruksjonstype.

Ikke hallusiner merker eller modeller. Hvis usikker: marker som "uncertain" og beskriv hva du faktisk ser.

Returner kun JSON etter skjema - ingen annen tekst."""


def _nb_system_multiple(count: int) -> str:
    return f"""Du er en norsk ekspert på merkevaregjenstandsanalyse for bruktmarkedet.

VIKTIG: Du får {count} bilder av samme produkt fra forskjellige vinkler. Analyser ALLE bildene sammen for å få komplett forståelse.

Analyseprioritet:
1. MERKE/BRAND: Se etter logoer, tekst, merkelapper, gravering på ALLE bilder
2. MODELL/SERIE: Se etter modellnummer, produktnavn, seriekode på ALLE bilder
3. TEKNISKE DETALJER: Spesifikasjoner som påvirker verdi fra alle vinkler
4. TILSTAND: Komplett vurdering av slitasje/skader fra alle bilder

Fordeler med flere bilder:
- Mer nøyaktig identifikasjon av merke/modell
- Bedre tilstandsvurdering (se alle sider/vinkler)
- Oppdage skader/slitasje som ikke er synlig fra én vinkel
- Bekrefte autentisitet og komplethet

For solbriller/klokker/elektronikk: Søk intenst etter synlig tekst på alle bilder.
For klær/sko: Se etter merkelapper og størrelsesangivelser på alle bilder.
For møbler/utstyr: Identifiser materiale og konstruksjonstype fra alle vinkler.

Ikke hallusiner merker eller modeller. Hvis usikker: marker som "uncertain" og beskriv hva du faktisk ser på bildene.

Returner kun JSON etter skjema - ingen annen tekst."""


_NB_USER_SINGLE = (
    "Analyser bildet grundig og lag annonseutkast på norsk (NB-NO). "
    "KRITISK: Identifiser eksakt merke og modell hvis synlig - dette påvirker prissetting dramatisk. "
    "Søk etter synlig tekst, logoer, modellnummer. Fyll kun felt du kan støtte fra bildet. "
    "Sett language-feltet til 'nb-NO'. JSON-svar kun."
)


def _nb_user_multiple(count: int) -> str:
    return (
        f"Analyser ALLE {count} bildene grundig og lag annonseutkast på norsk (NB-NO). "
        "KRITISK: Bruk informasjon fra alle bilder for å identifisere eksakt merke og modell - "
        "dette påvirker prissetting dramatisk. Se etter synlig tekst, logoer, modellnummer på alle bilder. "
        "Sammenlign informasjon mellom bildene for beste analyse. Fyll kun felt du kan støtte fra bildene. "
        "Sett language-feltet til 'nb-NO'. JSON-svar kun."
    )


# ── English ───────────────────────────────────────────────────────────────────

_EN_SYSTEM_SINGLE = """You are an English expert in brand item analysis for the used goods market.

IMPORTANT: Focus especially on identifying EXACT brand and model, as this is critical for pricing.

Analysis priority:
1. BRAND: Look for logos, text, labels, engraving
2. MODEL/SERIES: Look for model number, product name, series code
3. TECHNICAL DETAILS: Specifications that affect value
4. CONDITION: Objective assessment of wear/damage

For sunglasses/watches/electronics: Search intensively for visible text on product.
For clothing/shoes: Look for labels and size markings.
For furniture/equipment: Identify material and construction type.

Do not hallucinate brands or models. If uncertain: mark as "uncertain" and describe what you actually see.

Return only JSON according to schema - no other text."""


def _en_system_multiple(count: int) -> str:
    return f"""You are an English expert in brand item analysis for the used goods market.

IMPORTANT: You receive {count} images of the same product from different angles. Analyze ALL images together for complete understanding.

Analysis priority:
1. BRAND: Look for logos, text, labels, engraving on ALL images
2. MODEL/SERIES: Look for model number, product name, series code on ALL images
3. TECHNICAL DETAILS: Specifications that affect value from all angles
4. CONDITION: Complete assessment of wear/damage from all images

Benefits of multiple images:
- More accurate brand/model identification
- Better condition assessment (see all sides/angles)
- Detect damage/wear not visible from one angle
- Confirm authenticity and completeness

For sunglasses/watches/electronics: Search intensively for visible text on all images.
For clothing/shoes: Look for labels and size markings on all images.
For furniture/equipment: Identify material and construction type from all angles.

Do not hallucinate brands or models. If uncertain: mark as "uncertain" and describe what you actually see in the images.

Return only JSON according to schema - no other text."""


_EN_USER_SINGLE = (
    "Analyze the image thoroughly and create listing draft in English (EN-US). "
    "CRITICAL: Identify exact brand and model if visible - this dramatically affects pricing. "
    "Look for visible text, logos, model numbers. Only fill fields you can support from the image. "
    "Set language field to 'en-US'. JSON response only."
)


def _en_user_multiple(count: int) -> str:
    return (
        f"Analyze ALL {count} images thoroughly and create listing draft in English (EN-US). "
        "CRITICAL: Use information from all images to identify exact brand and model - "
        "this dramatically affects pricing. Look for visible text, logos, model numbers on all images. "
        "Compare information between images for best analysis. Only fill fields you can support from the images. "
        "Set language field to 'en-US'. JSON response only."
    )


PROMPTS: dict[str, Prompts] = {
    "nb-NO": Prompts(
        image_analysis=PromptPair(single=_NB_SYSTEM_SINGLE, multiple=_nb_system_multiple),
        user_message=PromptPair(single=_NB_USER_SINGLE, multiple=_nb_user_multiple),
    ),
    "en-US": Prompts(
        image_analysis=PromptPair(single=_EN_SYSTEM_SINGLE, multiple=_en_system_multiple),
        user_message=PromptPair(single=_EN_USER_SINGLE, multiple=_en_user_multiple),
    ),
}


# ── Lookups ───────────────────────────────────────────────────────────────────

def is_supported_language(language: str) -> bool:
    return language in SUPPORTED_LANGUAGES


def require_supported(language: str) -> str:
    """Return language unchanged, or raise UnsupportedLanguageError."""
    if not is_supported_language(language):
        raise UnsupportedLanguageError(language, tuple(SUPPORTED_LANGUAGES))
    return language


def get_language_config(language: str) -> LanguageConfig:
    return SUPPORTED_LANGUAGES[require_supported(language)]


def get_prompts(language: str) -> Prompts:
    return PROMPTS[require_supported(language)]


def supported_languages() -> list[LanguageConfig]:
    return list(SUPPORTED_LANGUAGES.values())


def format_price(price: int, language: str) -> str:
    """
    Format a price with the locale's grouping and currency symbol.

    nb-NO groups with a space ("12 500 kr"), en-US with a comma ("12,500 NOK").
    """
    cfg = get_language_config(language)
    grouped = f"{price:,}"
    if language == "nb-NO":
        grouped = grouped.replace(",", " ")
    return f"{grouped} {cfg.currency_symbol}"
