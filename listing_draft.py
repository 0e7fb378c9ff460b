"""
ListingDraft: the versioned, language-tagged record produced from product photos.

This is the canonical home of the schema. The providers never see these classes
directly; they receive ListingDraft.json_schema() as text and their replies are
validated back through ListingDraft.model_validate().
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCHEMA_VERSION = "1.0"

Language = Literal["nb-NO", "en-US"]
Condition = Literal["new", "like_new", "used_good", "used_fair", "for_parts"]


def clamp_unit(value: Any) -> Any:
    """Clamp numeric confidences into [0, 1]; leave anything else for pydantic to reject."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return min(max(float(value), 0.0), 1.0)
    return value


class Category(BaseModel):
    primary: str = Field(min_length=2, max_length=50)
    secondary: Optional[str] = Field(default=None, max_length=50)
    confidence: float = Field(ge=0, le=1)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_scores(cls, v: Any) -> Any:
        return clamp_unit(v)


class Dimensions(BaseModel):
    width: Optional[float] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, ge=0)
    depth: Optional[float] = Field(default=None, ge=0)


class Attributes(BaseModel):
    # model, model_number and model_confidence are product fields, not pydantic API
    model_config = ConfigDict(protected_namespaces=())

    condition: Condition
    brand: Optional[str] = Field(default=None, max_length=60)
    model: Optional[str] = Field(default=None, max_length=80)
    model_number: Optional[str] = Field(default=None, max_length=50)   # model code if visible
    series: Optional[str] = Field(default=None, max_length=60)         # product line, e.g. "Holbrook"
    color: Optional[str] = Field(default=None, max_length=40)
    material: Optional[str] = Field(default=None, max_length=60)
    size: Optional[str] = Field(default=None, max_length=40)
    dimensions_cm: Optional[Dimensions] = None
    weight_kg: Optional[float] = Field(default=None, ge=0)
    technical_specs: Optional[list[str]] = None
    visible_text: Optional[list[str]] = None
    defects: Optional[list[str]] = None
    included_items: Optional[list[str]] = None
    serials_visible: Optional[bool] = None
    brand_confidence: Optional[float] = Field(default=None, ge=0, le=1)
    model_confidence: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("brand_confidence", "model_confidence", mode="before")
    @classmethod
    def clamp_scores(cls, v: Any) -> Any:
        return clamp_unit(v)


class Pricing(BaseModel):
    suggested_price_nok: int = Field(gt=0)
    confidence: float = Field(ge=0, le=1)
    basis: list[str] = Field(min_length=1, max_length=5)   # short bullet reasons

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_scores(cls, v: Any) -> Any:
        return clamp_unit(v)


class Media(BaseModel):
    image_count: int = Field(gt=0)
    main_image_summary: str = Field(min_length=10, max_length=300)
    quality_score: float = Field(ge=0, le=1)
    issues: Optional[list[str]] = None
    multiple_angles: Optional[bool] = None
    analysis_completeness: Optional[float] = Field(default=None, ge=0, le=1)

    @field_validator("quality_score", "analysis_completeness", mode="before")
    @classmethod
    def clamp_scores(cls, v: Any) -> Any:
        return clamp_unit(v)


class Moderation(BaseModel):
    flags: list[str] = Field(default_factory=list)
    uncertainties: list[str] = Field(default_factory=list)


class ListingDraft(BaseModel):
    """Structured listing draft, strict enough to publish from after review."""
    version: Literal["1.0"] = SCHEMA_VERSION
    language: Language
    title: str = Field(min_length=5, max_length=120)
    description: str = Field(min_length=30, max_length=2000)
    category: Category
    attributes: Attributes
    pricing: Pricing
    media: Media
    moderation: Moderation = Field(default_factory=Moderation)
    tags: list[str] = Field(default_factory=list, max_length=15)

    @classmethod
    def json_schema(cls) -> dict[str, Any]:
        return cls.model_json_schema()

    def with_language(self, language: str) -> "ListingDraft":
        """Return a copy tagged with language, whatever the model claimed."""
        return self.model_validate({**self.model_dump(), "language": language})

    def summary(self) -> str:
        return (
            f"{self.title} | {self.category.primary} | "
            f"{self.attributes.condition} | {self.pricing.suggested_price_nok} NOK"
        )
