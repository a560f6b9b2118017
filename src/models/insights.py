"""Insight domain models: personas, trends and content suggestions.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph; no imports from upper layers).
#
# Two families live here:
#
#   1. The *contract* models (Persona, Trend, ContentSuggestion, ...) that
#      LLM output is validated against.  ``InsightsPayload`` is the whole
#      JSON object the deep pipeline asks the model for.  Validation is
#      exhaustive: one bad field anywhere rejects the whole payload.
#   2. ``InsightsResult``: the append-only row persisted per generation,
#      carrying the validated collections, the raw cultural payload used
#      and an optional ``warning`` when fallback synthesis was substituted.
#
# Invariants enforced by the contract models:
#   - every persona/trend/suggestion has a non-empty name/title and
#     description
#   - required arrays are present (empty is fine, missing is not)
#   - confidences are whole numbers 0..100 (``85.0`` is accepted as 85,
#     ``0.85`` is rejected)
#   - affinity scores are fractions 0..1
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _integral_float_to_int(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# 0..100 whole number.  Strict after normalisation, so 0.85, "85" and
# True are rejected while 85.0 becomes 85.
WholeConfidence = Annotated[
    int, BeforeValidator(_integral_float_to_int), Field(strict=True, ge=0, le=100)
]


class Demographics(BaseModel):
    """Demographic block nested in every persona."""

    age_range: str = Field(min_length=1)
    interests: list[str]
    platforms: list[str]


class Persona(BaseModel):
    """An audience persona."""

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    characteristics: list[str]
    demographics: Demographics
    cultural_affinities: list[str] | None = None
    behavioral_patterns: list[str] | None = None
    affinity_scores: dict[str, float] | None = None

    @field_validator("affinity_scores")
    @classmethod
    def _scores_are_fractions(cls, value: dict[str, float] | None) -> dict[str, float] | None:
        for domain, score in (value or {}).items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"affinity score for {domain!r} must be between 0 and 1")
        return value


class Trend(BaseModel):
    """A cultural trend with a whole-number confidence."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    confidence: WholeConfidence
    impact: str = Field(min_length=1)
    timeline: str = Field(min_length=1)
    qloo_connection: str | None = None
    affinity_score: float | None = Field(default=None, ge=0, le=1)


class ContentSuggestion(BaseModel):
    """A platform-targeted content idea."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    platforms: list[str]
    content_type: str = Field(min_length=1)
    # "copy" would shadow BaseModel.copy, so the attribute is aliased.
    copy_text: str = Field(alias="copy", min_length=1)
    engagement_potential: str = Field(min_length=1)
    cultural_timing: str | None = None
    affinity_score: float | None = Field(default=None, ge=0, le=1)


class TasteIntersection(BaseModel):
    """Where two or more personas share tastes."""

    intersection_name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    shared_attributes: list[str] = Field(default_factory=list)
    overlap_percentage: float = Field(default=0, ge=0, le=100)
    personas_involved: list[str] = Field(default_factory=list)
    common_interests: list[str] = Field(default_factory=list)
    shared_brands: list[str] | None = None
    behavioral_overlaps: list[str] | None = None
    marketing_opportunities: list[str] = Field(default_factory=list)


class CrossDomainRecommendation(BaseModel):
    """A suggestion to expand from one cultural domain into another."""

    source_domain: str = Field(min_length=1)
    target_domain: str = Field(min_length=1)
    recommendation_title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    confidence_score: float = Field(default=0, ge=0, le=100)
    related_entities: list[str] = Field(default_factory=list)
    expansion_opportunities: list[str] = Field(default_factory=list)
    audience_fit: float = Field(default=0, ge=0, le=1)
    implementation_difficulty: Literal["Low", "Medium", "High"] = "Medium"
    potential_reach: str | None = None


class InsightsPayload(BaseModel):
    """The complete insight object the deep pipeline asks the LLM for."""

    audience_personas: list[Persona]
    cultural_trends: list[Trend]
    content_suggestions: list[ContentSuggestion]
    taste_intersections: list[TasteIntersection] = Field(default_factory=list)
    cross_domain_recommendations: list[CrossDomainRecommendation] = Field(default_factory=list)


class InsightsResult(BaseModel):
    """One persisted generation for a project. Never mutated after creation."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    audience_personas: list[Persona]
    cultural_trends: list[Trend]
    content_suggestions: list[ContentSuggestion]
    taste_intersections: list[TasteIntersection] = Field(default_factory=list)
    cross_domain_recommendations: list[CrossDomainRecommendation] = Field(default_factory=list)
    qloo_data: dict[str, Any] = Field(default_factory=dict)
    warning: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)

    def to_response(self) -> dict[str, Any]:
        """JSON-ready dict with unset optionals (including ``warning``) omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
