"""Live-discovery models: the lightweight, unpersisted insight shape.

Live discovery trades depth for latency: fewer items, numeric scores instead
of prose, and nothing stored.  ``LiveDiscoveryRequest`` is the request body;
``LiveInsights`` is both the LLM contract and the response payload.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from src.models.insights import WholeConfidence
from src.models.project import InsightBrief


class LiveDiscoveryRequest(BaseModel):
    """Body of ``POST /api/v1/live-discovery``.

    ``description`` is optional at the schema level so a missing value is
    reported as a 400 with a domain message rather than a framework error.
    """

    description: str | None = None
    industry: str | None = None
    cultural_domains: list[str] = Field(default_factory=list)
    geographic_targets: list[str] = Field(default_factory=list)
    age_range: tuple[int, int] | None = None

    @field_validator("cultural_domains", "geographic_targets", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value

    def to_brief(self) -> InsightBrief:
        return InsightBrief(
            description=self.description or "",
            industry=self.industry,
            cultural_domains=list(self.cultural_domains),
            geographical_targets=list(self.geographic_targets),
            age_range=self.age_range,
        )


class LivePersona(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    affinity_score: float = Field(ge=0, le=1)
    key_traits: list[str]
    platforms: list[str]
    confidence: WholeConfidence


class LiveTrend(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    strength: float = Field(ge=0, le=100)
    timeline: str
    confidence: WholeConfidence


class LiveContent(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    platforms: list[str]
    engagement_potential: float = Field(ge=0, le=100)
    confidence: WholeConfidence


class LiveInsights(BaseModel):
    """Live-discovery result returned as ``data`` in the response envelope."""

    personas: list[LivePersona]
    trends: list[LiveTrend]
    content: list[LiveContent]
    market_fit_score: float = Field(ge=0, le=100)
    cultural_relevance: float = Field(ge=0, le=100)
