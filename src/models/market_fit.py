"""Market-fit models.

The request body uses the camelCase keys the dashboard sends.  The response
is deliberately free-form: only ``overall_fit_score`` and ``segments`` are
checked, every other section is passed through as the model produced it.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MARKET_FIT_SECTIONS = (
    "market_size_estimate",
    "competitive_landscape",
    "recommendations",
    "market_opportunities",
    "risk_assessment",
    "cultural_insights",
)


class MarketFitRequest(BaseModel):
    """Body of ``POST /api/v1/market-fit-analysis``.

    All four fields are required by the endpoint; they are optional here so
    the pipeline can report exactly which ones are missing.
    """

    model_config = ConfigDict(populate_by_name=True)

    description: str | None = None
    industry: str | None = None
    target_market: str | None = Field(default=None, alias="targetMarket")
    business_model: str | None = Field(default=None, alias="businessModel")

    def missing_fields(self) -> list[str]:
        required = {
            "description": self.description,
            "industry": self.industry,
            "targetMarket": self.target_market,
            "businessModel": self.business_model,
        }
        return [name for name, value in required.items() if not (value and value.strip())]


class MarketFitResponse(BaseModel):
    """Coarse contract: two required fields, everything else passed through."""

    model_config = ConfigDict(extra="allow")

    overall_fit_score: float = Field(ge=0, le=100)
    segments: list[dict[str, Any]]
