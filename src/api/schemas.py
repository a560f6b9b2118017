"""Pydantic request/response schemas for the CulturePrism API.

Domain models (projects, insights, live insights, conversation messages)
live in ``src/models``; this module only defines the HTTP envelopes around
them.

# ─── RESPONSE ENVELOPES ───────────────────────────────────────────────
#
#   generate-insights     {success: true, data, warning?}
#   live-discovery        {success: true, data}
#   market-fit-analysis   raw analysis object (no envelope)
#   errors                {error, timestamp}
#   market-fit errors     {error, details}
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from src.models.live import LiveInsights


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GenerateInsightsRequest(BaseModel):
    """Body of ``POST /api/v1/generate-insights``.

    ``project_id`` is optional here so a missing value becomes a 400 with
    the domain message instead of a framework validation error.
    """

    project_id: str | None = None


class InsightsResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    warning: str | None = None


class LiveDiscoveryResponse(BaseModel):
    success: bool = True
    data: LiveInsights


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    timestamp: datetime = Field(default_factory=_utc_now)


class MarketFitErrorResponse(BaseModel):
    """Error body of the market-fit endpoint."""

    error: str
    details: str
