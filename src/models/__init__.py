"""CulturePrism domain models — re-exports all public model classes.

Other parts of the codebase import from ``src.models`` directly
(e.g. ``from src.models import Project``) rather than from the submodules.

The models are organized by domain concern:
    - project.py      — user-owned projects and the generation brief
    - insights.py     — persona/trend/suggestion contract + persisted result
    - live.py         — live-discovery request and lightweight insight shape
    - market_fit.py   — market-fit request and coarse response contract
    - conversation.py — conversational-planning messages
    - cache.py        — cultural-data cache entries
    - pipeline.py     — request stages and terminal outcomes
"""

from __future__ import annotations

from src.models.cache import CacheEntry
from src.models.conversation import (
    ConversationMessage,
    ConversationRequest,
    MessageIntent,
    MessageMetadata,
)
from src.models.insights import (
    ContentSuggestion,
    CrossDomainRecommendation,
    Demographics,
    InsightsPayload,
    InsightsResult,
    Persona,
    TasteIntersection,
    Trend,
)
from src.models.live import (
    LiveContent,
    LiveDiscoveryRequest,
    LiveInsights,
    LivePersona,
    LiveTrend,
)
from src.models.market_fit import MARKET_FIT_SECTIONS, MarketFitRequest, MarketFitResponse
from src.models.pipeline import RequestOutcome, RequestStage
from src.models.project import InsightBrief, Project, ProjectCreate, ProjectUpdate

__all__ = [
    "MARKET_FIT_SECTIONS",
    "CacheEntry",
    "ContentSuggestion",
    "ConversationMessage",
    "ConversationRequest",
    "CrossDomainRecommendation",
    "Demographics",
    "InsightBrief",
    "InsightsPayload",
    "InsightsResult",
    "LiveContent",
    "LiveDiscoveryRequest",
    "LiveInsights",
    "LivePersona",
    "LiveTrend",
    "MarketFitRequest",
    "MarketFitResponse",
    "MessageIntent",
    "MessageMetadata",
    "Persona",
    "Project",
    "ProjectCreate",
    "ProjectUpdate",
    "RequestOutcome",
    "RequestStage",
    "TasteIntersection",
    "Trend",
]
