"""Orchestrators for the CulturePrism insight endpoints."""

from src.pipeline.insight_orchestrator import InsightGenerationPipeline
from src.pipeline.live_discovery import LiveDiscoveryPipeline
from src.pipeline.market_fit import MarketFitPipeline
from src.pipeline.stage_tracker import StageTracker

__all__ = [
    "InsightGenerationPipeline",
    "LiveDiscoveryPipeline",
    "MarketFitPipeline",
    "StageTracker",
]
