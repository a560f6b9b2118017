"""Unit tests for the deep, live and market-fit orchestrators.

Collaborators are ``MagicMock(spec=...)`` stand-ins with ``AsyncMock``
coroutine methods; the cultural-data cache is real, on the in-memory
backend.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.auth_provider import AuthenticatedUser
from src.interfaces.cultural_graph_provider import ICulturalGraphProvider
from src.interfaces.insights_store import IInsightsStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.project_store import IProjectStore
from src.models.insights import InsightsPayload
from src.models.live import LiveDiscoveryRequest, LiveInsights
from src.models.market_fit import MarketFitRequest
from src.models.pipeline import RequestOutcome, RequestStage
from src.models.project import Project
from src.pipeline.insight_orchestrator import InsightGenerationPipeline
from src.pipeline.live_discovery import LiveDiscoveryPipeline
from src.pipeline.market_fit import MarketFitPipeline
from src.pipeline.stage_tracker import StageTracker
from src.providers.cache.memory_cache import MemoryCulturalCacheStore
from src.services.cultural_cache import CulturalDataCache
from src.services.fallback_synthesizer import FALLBACK_WARNING
from src.utils.errors import (
    ConfigurationError,
    InputValidationError,
    NotFoundError,
    OutputShapeError,
    PersistenceError,
    UpstreamCredentialError,
    UpstreamRateLimitedError,
    UpstreamTransientError,
)

_TASTE = {"affinity_scores": {"coffee": 0.91}, "taste_profile": {"domains": ["coffee"]}}


# ---------------------------------------------------------------------------
# Mock builders
# ---------------------------------------------------------------------------


def _mock_graph(available: bool = True) -> MagicMock:
    graph = MagicMock(spec=ICulturalGraphProvider)
    graph.taste_insights = AsyncMock(return_value=dict(_TASTE))
    graph.insights = AsyncMock(return_value={"results": {"tags": []}})
    graph.resolve_tag = AsyncMock(side_effect=lambda query, tag_type: f"urn:{tag_type}:{query}")
    graph.is_available.return_value = available
    graph.get_provider_name.return_value = "qloo"
    return graph


def _mock_llm(result: Any = None, available: bool = True) -> MagicMock:
    llm = MagicMock(spec=ILLMProvider)
    llm.complete_json = AsyncMock(return_value=result)
    llm.is_available.return_value = available
    llm.get_provider_name.return_value = "openai"
    return llm


def _mock_project_store(project: Project | None) -> MagicMock:
    store = MagicMock(spec=IProjectStore)
    store.get = AsyncMock(return_value=project)
    return store


def _mock_insights_store() -> MagicMock:
    store = MagicMock(spec=IInsightsStore)
    store.save = AsyncMock(side_effect=lambda result: result)
    return store


def _deep_pipeline(
    project: Project | None,
    graph: MagicMock,
    llm: MagicMock,
    insights_store: MagicMock | None = None,
    cache: CulturalDataCache | None = None,
) -> InsightGenerationPipeline:
    return InsightGenerationPipeline(
        project_store=_mock_project_store(project),
        insights_store=insights_store or _mock_insights_store(),
        cache=cache or CulturalDataCache(MemoryCulturalCacheStore()),
        cultural_graph=graph,
        llm=llm,
    )


# ======================================================================
# Deep pipeline
# ======================================================================


class TestInsightGenerationPipeline:
    @pytest.mark.asyncio
    async def test_happy_path(self, user: AuthenticatedUser, project: Project, insights_dict) -> None:
        graph = _mock_graph()
        llm = _mock_llm(InsightsPayload.model_validate(insights_dict))
        insights_store = _mock_insights_store()
        tracker = StageTracker("deep")
        pipeline = _deep_pipeline(project, graph, llm, insights_store)

        result = await pipeline.generate_insights(user, project.id, tracker)

        assert result.warning is None
        assert len(result.audience_personas) == 3
        assert result.qloo_data == _TASTE
        insights_store.save.assert_awaited_once()
        assert llm.complete_json.await_args.kwargs["model"] == "gpt-4"
        assert tracker.outcome is RequestOutcome.OK
        assert tracker.stages == [
            RequestStage.RECEIVED,
            RequestStage.AUTHENTICATED,
            RequestStage.INPUT_VALIDATED,
            RequestStage.CACHE_CHECK,
            RequestStage.UPSTREAM_CULTURAL_CALL,
            RequestStage.PROMPT_BUILT,
            RequestStage.LLM_CALL,
            RequestStage.OUTPUT_VALIDATED,
            RequestStage.PERSISTED,
            RequestStage.RESPONDED,
        ]

    @pytest.mark.asyncio
    async def test_missing_project_id(self, user: AuthenticatedUser) -> None:
        pipeline = _deep_pipeline(None, _mock_graph(), _mock_llm())
        with pytest.raises(InputValidationError, match="Missing project_id"):
            await pipeline.generate_insights(user, None)

    @pytest.mark.asyncio
    async def test_unknown_project(self, user: AuthenticatedUser) -> None:
        graph = _mock_graph()
        pipeline = _deep_pipeline(None, graph, _mock_llm())
        tracker = StageTracker("deep")
        with pytest.raises(NotFoundError):
            await pipeline.generate_insights(user, "missing", tracker)
        graph.taste_insights.assert_not_awaited()
        assert tracker.outcome is RequestOutcome.CLIENT_ERROR

    @pytest.mark.asyncio
    async def test_cache_hit_skips_graph(self, user: AuthenticatedUser, project: Project, insights_dict) -> None:
        graph = _mock_graph()
        llm = _mock_llm(InsightsPayload.model_validate(insights_dict))
        cache = CulturalDataCache(MemoryCulturalCacheStore())
        pipeline = _deep_pipeline(project, graph, llm, cache=cache)

        await pipeline.generate_insights(user, project.id)
        tracker = StageTracker("deep")
        second = await pipeline.generate_insights(user, project.id, tracker)

        assert graph.taste_insights.await_count == 1
        assert second.qloo_data == _TASTE
        assert RequestStage.UPSTREAM_CULTURAL_CALL not in tracker.stages

    @pytest.mark.asyncio
    async def test_graph_outage_uses_uncached_mock(
        self, user: AuthenticatedUser, project: Project, insights_dict
    ) -> None:
        graph = _mock_graph()
        graph.taste_insights.side_effect = UpstreamTransientError(provider_name="qloo")
        llm = _mock_llm(InsightsPayload.model_validate(insights_dict))
        cache = CulturalDataCache(MemoryCulturalCacheStore())
        pipeline = _deep_pipeline(project, graph, llm, cache=cache)

        result = await pipeline.generate_insights(user, project.id)

        assert result.qloo_data["mock"] is True
        assert result.warning is None
        assert await cache.lookup(project.to_brief()) is None

    @pytest.mark.asyncio
    async def test_graph_unconfigured_uses_mock(
        self, user: AuthenticatedUser, project: Project, insights_dict
    ) -> None:
        graph = _mock_graph(available=False)
        pipeline = _deep_pipeline(project, graph, _mock_llm(InsightsPayload.model_validate(insights_dict)))

        result = await pipeline.generate_insights(user, project.id)

        graph.taste_insights.assert_not_awaited()
        assert result.qloo_data["mock"] is True

    @pytest.mark.asyncio
    async def test_graph_rate_limit_propagates(self, user: AuthenticatedUser, project: Project) -> None:
        graph = _mock_graph()
        graph.taste_insights.side_effect = UpstreamRateLimitedError(provider_name="qloo")
        llm = _mock_llm()
        tracker = StageTracker("deep")
        pipeline = _deep_pipeline(project, graph, llm)

        with pytest.raises(UpstreamRateLimitedError):
            await pipeline.generate_insights(user, project.id, tracker)

        llm.complete_json.assert_not_awaited()
        assert tracker.outcome is RequestOutcome.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_invalid_llm_output_falls_back(self, user: AuthenticatedUser, project: Project) -> None:
        llm = _mock_llm()
        llm.complete_json.side_effect = OutputShapeError(
            provider_name="openai", errors=["cultural_trends: Field required"]
        )
        insights_store = _mock_insights_store()
        tracker = StageTracker("deep")
        pipeline = _deep_pipeline(project, _mock_graph(), llm, insights_store)

        result = await pipeline.generate_insights(user, project.id, tracker)

        assert result.warning == FALLBACK_WARNING
        assert len(result.audience_personas) == 3
        assert len(result.cultural_trends) == 4
        assert len(result.content_suggestions) == 6
        insights_store.save.assert_awaited_once()
        assert tracker.outcome is RequestOutcome.OK_WITH_WARNING

    @pytest.mark.asyncio
    async def test_llm_outage_falls_back(self, user: AuthenticatedUser, project: Project) -> None:
        llm = _mock_llm()
        llm.complete_json.side_effect = UpstreamTransientError(provider_name="openai")
        pipeline = _deep_pipeline(project, _mock_graph(), llm)
        result = await pipeline.generate_insights(user, project.id)
        assert result.warning == FALLBACK_WARNING

    @pytest.mark.asyncio
    async def test_llm_unconfigured_falls_back(self, user: AuthenticatedUser, project: Project) -> None:
        llm = _mock_llm(available=False)
        pipeline = _deep_pipeline(project, _mock_graph(), llm)
        result = await pipeline.generate_insights(user, project.id)
        llm.complete_json.assert_not_awaited()
        assert result.warning == FALLBACK_WARNING

    @pytest.mark.asyncio
    async def test_llm_bad_key_propagates(self, user: AuthenticatedUser, project: Project) -> None:
        llm = _mock_llm()
        llm.complete_json.side_effect = UpstreamCredentialError(
            message="OpenAI API key is invalid", provider_name="openai"
        )
        insights_store = _mock_insights_store()
        pipeline = _deep_pipeline(project, _mock_graph(), llm, insights_store)

        with pytest.raises(UpstreamCredentialError):
            await pipeline.generate_insights(user, project.id)
        insights_store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persistence_failure_propagates(
        self, user: AuthenticatedUser, project: Project, insights_dict
    ) -> None:
        insights_store = _mock_insights_store()
        insights_store.save.side_effect = PersistenceError()
        pipeline = _deep_pipeline(
            project, _mock_graph(), _mock_llm(InsightsPayload.model_validate(insights_dict)), insights_store
        )
        with pytest.raises(PersistenceError):
            await pipeline.generate_insights(user, project.id)


# ======================================================================
# Live discovery
# ======================================================================


def _live_request(**overrides) -> LiveDiscoveryRequest:
    data: dict[str, Any] = {
        "description": "Sustainable sneakers",
        "industry": "fashion",
        "cultural_domains": ["streetwear", "skate"],
        "geographic_targets": ["Tokyo"],
    }
    data.update(overrides)
    return LiveDiscoveryRequest(**data)


class TestLiveDiscoveryPipeline:
    @pytest.mark.asyncio
    async def test_resolved_tags_shape_payload(self, live_dict) -> None:
        graph = _mock_graph()
        llm = _mock_llm(LiveInsights.model_validate(live_dict))
        pipeline = LiveDiscoveryPipeline(graph, llm)

        insights = await pipeline.discover(_live_request())

        assert len(insights.personas) == 3
        payload = graph.insights.await_args.args[0]
        assert payload["signal"]["tags"] == [{"tag": "urn:domain:streetwear"}, {"tag": "urn:domain:skate"}]
        assert payload["filter"]["tags"] == [{"tag": "urn:geography:Tokyo"}]
        assert [c.args for c in graph.resolve_tag.await_args_list] == [
            ("streetwear", "domain"),
            ("skate", "domain"),
            ("Tokyo", "geography"),
        ]
        assert llm.complete_json.await_args.kwargs["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_unresolved_tags_are_dropped(self, live_dict) -> None:
        graph = _mock_graph()
        graph.resolve_tag.side_effect = None
        graph.resolve_tag.return_value = None
        pipeline = LiveDiscoveryPipeline(graph, _mock_llm(LiveInsights.model_validate(live_dict)))

        await pipeline.discover(_live_request())

        payload = graph.insights.await_args.args[0]
        assert "signal" not in payload
        assert "filter" not in payload

    @pytest.mark.asyncio
    async def test_missing_description(self) -> None:
        graph = _mock_graph()
        pipeline = LiveDiscoveryPipeline(graph, _mock_llm())
        with pytest.raises(InputValidationError, match="Description is required"):
            await pipeline.discover(_live_request(description=None))
        graph.resolve_tag.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_output_falls_back(self) -> None:
        llm = _mock_llm()
        llm.complete_json.side_effect = OutputShapeError(provider_name="openai")
        pipeline = LiveDiscoveryPipeline(_mock_graph(), llm)

        insights = await pipeline.discover(_live_request())

        assert (len(insights.personas), len(insights.trends), len(insights.content)) == (3, 3, 4)

    @pytest.mark.asyncio
    async def test_graph_outage_still_answers(self, live_dict) -> None:
        graph = _mock_graph()
        graph.insights.side_effect = UpstreamTransientError(provider_name="qloo")
        llm = _mock_llm(LiveInsights.model_validate(live_dict))
        pipeline = LiveDiscoveryPipeline(graph, llm)

        await pipeline.discover(_live_request())

        prompt = llm.complete_json.await_args.args[1]
        assert '"mock": true' in prompt

    @pytest.mark.asyncio
    async def test_graph_unconfigured_skips_tag_lookup(self, live_dict) -> None:
        graph = _mock_graph(available=False)
        pipeline = LiveDiscoveryPipeline(graph, _mock_llm(LiveInsights.model_validate(live_dict)))
        await pipeline.discover(_live_request())
        graph.resolve_tag.assert_not_awaited()
        graph.insights.assert_not_awaited()


# ======================================================================
# Market fit
# ======================================================================


def _market_request(**overrides) -> MarketFitRequest:
    data: dict[str, Any] = {
        "description": "Meal kits",
        "industry": "Food",
        "targetMarket": "Busy parents",
        "businessModel": "Subscription",
    }
    data.update(overrides)
    return MarketFitRequest(**data)


class TestMarketFitPipeline:
    @pytest.mark.asyncio
    async def test_returns_raw_analysis(self) -> None:
        analysis = {"overall_fit_score": 72, "segments": [{"name": "Parents"}], "extra": "kept"}
        llm = _mock_llm(analysis)
        pipeline = MarketFitPipeline(llm)

        assert await pipeline.analyze(_market_request()) == analysis
        assert llm.complete_json.await_args.kwargs["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_missing_fields_named(self) -> None:
        llm = _mock_llm()
        pipeline = MarketFitPipeline(llm)
        with pytest.raises(InputValidationError) as exc_info:
            await pipeline.analyze(_market_request(targetMarket="", businessModel=None))
        assert exc_info.value.message == "Missing required fields: targetMarket, businessModel"
        llm.complete_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_llm(self) -> None:
        pipeline = MarketFitPipeline(_mock_llm(available=False))
        with pytest.raises(ConfigurationError, match="OpenAI API key not configured"):
            await pipeline.analyze(_market_request())

    @pytest.mark.asyncio
    async def test_no_fallback_on_bad_output(self) -> None:
        llm = _mock_llm()
        llm.complete_json.side_effect = OutputShapeError(provider_name="openai")
        tracker = StageTracker("market_fit")
        with pytest.raises(OutputShapeError):
            await MarketFitPipeline(llm).analyze(_market_request(), tracker)
        assert tracker.outcome is RequestOutcome.FAILED
