"""Live discovery: quick, unpersisted insights from a free-form brief.

Tag names are resolved to Qloo tag ids one at a time (a failed or empty
lookup just drops that tag), the resolved ids shape the ``signal`` /
``filter`` blocks of a ``POST /v2/insights`` call, and the LLM turns the
result into the compact :class:`LiveInsights` shape.  Nothing is cached or
stored.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.cultural_graph_provider import ICulturalGraphProvider, TagType
from src.interfaces.llm_provider import ILLMProvider
from src.models.live import LiveDiscoveryRequest, LiveInsights
from src.models.pipeline import RequestOutcome, RequestStage
from src.models.project import InsightBrief
from src.pipeline.stage_tracker import StageTracker
from src.providers.cultural_graph.qloo_provider import build_insights_payload
from src.services.fallback_synthesizer import mock_cultural_data, synthesize_live_insights
from src.services.insight_validator import live_insights_parser
from src.services.prompt_builder import LIVE_INSIGHTS_CALL, LIVE_SYSTEM_PROMPT, build_live_prompt
from src.utils.errors import InputValidationError, OutputShapeError, UpstreamTransientError
from src.utils.logging import get_logger


class LiveDiscoveryPipeline:
    """Orchestrates tag resolution, the v2 insights call and the live LLM call."""

    def __init__(
        self,
        cultural_graph: ICulturalGraphProvider,
        llm: ILLMProvider,
        model: str = LIVE_INSIGHTS_CALL.model,
    ) -> None:
        self._cultural_graph = cultural_graph
        self._llm = llm
        self._model = model
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def discover(
        self,
        request: LiveDiscoveryRequest,
        tracker: StageTracker | None = None,
    ) -> LiveInsights:
        tracker = tracker or StageTracker("live")
        tracker.enter(RequestStage.AUTHENTICATED)
        try:
            if not request.description or not request.description.strip():
                raise InputValidationError(message="Description is required")
            tracker.enter(RequestStage.INPUT_VALIDATED)

            brief = request.to_brief()
            tracker.enter(RequestStage.UPSTREAM_CULTURAL_CALL)
            cultural_data = await self._fetch_cultural_data(brief)

            prompt = build_live_prompt(brief, cultural_data)
            tracker.enter(RequestStage.PROMPT_BUILT, prompt_chars=len(prompt))

            tracker.enter(RequestStage.LLM_CALL, model=self._model)
            insights, fallback = await self._generate(brief, cultural_data, prompt)
            tracker.enter(RequestStage.OUTPUT_VALIDATED, fallback=fallback)
        except Exception as exc:
            tracker.fail(exc)
            raise

        tracker.finish(RequestOutcome.OK, personas=len(insights.personas))
        return insights

    async def _resolve_tags(self, names: list[str], tag_type: TagType) -> list[str]:
        tag_ids: list[str] = []
        for name in names:
            tag_id = await self._cultural_graph.resolve_tag(name, tag_type)
            if tag_id is not None:
                tag_ids.append(tag_id)
        return tag_ids

    async def _fetch_cultural_data(self, brief: InsightBrief) -> dict[str, Any]:
        if not self._cultural_graph.is_available():
            self._logger.warning("cultural_graph_unconfigured", fallback="mock")
            return mock_cultural_data(brief)

        domain_ids = await self._resolve_tags(brief.cultural_domains, "domain")
        geography_ids = await self._resolve_tags(brief.geographical_targets, "geography")
        self._logger.info(
            "live_tags_resolved",
            domains=f"{len(domain_ids)}/{len(brief.cultural_domains)}",
            geographies=f"{len(geography_ids)}/{len(brief.geographical_targets)}",
        )

        payload = build_insights_payload(brief, domain_ids, geography_ids)
        try:
            return await self._cultural_graph.insights(payload)
        except (UpstreamTransientError, OutputShapeError) as exc:
            self._logger.warning("cultural_graph_unavailable", error=str(exc), fallback="mock")
            return mock_cultural_data(brief)

    async def _generate(
        self,
        brief: InsightBrief,
        cultural_data: dict[str, Any],
        prompt: str,
    ) -> tuple[LiveInsights, bool]:
        if not self._llm.is_available():
            self._logger.warning("live_fallback_used", reason="llm_unconfigured")
            return synthesize_live_insights(brief, cultural_data), True

        try:
            insights = await self._llm.complete_json(
                LIVE_SYSTEM_PROMPT,
                prompt,
                live_insights_parser,
                model=self._model,
                temperature=LIVE_INSIGHTS_CALL.temperature,
                max_tokens=LIVE_INSIGHTS_CALL.max_tokens,
            )
        except (OutputShapeError, UpstreamTransientError) as exc:
            self._logger.warning("live_fallback_used", reason=type(exc).__name__, error=str(exc))
            return synthesize_live_insights(brief, cultural_data), True

        return insights, False
