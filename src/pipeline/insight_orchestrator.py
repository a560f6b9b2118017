"""Deep insight generation for a stored project.

    auth (caller) → load project → cache lookup → [miss] Qloo taste insights
    → cache store → prompt → OpenAI → validate → [invalid] fallback synthesis
    → persist → respond

Degradation rules:

- Qloo unconfigured, or still failing with 5xx / network errors after the
  retry budget: deterministic mock cultural data is used and NOT cached.
  A 429 or other 4xx from Qloo propagates.
- OpenAI unconfigured, unreachable after retries, or returning output that
  never passed validation: the LLM output is discarded and
  :func:`synthesize_insights` is persisted with a ``warning``.  An invalid
  OpenAI key (401) or a 429 propagates.
- Persistence failures always propagate; nothing is returned that was not
  saved.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from src.interfaces.auth_provider import AuthenticatedUser
from src.interfaces.cultural_graph_provider import ICulturalGraphProvider
from src.interfaces.insights_store import IInsightsStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.project_store import IProjectStore
from src.models.insights import InsightsPayload, InsightsResult
from src.models.pipeline import RequestOutcome, RequestStage
from src.models.project import InsightBrief
from src.pipeline.stage_tracker import StageTracker
from src.services.cultural_cache import CulturalDataCache, compute_request_hash
from src.services.fallback_synthesizer import (
    FALLBACK_WARNING,
    mock_cultural_data,
    synthesize_insights,
)
from src.services.insight_validator import insights_parser
from src.services.prompt_builder import DEEP_INSIGHTS_CALL, DEEP_SYSTEM_PROMPT, build_deep_prompt
from src.utils.errors import (
    InputValidationError,
    NotFoundError,
    OutputShapeError,
    UpstreamTransientError,
)
from src.utils.logging import get_logger


class InsightGenerationPipeline:
    """Generate, validate and persist insights for one of the caller's projects.

    All collaborators are injected; the pipeline creates none of them.

    Parameters
    ----------
    project_store, insights_store:
        Persistence for projects (read) and generated insights (append).
    cache:
        TTL cache in front of the cultural-graph call.
    cultural_graph:
        Qloo gateway.
    llm:
        OpenAI gateway.
    model:
        Chat model used for the generation call.
    """

    def __init__(
        self,
        project_store: IProjectStore,
        insights_store: IInsightsStore,
        cache: CulturalDataCache,
        cultural_graph: ICulturalGraphProvider,
        llm: ILLMProvider,
        model: str = DEEP_INSIGHTS_CALL.model,
    ) -> None:
        self._project_store = project_store
        self._insights_store = insights_store
        self._cache = cache
        self._cultural_graph = cultural_graph
        self._llm = llm
        self._model = model
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def generate_insights(
        self,
        user: AuthenticatedUser,
        project_id: str | None,
        tracker: StageTracker | None = None,
    ) -> InsightsResult:
        """Run the full deep pipeline for *project_id* on behalf of *user*.

        Returns
        -------
        InsightsResult
            The persisted result; ``warning`` is set when fallback
            insights were used.

        Raises
        ------
        InputValidationError
            If *project_id* is missing.
        NotFoundError
            If the project does not exist or belongs to another user.
        UpstreamCredentialError, UpstreamRateLimitedError, UpstreamClientError
            Non-recoverable upstream failures.
        PersistenceError
            If the result could not be saved.
        """
        tracker = tracker or StageTracker("deep")
        tracker.enter(RequestStage.AUTHENTICATED, user_id=user.id)
        try:
            result = await self._run(user, project_id, tracker)
        except Exception as exc:
            tracker.fail(exc)
            raise

        tracker.finish(
            RequestOutcome.OK_WITH_WARNING if result.warning else RequestOutcome.OK,
            project_id=result.project_id,
            insights_id=result.id,
        )
        return result

    async def _run(
        self,
        user: AuthenticatedUser,
        project_id: str | None,
        tracker: StageTracker,
    ) -> InsightsResult:
        if not project_id:
            raise InputValidationError(message="Missing project_id")
        tracker.enter(RequestStage.INPUT_VALIDATED, project_id=project_id)

        project = await self._project_store.get(project_id, user.id)
        if project is None:
            raise NotFoundError(message="Project not found")
        brief = project.to_brief()

        tracker.enter(RequestStage.CACHE_CHECK, request_hash=compute_request_hash(brief))
        cultural_data = await self._cache.lookup(brief)
        if cultural_data is None:
            tracker.enter(RequestStage.UPSTREAM_CULTURAL_CALL)
            cultural_data = await self._fetch_cultural_data(brief, project_id)

        prompt = build_deep_prompt(brief, cultural_data)
        tracker.enter(RequestStage.PROMPT_BUILT, prompt_chars=len(prompt))

        tracker.enter(RequestStage.LLM_CALL, model=self._model)
        payload, warning = await self._generate(brief, cultural_data, prompt)
        tracker.enter(
            RequestStage.OUTPUT_VALIDATED,
            personas=len(payload.audience_personas),
            fallback=warning is not None,
        )

        result = InsightsResult(
            id=str(uuid.uuid4()),
            project_id=project_id,
            audience_personas=payload.audience_personas,
            cultural_trends=payload.cultural_trends,
            content_suggestions=payload.content_suggestions,
            taste_intersections=payload.taste_intersections,
            cross_domain_recommendations=payload.cross_domain_recommendations,
            qloo_data=cultural_data,
            warning=warning,
        )
        saved = await self._insights_store.save(result)
        tracker.enter(RequestStage.PERSISTED, insights_id=saved.id)
        return saved

    async def _fetch_cultural_data(self, brief: InsightBrief, project_id: str) -> dict[str, Any]:
        """Call Qloo and cache the response; degrade to mock data on outage."""
        if not self._cultural_graph.is_available():
            self._logger.warning("cultural_graph_unconfigured", fallback="mock")
            return mock_cultural_data(brief)

        try:
            cultural_data = await self._cultural_graph.taste_insights(brief)
        except (UpstreamTransientError, OutputShapeError) as exc:
            self._logger.warning(
                "cultural_graph_unavailable",
                provider=self._cultural_graph.get_provider_name(),
                error=str(exc),
                fallback="mock",
            )
            return mock_cultural_data(brief)

        await self._cache.store(brief, cultural_data, project_id=project_id)
        return cultural_data

    async def _generate(
        self,
        brief: InsightBrief,
        cultural_data: dict[str, Any],
        prompt: str,
    ) -> tuple[InsightsPayload, str | None]:
        if not self._llm.is_available():
            self._logger.warning("insights_fallback_used", reason="llm_unconfigured")
            return synthesize_insights(brief, cultural_data), FALLBACK_WARNING

        try:
            payload = await self._llm.complete_json(
                DEEP_SYSTEM_PROMPT,
                prompt,
                insights_parser,
                model=self._model,
                temperature=DEEP_INSIGHTS_CALL.temperature,
                max_tokens=DEEP_INSIGHTS_CALL.max_tokens,
            )
        except OutputShapeError as exc:
            self._logger.warning(
                "insights_fallback_used",
                reason="invalid_output",
                errors=exc.errors[:10],
            )
            return synthesize_insights(brief, cultural_data), FALLBACK_WARNING
        except UpstreamTransientError as exc:
            self._logger.warning("insights_fallback_used", reason="llm_unavailable", error=str(exc))
            return synthesize_insights(brief, cultural_data), FALLBACK_WARNING

        return payload, None
