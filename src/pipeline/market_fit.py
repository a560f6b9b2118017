"""Product-market fit analysis.

A single LLM call with no cultural-graph dependency.  The model's JSON is
checked coarsely (``overall_fit_score`` and ``segments`` must be present)
and returned as-is, without a success envelope.  There is no fallback: any
failure reaches the caller, which answers 500 ``{error, details}``.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.llm_provider import ILLMProvider
from src.models.market_fit import MARKET_FIT_SECTIONS, MarketFitRequest
from src.models.pipeline import RequestOutcome, RequestStage
from src.pipeline.stage_tracker import StageTracker
from src.services.insight_validator import market_fit_parser
from src.services.prompt_builder import MARKET_FIT_CALL, MARKET_FIT_SYSTEM_PROMPT, build_market_fit_prompt
from src.utils.errors import ConfigurationError, InputValidationError
from src.utils.logging import get_logger


class MarketFitPipeline:
    def __init__(self, llm: ILLMProvider, model: str = MARKET_FIT_CALL.model) -> None:
        self._llm = llm
        self._model = model
        self._logger: structlog.BoundLogger = get_logger(__name__)

    async def analyze(
        self,
        request: MarketFitRequest,
        tracker: StageTracker | None = None,
    ) -> dict[str, Any]:
        """Return the raw market-fit object produced by the LLM.

        Raises
        ------
        InputValidationError
            If any of the four request fields is missing.
        ConfigurationError
            If no LLM key is configured.
        """
        tracker = tracker or StageTracker("market_fit")
        tracker.enter(RequestStage.AUTHENTICATED)
        try:
            missing = request.missing_fields()
            if missing:
                raise InputValidationError(
                    message="Missing required fields: " + ", ".join(missing)
                )
            tracker.enter(RequestStage.INPUT_VALIDATED)

            if not self._llm.is_available():
                raise ConfigurationError(
                    message="OpenAI API key not configured",
                    provider_name=self._llm.get_provider_name(),
                )

            prompt = build_market_fit_prompt(request)
            tracker.enter(RequestStage.PROMPT_BUILT, prompt_chars=len(prompt))

            tracker.enter(RequestStage.LLM_CALL, model=self._model)
            analysis = await self._llm.complete_json(
                MARKET_FIT_SYSTEM_PROMPT,
                prompt,
                market_fit_parser,
                model=self._model,
                temperature=MARKET_FIT_CALL.temperature,
                max_tokens=MARKET_FIT_CALL.max_tokens,
            )
            tracker.enter(
                RequestStage.OUTPUT_VALIDATED,
                segments=len(analysis.get("segments", [])),
                sections=[name for name in MARKET_FIT_SECTIONS if name in analysis],
            )
        except Exception as exc:
            tracker.fail(exc)
            raise

        tracker.finish(RequestOutcome.OK, overall_fit_score=analysis.get("overall_fit_score"))
        return analysis
