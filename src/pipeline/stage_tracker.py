"""Per-request stage tracking for the insight orchestrators.

Each orchestrated request gets its own :class:`StageTracker`.  Entering a
stage logs a ``request_stage`` event carrying the request id, the pipeline
name and the time since the request was received; :meth:`StageTracker.finish`
logs the terminal outcome.  The tracker keeps the visited stages so tests
can assert on the path a request took.

    tracker = StageTracker("deep")
    tracker.enter(RequestStage.CACHE_CHECK, request_hash=...)
    ...
    tracker.finish(RequestOutcome.OK)
"""

from __future__ import annotations

import time
import uuid

import structlog

from src.models.pipeline import RequestOutcome, RequestStage
from src.utils.errors import (
    AuthError,
    CulturePrismError,
    InputValidationError,
    NotFoundError,
    UpstreamClientError,
    UpstreamCredentialError,
    UpstreamRateLimitedError,
)
from src.utils.logging import get_logger


def outcome_for(exc: BaseException) -> RequestOutcome:
    """Map a failure onto the terminal outcome it produces."""
    if isinstance(exc, (AuthError, UpstreamCredentialError)):
        return RequestOutcome.UNAUTHORIZED
    if isinstance(exc, UpstreamRateLimitedError):
        return RequestOutcome.RATE_LIMITED
    if isinstance(exc, (InputValidationError, NotFoundError, UpstreamClientError)):
        return RequestOutcome.CLIENT_ERROR
    return RequestOutcome.FAILED


class StageTracker:
    """Log the stages one request passes through.

    Parameters
    ----------
    pipeline:
        Short name of the orchestrator (``"deep"``, ``"live"``, ``"market_fit"``).
    request_id:
        Correlation id; a fresh one is generated when omitted.
    """

    def __init__(self, pipeline: str, request_id: str | None = None) -> None:
        self._request_id = request_id or uuid.uuid4().hex[:12]
        self._started = time.perf_counter()
        self._stages: list[RequestStage] = []
        self._outcome: RequestOutcome | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__).bind(
            request_id=self._request_id,
            pipeline=pipeline,
        )
        self.enter(RequestStage.RECEIVED)

    @property
    def request_id(self) -> str:
        return self._request_id

    @property
    def stages(self) -> list[RequestStage]:
        return list(self._stages)

    @property
    def outcome(self) -> RequestOutcome | None:
        return self._outcome

    def enter(self, stage: RequestStage, **context: object) -> None:
        self._stages.append(stage)
        self._logger.info(
            "request_stage",
            stage=stage.value,
            elapsed_ms=self._elapsed_ms(),
            **context,
        )

    def finish(self, outcome: RequestOutcome, **context: object) -> None:
        """Record the terminal outcome; RESPONDED is entered for successes."""
        if outcome in (RequestOutcome.OK, RequestOutcome.OK_WITH_WARNING):
            self.enter(RequestStage.RESPONDED)
        self._outcome = outcome
        self._logger.info(
            "request_finished",
            outcome=outcome.value,
            elapsed_ms=self._elapsed_ms(),
            **context,
        )

    def fail(self, exc: BaseException) -> None:
        """Record a failed request; the exception itself is re-raised by the caller."""
        outcome = outcome_for(exc)
        self._outcome = outcome
        log = self._logger.error if outcome is RequestOutcome.FAILED else self._logger.warning
        log(
            "request_failed",
            outcome=outcome.value,
            stage=self._stages[-1].value if self._stages else None,
            error=str(exc),
            error_type=type(exc).__name__,
            status_code=exc.status_code if isinstance(exc, CulturePrismError) else 500,
            elapsed_ms=self._elapsed_ms(),
        )

    def _elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started) * 1000, 1)
