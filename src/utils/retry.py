"""Retry / backoff executor for upstream HTTP calls.

Both gateways (Qloo over httpx, OpenAI over the openai SDK) reduce each
attempt to an :class:`UpstreamResponse` and hand it to a shared
:class:`RetryExecutor`.  The executor owns the whole retry decision so the
policy can be unit-tested with a fake ``sleep`` and no network at all.

Outcome classes:

    2xx        SUCCESS       return (after the optional ``parse`` step)
    429        RATE_LIMITED  back off, retry; UpstreamRateLimitedError when exhausted
    4xx        CLIENT_ERROR  raise immediately (401 -> UpstreamCredentialError)
    5xx        TRANSIENT     back off, retry; UpstreamTransientError when exhausted
    exception  TRANSIENT     unless it is already an UpstreamClientError

A ``parse`` callable that raises :class:`OutputShapeError` causes an
immediate re-send (no delay); the last shape error is raised once the
attempts run out.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

import structlog

from src.utils.errors import (
    OutputShapeError,
    UpstreamClientError,
    UpstreamCredentialError,
    UpstreamRateLimitedError,
    UpstreamTransientError,
)
from src.utils.logging import get_logger


_logger: structlog.BoundLogger = get_logger(__name__)

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0


class Outcome(str, Enum):  # noqa: UP042
    """Classification of a single upstream attempt."""

    SUCCESS = "SUCCESS"
    RATE_LIMITED = "RATE_LIMITED"
    CLIENT_ERROR = "CLIENT_ERROR"
    TRANSIENT = "TRANSIENT"


@dataclass(frozen=True)
class UpstreamResponse:
    """Transport-neutral view of one upstream HTTP response.

    ``body`` is the decoded payload on success (JSON object for Qloo, the
    message content string for OpenAI); ``text`` is the raw error text
    when the provider returned one.
    """

    status_code: int
    body: Any = None
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def classify_status(status_code: int) -> Outcome:
    """Map an HTTP status code onto a retry :class:`Outcome`."""
    if 200 <= status_code < 300:
        return Outcome.SUCCESS
    if status_code == 429:
        return Outcome.RATE_LIMITED
    if 400 <= status_code < 500:
        return Outcome.CLIENT_ERROR
    # 5xx, and anything exotic (1xx/3xx after redirects are disabled).
    return Outcome.TRANSIENT


def client_error_for(
    status_code: int,
    provider_label: str,
    provider_name: str,
    detail: str = "",
) -> UpstreamClientError:
    """Build the specific client error for a non-retryable 4xx status."""
    if status_code == 400:
        suffix = f": {detail}" if detail else ""
        return UpstreamClientError(
            message=f"Invalid request payload sent to {provider_label} API{suffix}",
            provider_name=provider_name,
            upstream_status=400,
        )
    if status_code == 401:
        return UpstreamCredentialError(
            message=f"Invalid {provider_label} API key. Please verify the configured credentials.",
            provider_name=provider_name,
        )
    if status_code == 403:
        return UpstreamClientError(
            message=f"{provider_label} API access forbidden",
            provider_name=provider_name,
            upstream_status=403,
        )
    if status_code == 404:
        return UpstreamClientError(
            message=f"{provider_label} API endpoint not found",
            provider_name=provider_name,
            upstream_status=404,
        )
    return UpstreamClientError(
        message=f"{provider_label} API client error: {status_code}",
        provider_name=provider_name,
        upstream_status=status_code,
    )


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts to make and how long to wait between them.

    ``delay_for(attempt)`` is ``base_delay * 2 ** (attempt - 1)``: with the
    defaults the waits after attempts 1, 2, 3 are 1 s, 2 s, 4 s.  No wait is
    taken after the final attempt.
    """

    max_attempts: int = MAX_RETRIES
    base_delay: float = RETRY_DELAY_SECONDS
    classify: Callable[[int], Outcome] = field(default=classify_status)

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** (attempt - 1))


class RetryExecutor:
    """Drive one logical upstream call through a :class:`RetryPolicy`.

    Parameters
    ----------
    policy:
        Attempt budget, backoff function and status classifier.
    provider_name:
        Short id used in errors and logs (``"qloo"``, ``"openai"``).
    provider_label:
        Display name used in user-facing messages (``"Qloo"``, ``"OpenAI"``).
    sleep:
        Awaitable sleep; tests inject a recorder instead of ``asyncio.sleep``.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        provider_name: str,
        provider_label: str | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._policy = policy
        self._provider_name = provider_name
        self._provider_label = provider_label or provider_name
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(
        self,
        send: Callable[[], Awaitable[UpstreamResponse]],
        parse: Callable[[Any], Any] | None = None,
        operation: str = "request",
    ) -> Any:
        """Run *send* until it succeeds or the policy gives up.

        Raises
        ------
        UpstreamClientError
            On the first non-429 4xx (including credential errors).
        UpstreamRateLimitedError
            When every attempt was rate limited.
        UpstreamTransientError
            When the last attempt failed with 5xx or a network error.
        OutputShapeError
            When the last attempt's ``parse`` step rejected the payload.
        """
        max_attempts = self._policy.max_attempts
        last_outcome: Outcome | None = None
        last_status: int | None = None
        last_error: str = ""
        last_shape_error: OutputShapeError | None = None

        for attempt in range(1, max_attempts + 1):
            _logger.info(
                "upstream_attempt",
                provider=self._provider_name,
                operation=operation,
                attempt=attempt,
                max_attempts=max_attempts,
            )
            try:
                response = await send()
            except UpstreamClientError:
                raise
            except Exception as exc:
                last_outcome = Outcome.TRANSIENT
                last_status = None
                last_error = str(exc) or type(exc).__name__
                last_shape_error = None
                _logger.warning(
                    "upstream_network_error",
                    provider=self._provider_name,
                    operation=operation,
                    attempt=attempt,
                    error=last_error,
                )
                await self._backoff(attempt, operation)
                continue

            outcome = self._policy.classify(response.status_code)
            last_outcome = outcome
            last_status = response.status_code

            if outcome is Outcome.SUCCESS:
                if parse is None:
                    return response.body
                try:
                    return parse(response.body)
                except OutputShapeError as exc:
                    last_shape_error = exc
                    _logger.warning(
                        "upstream_output_rejected",
                        provider=self._provider_name,
                        operation=operation,
                        attempt=attempt,
                        error=exc.message,
                        details=exc.errors[:5],
                    )
                    continue

            last_shape_error = None

            if outcome is Outcome.CLIENT_ERROR:
                _logger.error(
                    "upstream_client_error",
                    provider=self._provider_name,
                    operation=operation,
                    status=response.status_code,
                    detail=response.text[:500],
                )
                raise client_error_for(
                    response.status_code,
                    self._provider_label,
                    self._provider_name,
                    response.text[:500],
                )

            last_error = response.text[:500]
            _logger.warning(
                "upstream_retryable_status",
                provider=self._provider_name,
                operation=operation,
                attempt=attempt,
                status=response.status_code,
                outcome=outcome.value,
            )
            await self._backoff(attempt, operation)

        if last_shape_error is not None:
            raise last_shape_error
        if last_outcome is Outcome.RATE_LIMITED:
            raise UpstreamRateLimitedError(
                message=f"{self._provider_label} API rate limited. Please try again later.",
                provider_name=self._provider_name,
            )
        raise UpstreamTransientError(
            message=(
                f"{self._provider_label} API service unavailable after "
                f"{max_attempts} attempts"
                + (f": {last_error}" if last_error else "")
            ),
            provider_name=self._provider_name,
            upstream_status=last_status,
        )

    async def _backoff(self, attempt: int, operation: str) -> None:
        if attempt >= self._policy.max_attempts:
            return
        delay = self._policy.delay_for(attempt)
        _logger.info(
            "upstream_backoff",
            provider=self._provider_name,
            operation=operation,
            attempt=attempt,
            delay_s=delay,
        )
        await self._sleep(delay)
