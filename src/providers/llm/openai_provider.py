"""OpenAI LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.

The SDK's own retry loop is disabled (``max_retries=0``): every attempt is
reduced to an :class:`~src.utils.retry.UpstreamResponse` and the shared
:class:`~src.utils.retry.RetryExecutor` decides whether to back off, re-send
or give up.  That keeps OpenAI and Qloo on one retry policy.

    2xx                        → message content handed to ``parse``
    openai.APIStatusError      → UpstreamResponse(status, text) → classified
    connection / timeout error → propagates → treated as transient
"""

from __future__ import annotations

from typing import Any, Callable

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import ConfigurationError, OutputShapeError
from src.utils.retry import RetryExecutor, RetryPolicy, UpstreamResponse

logger = structlog.get_logger(logger_name=__name__)


def _require_text(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise OutputShapeError(message="OpenAI returned an empty response", provider_name="openai")
    return content


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by the OpenAI chat completions API.

    Parameters
    ----------
    settings:
        Supplies the API key, optional base URL, default model and timeout.
    retry_policy:
        Attempt budget and backoff; defaults to the settings' retry values.
    sleep:
        Awaitable used between attempts; tests pass a recorder.
    """

    def __init__(
        self,
        settings: Settings,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._default_model = settings.openai_insights_model
        self._client: openai.AsyncOpenAI | None = None

        if self._api_key:
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": openai.Timeout(settings.openai_timeout_seconds, connect=5.0),
                "max_retries": 0,
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)

        policy = retry_policy or RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
        )
        executor_kwargs: dict = {"provider_label": "OpenAI"}
        if sleep is not None:
            executor_kwargs["sleep"] = sleep
        self._executor = RetryExecutor(policy, "openai", **executor_kwargs)

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> str:
        """Generate a free-text completion (used by conversational planning)."""
        return await self.complete_json(
            system_prompt,
            user_prompt,
            _require_text,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        parse: Callable[[str], Any],
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> Any:
        """Generate a completion and run *parse* on the message content.

        A parse failure re-sends the request immediately; an exhausted
        budget raises the last :class:`OutputShapeError`.
        """
        client = self._require_client()
        model_name = model or self._default_model

        async def send() -> UpstreamResponse:
            try:
                response = await client.chat.completions.create(
                    model=model_name,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except openai.APIStatusError as exc:
                return UpstreamResponse(status_code=exc.status_code, text=str(exc.message))

            logger.info(
                "openai_completion",
                model=model_name,
                tokens=response.usage.total_tokens if response.usage else None,
            )
            content = response.choices[0].message.content if response.choices else None
            return UpstreamResponse(status_code=200, body=content or "")

        def parse_content(content: Any) -> Any:
            return parse(_require_text(content))

        return await self._executor.execute(send, parse_content, operation=f"chat:{model_name}")

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "openai"

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            raise ConfigurationError(
                message="OpenAI API key not configured. Please set OPENAI_API_KEY.",
                provider_name="openai",
            )
        return self._client
