"""Qloo Taste AI provider over ``httpx``.

Implements :class:`ICulturalGraphProvider` against the Qloo REST API:

    POST {base}/v1/taste/insights          deep pipeline taste profile
    POST {base}/v2/insights                live discovery insights
    GET  {base}/v2/tags?type=&query=       tag name → tag id resolution

Every request carries the ``x-api-key`` header.  The two insight calls go
through the shared :class:`~src.utils.retry.RetryExecutor`; tag resolution
is a single best-effort attempt whose failures resolve to ``None``.
"""

from __future__ import annotations

from typing import Any, Callable

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.cultural_graph_provider import ICulturalGraphProvider, TagType
from src.models.project import InsightBrief
from src.utils.errors import ConfigurationError, OutputShapeError
from src.utils.retry import RetryExecutor, RetryPolicy, UpstreamResponse

logger = structlog.get_logger(logger_name=__name__)

_TASTE_INSIGHTS_PATH = "/v1/taste/insights"
_INSIGHTS_PATH = "/v2/insights"
_TAGS_PATH = "/v2/tags"

# Options block shared by both insight endpoints.
INSIGHT_OPTIONS: dict[str, Any] = {
    "include_demographics": True,
    "include_preferences": True,
    "include_related_entities": True,
    "taste_types": ["domains", "preferences", "affinity_scores"],
    "entity_types": ["brands", "influencers", "media"],
}


def _require_object(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise OutputShapeError(
            message="Qloo API returned a non-object response",
            provider_name="qloo",
        )
    return body


def build_taste_payload(brief: InsightBrief) -> dict[str, Any]:
    """Request body for ``POST /v1/taste/insights``."""
    return {
        "input": {
            "description": brief.description,
            "industry": brief.industry or "general",
            "language": "en",
            "cultural_domains": list(brief.cultural_domains),
            "geographical_targets": list(brief.geographical_targets),
        },
        "options": dict(INSIGHT_OPTIONS),
    }


def build_insights_payload(
    brief: InsightBrief,
    domain_tag_ids: list[str],
    geography_tag_ids: list[str],
) -> dict[str, Any]:
    """Request body for ``POST /v2/insights``.

    ``signal`` and ``filter`` are only present when at least one tag of
    that kind was resolved.
    """
    payload: dict[str, Any] = {
        "input": {
            "description": brief.description,
            "industry": brief.industry or "general",
            "language": "en",
        },
        "options": dict(INSIGHT_OPTIONS),
    }
    if domain_tag_ids:
        payload["signal"] = {
            "type": "interests",
            "tags": [{"tag": tag_id} for tag_id in domain_tag_ids],
        }
    if geography_tag_ids:
        payload["filter"] = {
            "type": "geography",
            "tags": [{"tag": tag_id} for tag_id in geography_tag_ids],
        }
    return payload


class QlooProvider(ICulturalGraphProvider):
    """Cultural-graph provider backed by the Qloo API.

    Parameters
    ----------
    settings:
        Supplies ``qloo_api_key``, ``qloo_base_url`` and the retry values.
    http_client:
        Injected ``httpx.AsyncClient`` for connection pooling and tests
        (``httpx.MockTransport``).
    retry_policy:
        Overrides the policy derived from settings.
    sleep:
        Awaitable used between attempts; tests pass a recorder.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._api_key = settings.qloo_api_key
        self._base_url = settings.qloo_base_url.rstrip("/")
        self._timeout = settings.upstream_timeout_seconds
        self._http = http_client

        policy = retry_policy or RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
        )
        executor_kwargs: dict = {"provider_label": "Qloo"}
        if sleep is not None:
            executor_kwargs["sleep"] = sleep
        self._executor = RetryExecutor(policy, "qloo", **executor_kwargs)

    # ------------------------------------------------------------------
    # ICulturalGraphProvider implementation
    # ------------------------------------------------------------------

    async def taste_insights(self, brief: InsightBrief) -> dict[str, Any]:
        """Fetch the deep taste profile for *brief* (retried)."""
        payload = build_taste_payload(brief)
        return await self._post_with_retry(_TASTE_INSIGHTS_PATH, payload, "taste_insights")

    async def insights(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Post a prepared v2 insights request (retried)."""
        return await self._post_with_retry(_INSIGHTS_PATH, payload, "insights_v2")

    async def resolve_tag(self, query: str, tag_type: TagType) -> str | None:
        """Resolve *query* to the first matching tag id, or ``None``."""
        if not self._api_key:
            logger.warning("qloo_tag_lookup_skipped", tag=query, reason="api_key_missing")
            return None
        try:
            response = await self._http.get(
                f"{self._base_url}{_TAGS_PATH}",
                params={"type": tag_type, "query": query},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("qloo_tag_lookup_failed", tag=query, tag_type=tag_type, error=str(exc))
            return None

        if response.status_code >= 400:
            logger.warning(
                "qloo_tag_lookup_failed",
                tag=query,
                tag_type=tag_type,
                status=response.status_code,
            )
            return None

        try:
            items = response.json().get("items") or []
            tag_id = items[0]["id"] if items else None
        except (ValueError, AttributeError, KeyError, TypeError) as exc:
            logger.warning("qloo_tag_lookup_unparseable", tag=query, tag_type=tag_type, error=str(exc))
            return None

        if tag_id is None:
            logger.warning("qloo_tag_not_found", tag=query, tag_type=tag_type)
            return None

        logger.info("qloo_tag_resolved", tag=query, tag_type=tag_type, tag_id=tag_id)
        return str(tag_id)

    def get_provider_name(self) -> str:
        return "qloo"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                message="Qloo API key not configured. Please set QLOO_API_KEY.",
                provider_name="qloo",
            )

    async def _post_with_retry(
        self,
        path: str,
        payload: dict[str, Any],
        operation: str,
    ) -> dict[str, Any]:
        self._require_key()
        url = f"{self._base_url}{path}"

        async def send() -> UpstreamResponse:
            response = await self._http.post(
                url,
                json=payload,
                headers=self._headers(),
                timeout=self._timeout,
            )
            if response.is_success:
                try:
                    body = response.json()
                except ValueError:
                    body = None
                return UpstreamResponse(status_code=response.status_code, body=body)
            return UpstreamResponse(status_code=response.status_code, text=response.text)

        result = await self._executor.execute(send, _require_object, operation=operation)
        logger.info("qloo_response_received", operation=operation, keys=sorted(result)[:10])
        return result
