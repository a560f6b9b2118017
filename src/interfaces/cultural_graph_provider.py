"""Abstract base class for cultural-graph (taste/affinity) providers.

The cultural graph supplies the taste profiles, demographics and affinity
scores the LLM prompts are grounded in.  The concrete adapter talks to the
Qloo API; when it is unconfigured or unavailable the orchestrators fall
back to deterministic mock data instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from src.models.project import InsightBrief

TagType = Literal["domain", "geography"]


# Concrete implementation: QlooProvider (src/providers/cultural_graph/)
class ICulturalGraphProvider(ABC):
    """Contract for cultural-graph services."""

    @abstractmethod
    async def taste_insights(self, brief: InsightBrief) -> dict[str, Any]:
        """Fetch the full taste profile for a project brief.

        Used by the deep pipeline.  Retried according to the provider's
        retry policy.

        Raises
        ------
        src.utils.errors.UpstreamRateLimitedError
            If every attempt was rate limited.
        src.utils.errors.UpstreamClientError
            On a non-retryable 4xx (credentials, bad payload, ...).
        src.utils.errors.UpstreamTransientError
            If the service stayed unavailable for every attempt.
        """

    @abstractmethod
    async def insights(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Post a prepared insights request and return the decoded response.

        Used by live discovery; *payload* already carries the optional
        ``signal`` / ``filter`` blocks built from resolved tag ids.
        """

    @abstractmethod
    async def resolve_tag(self, query: str, tag_type: TagType) -> str | None:
        """Resolve a free-text tag name to the provider's tag id.

        Returns ``None`` when the lookup fails or finds no match.  Never
        raises.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured."""
