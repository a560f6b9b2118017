"""Abstract base class for the append-only insights store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.insights import InsightsResult


# Concrete implementation: SQLiteInsightsStore (src/providers/storage/)
class IInsightsStore(ABC):
    """Contract for persisting generated insights.

    Results are never updated in place; each generation is a new row and
    "latest" means most recently created.
    """

    @abstractmethod
    async def save(self, result: InsightsResult) -> InsightsResult:
        """Persist *result* and return it as stored.

        Raises
        ------
        src.utils.errors.PersistenceError
            If the write fails.
        """

    @abstractmethod
    async def latest_for_project(self, project_id: str) -> InsightsResult | None:
        """Return the most recent result for *project_id*, if any."""
