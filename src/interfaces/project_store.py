"""Abstract base class for project persistence.

Every read and write is owner-scoped: a project that exists but belongs to
another user is indistinguishable from one that does not exist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.project import Project, ProjectCreate, ProjectUpdate


# Concrete implementation: SQLiteProjectStore (src/providers/storage/)
class IProjectStore(ABC):
    """Contract for project persistence services."""

    @abstractmethod
    async def create(self, user_id: str, data: ProjectCreate) -> Project:
        """Insert a new project owned by *user_id* and return it."""

    @abstractmethod
    async def get(self, project_id: str, user_id: str) -> Project | None:
        """Return the project if it exists and is owned by *user_id*."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[Project]:
        """Return every project owned by *user_id*, newest first."""

    @abstractmethod
    async def update(self, project_id: str, user_id: str, changes: ProjectUpdate) -> Project | None:
        """Apply a partial patch; ``None`` if the project is not found/owned."""

    @abstractmethod
    async def delete(self, project_id: str, user_id: str) -> bool:
        """Delete the project and everything associated with it.

        Insights, cache entries and conversation messages referencing the
        project are removed in the same transaction.

        Returns
        -------
        bool
            ``True`` if a project was deleted.
        """
