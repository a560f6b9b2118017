"""Abstract base class for the per-project planning conversation log."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.conversation import ConversationMessage


# Concrete implementation: SQLiteConversationStore (src/providers/storage/)
class IConversationStore(ABC):
    """Contract for persisting planning conversations."""

    @abstractmethod
    async def append(self, project_id: str, message: ConversationMessage) -> None:
        """Append *message* to the conversation of *project_id*."""

    @abstractmethod
    async def list_for_project(self, project_id: str, limit: int = 50) -> list[ConversationMessage]:
        """Return up to *limit* messages for *project_id*, oldest first."""
