"""Public interface definitions for all external services and stores.

Every upstream API and every persistence backend is accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters implement them and are wired together in ``src/main.py``.

ADAPTER PATTERN:
    Orchestrators call ``llm.complete_json(...)`` or
    ``cultural_graph.taste_insights(...)`` on whatever object implements the
    interface, never ``openai`` or ``httpx`` directly.  Unit tests inject
    ``MagicMock(spec=ILLMProvider)`` and friends instead of real clients.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    ILLMProvider               →  OpenAILLMProvider
    ICulturalGraphProvider     →  QlooProvider
    IAuthProvider              →  SupabaseAuthProvider
    IProjectStore              →  SQLiteProjectStore
    IInsightsStore             →  SQLiteInsightsStore
    ICulturalCacheStore        →  SQLiteCulturalCacheStore,
                                  MemoryCulturalCacheStore
    IConversationStore         →  SQLiteConversationStore
"""

from src.interfaces.auth_provider import AuthenticatedUser, IAuthProvider
from src.interfaces.cache_store import ICulturalCacheStore
from src.interfaces.conversation_store import IConversationStore
from src.interfaces.cultural_graph_provider import ICulturalGraphProvider, TagType
from src.interfaces.insights_store import IInsightsStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.project_store import IProjectStore

__all__ = [
    "AuthenticatedUser",
    "IAuthProvider",
    "IConversationStore",
    "ICulturalCacheStore",
    "ICulturalGraphProvider",
    "IInsightsStore",
    "ILLMProvider",
    "IProjectStore",
    "TagType",
]
