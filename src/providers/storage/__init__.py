"""SQLite persistence adapters.

All four stores share one database file and create their own tables in
``initialize()``:

    - SQLiteProjectStore       — projects (owner-scoped, cascading delete)
    - SQLiteInsightsStore      — append-only generated insights
    - SQLiteCulturalCacheStore — Qloo responses keyed by request hash
    - SQLiteConversationStore  — planning chat log per project
"""

from src.providers.storage.sqlite_cache_store import SQLiteCulturalCacheStore
from src.providers.storage.sqlite_conversation_store import SQLiteConversationStore
from src.providers.storage.sqlite_insights_store import SQLiteInsightsStore
from src.providers.storage.sqlite_project_store import SQLiteProjectStore

__all__ = [
    "SQLiteConversationStore",
    "SQLiteCulturalCacheStore",
    "SQLiteInsightsStore",
    "SQLiteProjectStore",
]
