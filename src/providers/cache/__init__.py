"""Cache backends.

MemoryCulturalCacheStore is a TTLCache-backed backend: fast but not shared
across processes.  The durable default lives in
``src/providers/storage/sqlite_cache_store.py``.
"""

from src.providers.cache.memory_cache import MemoryCulturalCacheStore

__all__ = ["MemoryCulturalCacheStore"]
