"""Abstract base class for the cultural-data cache backend.

The backend is a dumb keyed store; TTL policy lives in
:class:`src.services.cultural_cache.CulturalDataCache`.  Implementations may
raise on I/O failure; the cache service turns that into a miss.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.models.cache import CacheEntry


# Concrete implementations: SQLiteCulturalCacheStore (src/providers/storage/),
# MemoryCulturalCacheStore (src/providers/cache/)
class ICulturalCacheStore(ABC):
    """Contract for cultural-data cache backends."""

    @abstractmethod
    async def get_latest(self, request_hash: str, since: datetime) -> CacheEntry | None:
        """Return the newest entry for *request_hash* created at or after *since*.

        Older entries are ignored, not deleted.
        """

    @abstractmethod
    async def upsert(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``entry.request_hash``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this backend."""
