"""In-memory cultural-data cache backend using cachetools.TTLCache.

Fast but per-process; suitable for development and single-worker runs
(``CACHE_BACKEND=memory``).  The SQLite backend is the default because it
survives restarts and is shared by every worker using the same file.
"""

from __future__ import annotations

from datetime import datetime

import structlog
from cachetools import TTLCache

from src.interfaces.cache_store import ICulturalCacheStore
from src.models.cache import CacheEntry

logger = structlog.get_logger(logger_name=__name__)


class MemoryCulturalCacheStore(ICulturalCacheStore):
    """In-memory cache backend backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    ttl:
        Seconds before ``TTLCache`` drops an entry on its own.  Lookups
        also honour the ``since`` bound passed by the cache service, so an
        entry older than that is ignored even if it is still resident.
    """

    def __init__(self, max_size: int = 1000, ttl: int = 1800) -> None:
        self._cache: TTLCache[str, CacheEntry] = TTLCache(maxsize=max_size, ttl=ttl)

    # ------------------------------------------------------------------
    # ICulturalCacheStore implementation
    # ------------------------------------------------------------------

    async def get_latest(self, request_hash: str, since: datetime) -> CacheEntry | None:
        entry = self._cache.get(request_hash)
        if entry is None or entry.created_at < since:
            logger.debug("memory_cache_miss", request_hash=request_hash)
            return None
        logger.debug("memory_cache_hit", request_hash=request_hash)
        return entry

    async def upsert(self, entry: CacheEntry) -> None:
        self._cache[entry.request_hash] = entry
        logger.debug("memory_cache_set", request_hash=entry.request_hash)

    def get_provider_name(self) -> str:
        return "memory_cache"
