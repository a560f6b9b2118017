"""Content-addressed cache for Cultural-Graph responses.

The key is a SHA-256 over the canonical JSON of the four inputs that shape
the upstream request: description, industry, cultural domains and
geographical targets.  Domain and target lists are sorted first, so two
projects listing the same domains in a different order share an entry.

Expiry is soft: lookups only consider entries younger than the TTL; old
rows stay in the backend until overwritten.  Concurrent misses for the same
key both call upstream and both write (last write wins); no lock is taken.

Neither :meth:`CulturalDataCache.lookup` nor :meth:`CulturalDataCache.store`
ever raises.  Backend failures are logged and treated as a miss / no-op.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from src.interfaces.cache_store import ICulturalCacheStore
from src.models.cache import CacheEntry
from src.models.project import InsightBrief
from src.utils.logging import get_logger

CACHE_DURATION_MINUTES = 30

_logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_request_hash(brief: InsightBrief) -> str:
    """Return the stable cache key for *brief*.

    Pure function of (description, industry or "", sorted domains, sorted
    targets); title and age range do not participate.
    """
    key_data = {
        "description": brief.description,
        "industry": brief.industry or "",
        "cultural_domains": sorted(brief.cultural_domains),
        "geographical_targets": sorted(brief.geographical_targets),
    }
    canonical = json.dumps(key_data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class CulturalDataCache:
    """TTL policy on top of an :class:`ICulturalCacheStore` backend.

    Parameters
    ----------
    store:
        The backend holding entries.
    ttl_minutes:
        Entries older than this are ignored by :meth:`lookup`.
    clock:
        Returns the current UTC time; tests inject a fixed clock.
    """

    def __init__(
        self,
        store: ICulturalCacheStore,
        ttl_minutes: int = CACHE_DURATION_MINUTES,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock

    async def lookup(self, brief: InsightBrief) -> dict[str, Any] | None:
        """Return the cached payload for *brief*, or ``None`` on miss/expiry/error."""
        request_hash = compute_request_hash(brief)
        threshold = self._clock() - self._ttl
        try:
            entry = await self._store.get_latest(request_hash, threshold)
        except Exception as exc:
            _logger.error("cache_lookup_failed", request_hash=request_hash, error=str(exc))
            return None

        if entry is None:
            _logger.info("cache_miss", request_hash=request_hash)
            return None

        _logger.info("cache_hit", request_hash=request_hash, created_at=entry.created_at.isoformat())
        return entry.payload

    async def store(
        self,
        brief: InsightBrief,
        payload: dict[str, Any],
        project_id: str | None = None,
    ) -> None:
        """Upsert *payload* under the key for *brief*; failures are logged only."""
        request_hash = compute_request_hash(brief)
        entry = CacheEntry(
            request_hash=request_hash,
            project_id=project_id,
            payload=payload,
            created_at=self._clock(),
        )
        try:
            await self._store.upsert(entry)
        except Exception as exc:
            _logger.error("cache_store_failed", request_hash=request_hash, error=str(exc))
            return
        _logger.info("cache_stored", request_hash=request_hash, project_id=project_id)
