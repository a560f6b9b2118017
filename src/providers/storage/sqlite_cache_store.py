"""SQLite-backed cultural-data cache store.

One row per request hash (upsert, last write wins).  Lookups filter on
``created_at`` so expired rows are ignored; nothing ever purges them.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.cache_store import ICulturalCacheStore
from src.models.cache import CacheEntry
from src.providers.storage.sqlite_common import DEFAULT_DB_PATH, from_db_timestamp, to_db_timestamp

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS qloo_cache (
    request_hash  TEXT PRIMARY KEY,
    project_id    TEXT,
    qloo_response TEXT NOT NULL,
    created_at    TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_qloo_cache_project ON qloo_cache(project_id);",
]

_UPSERT_SQL = """\
INSERT INTO qloo_cache (request_hash, project_id, qloo_response, created_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(request_hash)
DO UPDATE SET project_id    = excluded.project_id,
              qloo_response = excluded.qloo_response,
              created_at    = excluded.created_at;
"""

_SELECT_LATEST_SQL = """\
SELECT request_hash, project_id, qloo_response, created_at
FROM qloo_cache
WHERE request_hash = ? AND created_at >= ?
ORDER BY created_at DESC
LIMIT 1;
"""


class SQLiteCulturalCacheStore(ICulturalCacheStore):
    """SQLite-backed cache backend."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the cache table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("cache_db_initialized", path=str(self._db_path))

    async def get_latest(self, request_hash: str, since: datetime) -> CacheEntry | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_LATEST_SQL, (request_hash, to_db_timestamp(since)))
            row = await cursor.fetchone()

        if row is None:
            return None
        return CacheEntry(
            request_hash=row["request_hash"],
            project_id=row["project_id"],
            payload=json.loads(row["qloo_response"]),
            created_at=from_db_timestamp(row["created_at"]),
        )

    async def upsert(self, entry: CacheEntry) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPSERT_SQL,
                (
                    entry.request_hash,
                    entry.project_id,
                    json.dumps(entry.payload),
                    to_db_timestamp(entry.created_at),
                ),
            )
            await db.commit()

    def get_provider_name(self) -> str:
        return "sqlite_cache"
