"""SQLite-backed append-only insights store.

Each collection is stored as JSON text; rows are only ever inserted.
"""

from __future__ import annotations

import json
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.insights_store import IInsightsStore
from src.models.insights import InsightsResult
from src.providers.storage.sqlite_common import DEFAULT_DB_PATH, from_db_timestamp, to_db_timestamp
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS insights (
    id                            TEXT PRIMARY KEY,
    project_id                    TEXT NOT NULL,
    audience_personas             TEXT NOT NULL,
    cultural_trends               TEXT NOT NULL,
    content_suggestions           TEXT NOT NULL,
    taste_intersections           TEXT NOT NULL DEFAULT '[]',
    cross_domain_recommendations  TEXT NOT NULL DEFAULT '[]',
    qloo_data                     TEXT NOT NULL DEFAULT '{}',
    warning                       TEXT,
    created_at                    TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_insights_project_created ON insights(project_id, created_at);",
]

_INSERT_SQL = """\
INSERT INTO insights (
    id, project_id, audience_personas, cultural_trends, content_suggestions,
    taste_intersections, cross_domain_recommendations, qloo_data, warning, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_LATEST_SQL = """\
SELECT id, project_id, audience_personas, cultural_trends, content_suggestions,
       taste_intersections, cross_domain_recommendations, qloo_data, warning, created_at
FROM insights
WHERE project_id = ?
ORDER BY created_at DESC, rowid DESC
LIMIT 1;
"""

_JSON_COLUMNS = (
    "audience_personas",
    "cultural_trends",
    "content_suggestions",
    "taste_intersections",
    "cross_domain_recommendations",
    "qloo_data",
)


class SQLiteInsightsStore(IInsightsStore):
    """SQLite-backed insights persistence."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the insights table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("insights_db_initialized", path=str(self._db_path))

    async def save(self, result: InsightsResult) -> InsightsResult:
        data = result.model_dump(mode="json", by_alias=True)
        params = (
            result.id,
            result.project_id,
            *(json.dumps(data[column]) for column in _JSON_COLUMNS),
            result.warning,
            to_db_timestamp(result.created_at),
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_SQL, params)
                await db.commit()
        except aiosqlite.Error as exc:
            logger.error("insights_save_failed", project_id=result.project_id, error=str(exc))
            raise PersistenceError(message="Failed to save insights", provider_name="sqlite") from exc

        logger.info(
            "insights_saved",
            insight_id=result.id,
            project_id=result.project_id,
            fallback=result.warning is not None,
        )
        return result

    async def latest_for_project(self, project_id: str) -> InsightsResult | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_LATEST_SQL, (project_id,))
            row = await cursor.fetchone()

        if row is None:
            return None
        return InsightsResult.model_validate(
            {
                "id": row["id"],
                "project_id": row["project_id"],
                **{column: json.loads(row[column]) for column in _JSON_COLUMNS},
                "warning": row["warning"],
                "created_at": from_db_timestamp(row["created_at"]),
            }
        )
