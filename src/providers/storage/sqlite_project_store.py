"""SQLite-backed project store.

Persists projects to the shared database via ``aiosqlite``.  List columns
(``cultural_domains``, ``geographical_targets``) are stored as JSON text.
Deleting a project also removes its insights, cache entries and
conversation messages in the same transaction.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog
from pydantic import ValidationError

from src.interfaces.project_store import IProjectStore
from src.models.project import Project, ProjectCreate, ProjectUpdate
from src.providers.storage.sqlite_common import (
    CACHE_TABLE,
    CONVERSATIONS_TABLE,
    DEFAULT_DB_PATH,
    INSIGHTS_TABLE,
    from_db_timestamp,
    to_db_timestamp,
)
from src.utils.errors import InputValidationError, PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS projects (
    id                    TEXT PRIMARY KEY,
    user_id               TEXT NOT NULL,
    title                 TEXT NOT NULL,
    description           TEXT NOT NULL,
    cultural_domains      TEXT NOT NULL DEFAULT '[]',
    geographical_targets  TEXT NOT NULL DEFAULT '[]',
    industry              TEXT,
    created_at            TEXT NOT NULL,
    updated_at            TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_projects_user ON projects(user_id);",
]

_INSERT_SQL = """\
INSERT INTO projects (
    id, user_id, title, description, cultural_domains,
    geographical_targets, industry, created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_COLUMNS = (
    "id, user_id, title, description, cultural_domains, "
    "geographical_targets, industry, created_at, updated_at"
)

# Tables whose rows reference a project and go away with it.
_CASCADE_TABLES = (INSIGHTS_TABLE, CACHE_TABLE, CONVERSATIONS_TABLE)


def _row_to_project(row: aiosqlite.Row) -> Project:
    return Project(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        cultural_domains=json.loads(row["cultural_domains"] or "[]"),
        geographical_targets=json.loads(row["geographical_targets"] or "[]"),
        industry=row["industry"],
        created_at=from_db_timestamp(row["created_at"]),
        updated_at=from_db_timestamp(row["updated_at"]),
    )


class SQLiteProjectStore(IProjectStore):
    """SQLite-backed project persistence."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the projects table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("project_db_initialized", path=str(self._db_path))

    async def create(self, user_id: str, data: ProjectCreate) -> Project:
        now = datetime.now(timezone.utc)
        project = Project(
            id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_SQL, self._params(project))
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(message="Failed to create project", provider_name="sqlite") from exc

        logger.info("project_created", project_id=project.id, user_id=user_id)
        return project

    async def get(self, project_id: str, user_id: str) -> Project | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM projects WHERE id = ? AND user_id = ?",
                (project_id, user_id),
            )
            row = await cursor.fetchone()
        return _row_to_project(row) if row else None

    async def list_for_user(self, user_id: str) -> list[Project]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SELECT_COLUMNS} FROM projects WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_project(r) for r in rows]

    async def update(self, project_id: str, user_id: str, changes: ProjectUpdate) -> Project | None:
        current = await self.get(project_id, user_id)
        if current is None:
            return None

        updates = changes.changes()
        if not updates:
            return current

        try:
            updated = Project.model_validate(
                {**current.model_dump(), **updates, "updated_at": datetime.now(timezone.utc)}
            )
        except ValidationError as exc:
            raise InputValidationError(message=f"Invalid project update: {exc.errors()[0]['msg']}") from exc

        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    "UPDATE projects SET title = ?, description = ?, cultural_domains = ?, "
                    "geographical_targets = ?, industry = ?, updated_at = ? "
                    "WHERE id = ? AND user_id = ?",
                    (
                        updated.title,
                        updated.description,
                        json.dumps(updated.cultural_domains),
                        json.dumps(updated.geographical_targets),
                        updated.industry,
                        to_db_timestamp(updated.updated_at),
                        project_id,
                        user_id,
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(message="Failed to update project", provider_name="sqlite") from exc

        logger.info("project_updated", project_id=project_id, fields=sorted(updates))
        return updated

    async def delete(self, project_id: str, user_id: str) -> bool:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "DELETE FROM projects WHERE id = ? AND user_id = ?",
                    (project_id, user_id),
                )
                deleted = cursor.rowcount > 0
                if deleted:
                    existing = await self._existing_tables(db)
                    for table in _CASCADE_TABLES:
                        if table in existing:
                            await db.execute(f"DELETE FROM {table} WHERE project_id = ?", (project_id,))
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(message="Failed to delete project", provider_name="sqlite") from exc

        if deleted:
            logger.info("project_deleted", project_id=project_id)
        return deleted

    @staticmethod
    async def _existing_tables(db: aiosqlite.Connection) -> set[str]:
        cursor = await db.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return {row[0] for row in await cursor.fetchall()}

    @staticmethod
    def _params(project: Project) -> tuple[Any, ...]:
        return (
            project.id,
            project.user_id,
            project.title,
            project.description,
            json.dumps(project.cultural_domains),
            json.dumps(project.geographical_targets),
            project.industry,
            to_db_timestamp(project.created_at),
            to_db_timestamp(project.updated_at),
        )
