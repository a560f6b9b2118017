"""SQLite-backed planning conversation log."""

from __future__ import annotations

import json
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.conversation_store import IConversationStore
from src.models.conversation import ConversationMessage
from src.providers.storage.sqlite_common import DEFAULT_DB_PATH, from_db_timestamp, to_db_timestamp
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS conversations (
    id            TEXT PRIMARY KEY,
    project_id    TEXT NOT NULL,
    message_type  TEXT NOT NULL,
    content       TEXT NOT NULL,
    metadata      TEXT,
    created_at    TEXT NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_conversations_project ON conversations(project_id, created_at);",
]


class SQLiteConversationStore(IConversationStore):
    """SQLite-backed conversation persistence."""

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the conversations table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("conversation_db_initialized", path=str(self._db_path))

    async def append(self, project_id: str, message: ConversationMessage) -> None:
        metadata = message.metadata.model_dump(mode="json") if message.metadata else None
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    "INSERT INTO conversations (id, project_id, message_type, content, metadata, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        message.id,
                        project_id,
                        message.type,
                        message.content,
                        json.dumps(metadata) if metadata is not None else None,
                        to_db_timestamp(message.timestamp),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(message="Failed to save conversation", provider_name="sqlite") from exc

    async def list_for_project(self, project_id: str, limit: int = 50) -> list[ConversationMessage]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, message_type, content, metadata, created_at FROM ("
                "  SELECT rowid AS rid, * FROM conversations WHERE project_id = ?"
                "  ORDER BY created_at DESC, rid DESC LIMIT ?"
                ") ORDER BY created_at ASC, rid ASC",
                (project_id, limit),
            )
            rows = await cursor.fetchall()

        return [
            ConversationMessage(
                id=row["id"],
                type=row["message_type"],
                content=row["content"],
                timestamp=from_db_timestamp(row["created_at"]),
                metadata=json.loads(row["metadata"]) if row["metadata"] else None,
            )
            for row in rows
        ]
