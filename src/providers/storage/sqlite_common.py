"""Helpers shared by the SQLite stores.

All stores share one database file (``DATABASE_PATH``).  Timestamps are
stored as fixed-width UTC strings so ``ORDER BY`` / ``>=`` on the text
column match chronological order.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

_TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

DEFAULT_DB_PATH = Path("data/cultureprism.db")

PROJECTS_TABLE = "projects"
INSIGHTS_TABLE = "insights"
CACHE_TABLE = "qloo_cache"
CONVERSATIONS_TABLE = "conversations"


def to_db_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_TS_FORMAT)


def from_db_timestamp(value: str) -> datetime:
    return datetime.strptime(value, _TS_FORMAT).replace(tzinfo=timezone.utc)
