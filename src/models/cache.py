"""Cultural-data cache entry model."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CacheEntry(BaseModel):
    """A cached Cultural-Graph response.

    ``project_id`` is an association only; the entry is addressed by
    ``request_hash``, which is derived from the generation inputs.
    """

    model_config = ConfigDict(frozen=True)

    request_hash: str
    project_id: str | None = None
    payload: dict[str, Any]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
