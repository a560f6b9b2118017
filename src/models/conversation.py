"""Conversational-planning models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class MessageIntent(str, Enum):  # noqa: UP042
    """What a planning message is asking about."""

    AUDIENCE_ANALYSIS = "audience_analysis"
    CONTENT_PLAN = "content_plan"
    TREND_INSIGHT = "trend_insight"
    GENERAL = "general"


class MessageMetadata(BaseModel):
    type: MessageIntent = MessageIntent.GENERAL
    data: dict[str, Any] = Field(default_factory=dict)


class ConversationMessage(BaseModel):
    """One chat message, either from the user or generated by the planner."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: Literal["user", "ai"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: MessageMetadata | None = None


class ConversationRequest(BaseModel):
    """Body of ``POST /api/v1/conversational-planning``."""

    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    chat_history: list[ConversationMessage] = Field(default_factory=list, alias="chatHistory")
    project_id: str | None = Field(default=None, alias="projectId")
