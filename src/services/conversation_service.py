"""Conversational campaign planning.

A chat assistant on top of the LLM: the user's message is classified into an
intent by keyword, the last few messages become context, and an
intent-specific system prompt steers a free-text (markdown) reply.  Simple
structured hints are then pulled out of the reply for the dashboard
(segments, phases, platforms, durations, confidence).

Unlike the insight orchestrators there is no JSON contract and no fallback:
an LLM failure propagates to the caller.
"""

from __future__ import annotations

import re
from typing import Any

from src.interfaces.conversation_store import IConversationStore
from src.interfaces.llm_provider import ILLMProvider
from src.models.conversation import ConversationMessage, MessageIntent, MessageMetadata
from src.services.prompt_builder import CONVERSATION_CALL
from src.utils.errors import InputValidationError
from src.utils.logging import get_logger

_logger = get_logger(__name__)

CONTEXT_WINDOW = 5
DEFAULT_CONFIDENCE = 75
DEFAULT_DURATION = "6-8 weeks"
KNOWN_PLATFORMS = ("Instagram", "TikTok", "YouTube", "LinkedIn", "Twitter", "Facebook", "Pinterest")

# Checked in order; the first intent with a matching keyword wins.
_INTENT_KEYWORDS: list[tuple[MessageIntent, tuple[str, ...]]] = [
    (MessageIntent.AUDIENCE_ANALYSIS, ("audience", "segment", "persona")),
    (MessageIntent.CONTENT_PLAN, ("content", "campaign", "strategy", "plan")),
    (MessageIntent.TREND_INSIGHT, ("trend", "emerging", "future", "prediction")),
]

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_NUMBERED_BOLD_RE = re.compile(r"\d+\.\s\*\*(.*?)\*\*")
_PHASE_RE = re.compile(r"Phase \d+")
_CONFIDENCE_RE = re.compile(r"(\d+)%\s*(confidence|match|alignment)", re.IGNORECASE)
_DURATION_RE = re.compile(r"(\d+[-–]\d+\s*(weeks?|months?))", re.IGNORECASE)

_BASE_PROMPT = """\
You are an AI assistant specialized in audience discovery and marketing strategy, \
powered by Qloo's cultural intelligence platform. You help marketers understand their \
audiences, create content strategies, and identify cultural trends.

{context}

Your responses should be:
- Professional and actionable
- Based on cultural intelligence and data-driven insights
- Specific and detailed with concrete examples
- Formatted with clear structure using markdown
- Include confidence percentages and specific recommendations when relevant

"""

_INTENT_FOCUS = {
    MessageIntent.AUDIENCE_ANALYSIS: """\
Focus on providing detailed audience segment analysis including:
- Demographic and psychographic profiles
- Cultural affinities and interests
- Platform preferences and behaviors
- Engagement patterns and preferences
- Specific targeting recommendations""",
    MessageIntent.CONTENT_PLAN: """\
Focus on creating comprehensive content strategies including:
- Multi-phase content plans with timelines
- Platform-specific recommendations
- Content themes and formats
- Engagement optimization tactics
- Cultural timing and seasonal opportunities
- Sample content ideas with copy suggestions""",
    MessageIntent.TREND_INSIGHT: """\
Focus on cultural trend analysis including:
- Emerging cultural movements and shifts
- Confidence levels and timeline predictions
- Impact on target audiences
- Marketing opportunities and timing
- Cross-domain cultural connections""",
    MessageIntent.GENERAL: (
        "Provide helpful guidance on audience discovery, content planning, or trend "
        "analysis. Ask clarifying questions if needed to better assist the user."
    ),
}


def classify_intent(message: str) -> MessageIntent:
    lowered = message.lower()
    for intent, keywords in _INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return MessageIntent.GENERAL


def build_context(history: list[ConversationMessage]) -> str:
    """Format the last few messages as ``User:`` / ``AI:`` lines."""
    if not history:
        return "This is the start of a new conversation."
    lines = [
        f"{'User' if msg.type == 'user' else 'AI'}: {msg.content}"
        for msg in history[-CONTEXT_WINDOW:]
    ]
    return "Previous conversation context:\n" + "\n".join(lines) + "\n\nCurrent query:"


def build_system_prompt(intent: MessageIntent, context: str) -> str:
    return _BASE_PROMPT.format(context=context) + _INTENT_FOCUS[intent]


def extract_confidence(content: str) -> int:
    match = _CONFIDENCE_RE.search(content)
    return int(match.group(1)) if match else DEFAULT_CONFIDENCE


def extract_platforms(content: str) -> list[str]:
    return [platform for platform in KNOWN_PLATFORMS if platform in content]


def extract_duration(content: str) -> str:
    match = _DURATION_RE.search(content)
    return match.group(1) if match else DEFAULT_DURATION


def extract_metadata(content: str, intent: MessageIntent) -> dict[str, Any]:
    """Pull dashboard hints out of a markdown reply."""
    if intent is MessageIntent.AUDIENCE_ANALYSIS:
        return {
            "segments": _BOLD_RE.findall(content)[:5],
            "confidence": extract_confidence(content),
        }
    if intent is MessageIntent.CONTENT_PLAN:
        return {
            "phases": len(_PHASE_RE.findall(content)),
            "platforms": extract_platforms(content),
            "duration": extract_duration(content),
        }
    if intent is MessageIntent.TREND_INSIGHT:
        return {
            "trends": len(_NUMBERED_BOLD_RE.findall(content)),
            "avgConfidence": extract_confidence(content),
        }
    return {}


class ConversationalPlanner:
    """Answers planning questions and optionally logs them per project.

    Parameters
    ----------
    llm:
        The LLM provider (free-text completions).
    conversation_store:
        Where replies are appended when a project id is given.
    model:
        Chat model name.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        conversation_store: IConversationStore | None = None,
        model: str = CONVERSATION_CALL.model,
    ) -> None:
        self._llm = llm
        self._store = conversation_store
        self._model = model

    async def reply(
        self,
        message: str | None,
        history: list[ConversationMessage] | None = None,
        project_id: str | None = None,
    ) -> ConversationMessage:
        if not message or not message.strip():
            raise InputValidationError(message="Message is required")

        intent = classify_intent(message)
        system_prompt = build_system_prompt(intent, build_context(history or []))
        _logger.info("conversation_reply_started", intent=intent.value, history=len(history or []))

        content = await self._llm.complete(
            system_prompt,
            message,
            model=self._model,
            temperature=CONVERSATION_CALL.temperature,
            max_tokens=CONVERSATION_CALL.max_tokens,
        )

        response = ConversationMessage(
            type="ai",
            content=content,
            metadata=MessageMetadata(type=intent, data=extract_metadata(content, intent)),
        )

        if project_id and self._store is not None:
            await self._store.append(project_id, ConversationMessage(type="user", content=message))
            await self._store.append(project_id, response)
            _logger.info("conversation_logged", project_id=project_id)

        return response
