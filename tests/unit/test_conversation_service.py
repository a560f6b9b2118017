"""Unit tests for the conversational planner and its extraction helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.conversation_store import IConversationStore
from src.interfaces.llm_provider import ILLMProvider
from src.models.conversation import ConversationMessage, MessageIntent
from src.services.conversation_service import (
    ConversationalPlanner,
    build_context,
    build_system_prompt,
    classify_intent,
    extract_metadata,
)
from src.utils.errors import InputValidationError, UpstreamTransientError


def _mock_llm(reply: str = "Sure.") -> MagicMock:
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value=reply)
    llm.is_available.return_value = True
    return llm


# ======================================================================
# Intent classification
# ======================================================================


@pytest.mark.parametrize(
    ("message", "intent"),
    [
        ("Who is my target AUDIENCE?", MessageIntent.AUDIENCE_ANALYSIS),
        ("Build a persona for Gen Z", MessageIntent.AUDIENCE_ANALYSIS),
        ("Draft a content calendar", MessageIntent.CONTENT_PLAN),
        ("What's our campaign strategy?", MessageIntent.CONTENT_PLAN),
        ("Any emerging movements?", MessageIntent.TREND_INSIGHT),
        ("Hello there", MessageIntent.GENERAL),
    ],
)
def test_classify_intent(message: str, intent: MessageIntent) -> None:
    assert classify_intent(message) is intent


def test_first_matching_intent_wins() -> None:
    assert classify_intent("audience trends") is MessageIntent.AUDIENCE_ANALYSIS


# ======================================================================
# Context and prompts
# ======================================================================


def test_empty_history_context() -> None:
    assert build_context([]) == "This is the start of a new conversation."


def test_context_keeps_last_five() -> None:
    history = [
        ConversationMessage(type="user" if i % 2 == 0 else "ai", content=f"msg {i}")
        for i in range(7)
    ]
    context = build_context(history)
    assert "msg 0" not in context
    assert "msg 1" not in context
    assert "User: msg 2" in context
    assert "AI: msg 3" in context
    assert context.endswith("Current query:")


def test_system_prompt_has_intent_focus() -> None:
    prompt = build_system_prompt(MessageIntent.TREND_INSIGHT, "ctx")
    assert "ctx" in prompt
    assert "cultural trend analysis" in prompt


# ======================================================================
# Metadata extraction
# ======================================================================


def test_audience_metadata() -> None:
    content = "**Urban Creatives** and **Weekend Ravers** show a 87% match."
    data = extract_metadata(content, MessageIntent.AUDIENCE_ANALYSIS)
    assert data == {"segments": ["Urban Creatives", "Weekend Ravers"], "confidence": 87}


def test_content_plan_metadata() -> None:
    content = "Phase 1 on Instagram, Phase 2 on TikTok. Runs 4-6 weeks."
    data = extract_metadata(content, MessageIntent.CONTENT_PLAN)
    assert data == {"phases": 2, "platforms": ["Instagram", "TikTok"], "duration": "4-6 weeks"}


def test_content_plan_defaults() -> None:
    data = extract_metadata("Post often.", MessageIntent.CONTENT_PLAN)
    assert data == {"phases": 0, "platforms": [], "duration": "6-8 weeks"}


def test_trend_metadata() -> None:
    content = "1. **Slow living** grows\n2. **Craft coffee** rises"
    data = extract_metadata(content, MessageIntent.TREND_INSIGHT)
    assert data == {"trends": 2, "avgConfidence": 75}


def test_general_metadata_is_empty() -> None:
    assert extract_metadata("**Bold**", MessageIntent.GENERAL) == {}


# ======================================================================
# ConversationalPlanner
# ======================================================================


class TestConversationalPlanner:
    @pytest.mark.asyncio
    async def test_reply(self) -> None:
        llm = _mock_llm("**Coffee Nerds** at 90% confidence")
        planner = ConversationalPlanner(llm, model="gpt-4")

        reply = await planner.reply("Describe my audience")

        assert reply.type == "ai"
        assert reply.metadata is not None
        assert reply.metadata.type is MessageIntent.AUDIENCE_ANALYSIS
        assert reply.metadata.data["segments"] == ["Coffee Nerds"]
        kwargs = llm.complete.await_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["max_tokens"] == 1500

    @pytest.mark.asyncio
    async def test_missing_message(self) -> None:
        llm = _mock_llm()
        planner = ConversationalPlanner(llm)
        with pytest.raises(InputValidationError, match="Message is required"):
            await planner.reply("   ")
        llm.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_logs_both_messages_for_project(self) -> None:
        store = MagicMock(spec=IConversationStore)
        store.append = AsyncMock()
        planner = ConversationalPlanner(_mock_llm("ok"), conversation_store=store)

        await planner.reply("Plan a campaign", project_id="p1")

        appended = [call.args for call in store.append.await_args_list]
        assert [(pid, msg.type) for pid, msg in appended] == [("p1", "user"), ("p1", "ai")]
        assert appended[0][1].content == "Plan a campaign"

    @pytest.mark.asyncio
    async def test_no_logging_without_project(self) -> None:
        store = MagicMock(spec=IConversationStore)
        store.append = AsyncMock()
        planner = ConversationalPlanner(_mock_llm(), conversation_store=store)
        await planner.reply("hi")
        store.append.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_llm_failure_propagates(self) -> None:
        llm = _mock_llm()
        llm.complete.side_effect = UpstreamTransientError(provider_name="openai")
        planner = ConversationalPlanner(llm)
        with pytest.raises(UpstreamTransientError):
            await planner.reply("hi")
