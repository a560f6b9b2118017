"""Shared pytest fixtures for the CulturePrism test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from src.config.settings import Settings
from src.interfaces.auth_provider import AuthenticatedUser
from src.models.project import InsightBrief, Project

# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _persona(i: int) -> dict[str, Any]:
    return {
        "name": f"Persona {i}",
        "description": f"Description of persona {i}",
        "characteristics": ["curious", "social"],
        "demographics": {
            "age_range": "25-34",
            "interests": ["music", "travel"],
            "platforms": ["Instagram", "TikTok"],
        },
        "cultural_affinities": ["indie music"],
        "behavioral_patterns": ["shops online"],
        "affinity_scores": {"music": 0.82, "fashion": 0.64},
    }


def _trend(i: int) -> dict[str, Any]:
    return {
        "title": f"Trend {i}",
        "description": f"Description of trend {i}",
        "confidence": 80 + i,
        "impact": "High",
        "timeline": "Next 6 months",
        "qloo_connection": "music affinity cluster",
    }


def _suggestion(i: int) -> dict[str, Any]:
    return {
        "title": f"Idea {i}",
        "description": f"Description of idea {i}",
        "platforms": ["Instagram"],
        "content_type": "Video",
        "copy": f"Copy for idea {i}",
        "engagement_potential": "High",
        "cultural_timing": "Summer",
    }


def build_insights_dict(personas: int = 3, trends: int = 4, suggestions: int = 6) -> dict[str, Any]:
    return {
        "audience_personas": [_persona(i) for i in range(personas)],
        "cultural_trends": [_trend(i) for i in range(trends)],
        "content_suggestions": [_suggestion(i) for i in range(suggestions)],
    }


def build_live_dict() -> dict[str, Any]:
    return {
        "personas": [
            {
                "name": f"Live persona {i}",
                "description": "Fast-moving audience",
                "affinity_score": 0.8,
                "key_traits": ["bold"],
                "platforms": ["TikTok"],
                "confidence": 85,
            }
            for i in range(3)
        ],
        "trends": [
            {
                "title": f"Live trend {i}",
                "description": "Rising quickly",
                "strength": 75,
                "timeline": "Now",
                "confidence": 80,
            }
            for i in range(3)
        ],
        "content": [
            {
                "title": f"Live idea {i}",
                "description": "Short-form clip",
                "platforms": ["TikTok"],
                "engagement_potential": 82,
                "confidence": 78,
            }
            for i in range(4)
        ],
        "market_fit_score": 81,
        "cultural_relevance": 74,
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings with every upstream configured and no .env file read."""
    return Settings(
        _env_file=None,
        qloo_api_key="qloo-test-key",
        qloo_base_url="https://qloo.test",
        openai_api_key="sk-test",
        supabase_url="https://auth.test",
        supabase_anon_key="anon-test-key",
        retry_max_attempts=3,
        retry_base_delay_seconds=1.0,
    )


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(id="user-1", email="owner@example.com")


@pytest.fixture
def brief() -> InsightBrief:
    return InsightBrief(
        title="Oat milk launch",
        description="Plant-based oat milk for urban coffee lovers",
        industry="food & beverage",
        cultural_domains=["coffee culture", "indie music"],
        geographical_targets=["Berlin", "London"],
    )


@pytest.fixture
def project(user: AuthenticatedUser) -> Project:
    return Project(
        id="project-1",
        user_id=user.id,
        title="Oat milk launch",
        description="Plant-based oat milk for urban coffee lovers",
        industry="food & beverage",
        cultural_domains=["coffee culture", "indie music"],
        geographical_targets=["Berlin", "London"],
    )


@pytest.fixture
def insights_dict() -> dict[str, Any]:
    return build_insights_dict()


@pytest.fixture
def insights_json(insights_dict: dict[str, Any]) -> str:
    return json.dumps(insights_dict)


@pytest.fixture
def live_dict() -> dict[str, Any]:
    return build_live_dict()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """A fresh SQLite file inside pytest's temp directory."""
    return tmp_path / "data" / "cultureprism.db"


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_insights_dict() -> Callable[..., dict[str, Any]]:
    return build_insights_dict
