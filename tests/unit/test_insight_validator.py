"""Unit tests for LLM output parsing and insight validation."""

from __future__ import annotations

import json
from typing import Any

import pytest

from src.models.insights import InsightsPayload
from src.services.insight_validator import (
    insights_parser,
    market_fit_parser,
    parse_llm_json,
    validate_insights,
    validate_live_insights,
    validate_market_fit,
)
from src.utils.errors import OutputShapeError

# ======================================================================
# parse_llm_json
# ======================================================================


class TestParseLLMJson:
    def test_plain_object(self) -> None:
        assert parse_llm_json('{"a": 1}') == {"a": 1}

    def test_fenced_object(self) -> None:
        assert parse_llm_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_fence_without_language(self) -> None:
        assert parse_llm_json('```\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_object_surrounded_by_chatter(self) -> None:
        text = 'Here are your insights:\n{"a": {"b": 2}}\nLet me know if you need more.'
        assert parse_llm_json(text) == {"a": {"b": 2}}

    def test_invalid_json_raises_shape_error(self) -> None:
        with pytest.raises(OutputShapeError) as exc_info:
            parse_llm_json("not json at all")
        assert exc_info.value.message == "OpenAI API returned invalid JSON format"
        assert exc_info.value.provider_name == "openai"

    def test_array_is_rejected(self) -> None:
        with pytest.raises(OutputShapeError):
            parse_llm_json("[1, 2, 3]")


# ======================================================================
# validate_insights
# ======================================================================


class TestValidateInsights:
    def test_valid_payload(self, insights_dict: dict[str, Any]) -> None:
        report = validate_insights(insights_dict)
        assert report.valid
        assert report.errors == []
        assert isinstance(report.model, InsightsPayload)
        assert len(report.model.audience_personas) == 3

    def test_empty_collections_are_allowed(self) -> None:
        report = validate_insights(
            {"audience_personas": [], "cultural_trends": [], "content_suggestions": []}
        )
        assert report.valid

    def test_missing_age_range_is_rejected(self, insights_dict: dict[str, Any]) -> None:
        del insights_dict["audience_personas"][0]["demographics"]["age_range"]
        report = validate_insights(insights_dict)
        assert not report.valid
        assert any(e.startswith("Persona 0: demographics.age_range") for e in report.errors)

    def test_fractional_confidence_is_rejected(self, insights_dict: dict[str, Any]) -> None:
        insights_dict["cultural_trends"][1]["confidence"] = 0.85
        report = validate_insights(insights_dict)
        assert not report.valid
        assert any(e.startswith("Trend 1: confidence") for e in report.errors)

    def test_integral_float_confidence_is_accepted(self, insights_dict: dict[str, Any]) -> None:
        insights_dict["cultural_trends"][1]["confidence"] = 85.0
        report = validate_insights(insights_dict)
        assert report.valid
        assert report.model.cultural_trends[1].confidence == 85

    @pytest.mark.parametrize("value", ["85", True])
    def test_non_numeric_confidence_is_rejected(
        self, insights_dict: dict[str, Any], value: Any
    ) -> None:
        insights_dict["cultural_trends"][0]["confidence"] = value
        assert not validate_insights(insights_dict).valid

    def test_confidence_out_of_range_is_rejected(self, insights_dict: dict[str, Any]) -> None:
        insights_dict["cultural_trends"][0]["confidence"] = 140
        assert not validate_insights(insights_dict).valid

    def test_missing_collection_is_reported(self, insights_dict: dict[str, Any]) -> None:
        del insights_dict["cultural_trends"]
        report = validate_insights(insights_dict)
        assert not report.valid
        assert "cultural_trends is required and must be an array" in report.errors

    def test_non_array_collection_is_reported(self, insights_dict: dict[str, Any]) -> None:
        insights_dict["content_suggestions"] = {"title": "oops"}
        report = validate_insights(insights_dict)
        assert "content_suggestions must be an array" in report.errors

    def test_empty_title_is_rejected(self, insights_dict: dict[str, Any]) -> None:
        insights_dict["content_suggestions"][2]["title"] = ""
        report = validate_insights(insights_dict)
        assert any(e.startswith("Content 2: title") for e in report.errors)

    def test_affinity_scores_must_be_fractions(self, insights_dict: dict[str, Any]) -> None:
        insights_dict["audience_personas"][1]["affinity_scores"] = {"music": 85}
        assert not validate_insights(insights_dict).valid

    def test_every_error_is_collected(self, insights_dict: dict[str, Any]) -> None:
        del insights_dict["audience_personas"][0]["name"]
        insights_dict["cultural_trends"][0]["confidence"] = 0.5
        report = validate_insights(insights_dict)
        assert len(report.errors) >= 2

    def test_non_object_candidate(self) -> None:
        report = validate_insights(["not", "an", "object"])
        assert not report.valid
        assert report.errors == ["Insights must be an object"]


class TestOtherValidators:
    def test_live_payload(self, live_dict: dict[str, Any]) -> None:
        assert validate_live_insights(live_dict).valid

    def test_live_fractional_confidence(self, live_dict: dict[str, Any]) -> None:
        live_dict["personas"][0]["confidence"] = 0.9
        assert not validate_live_insights(live_dict).valid

    def test_market_fit_is_coarse(self) -> None:
        report = validate_market_fit(
            {"overall_fit_score": 72, "segments": [{"anything": "goes"}], "extra": {"kept": True}}
        )
        assert report.valid

    def test_market_fit_requires_segments(self) -> None:
        report = validate_market_fit({"overall_fit_score": 72})
        assert not report.valid


# ======================================================================
# Parsers used as the LLM parse step
# ======================================================================


class TestParsers:
    def test_insights_parser_returns_model(self, insights_json: str) -> None:
        result = insights_parser(f"```json\n{insights_json}\n```")
        assert isinstance(result, InsightsPayload)
        assert result.content_suggestions[0].copy_text == "Copy for idea 0"

    def test_insights_parser_raises_with_errors(self, insights_dict: dict[str, Any]) -> None:
        del insights_dict["cultural_trends"]
        with pytest.raises(OutputShapeError) as exc_info:
            insights_parser(json.dumps(insights_dict))
        assert exc_info.value.message == "Generated insights failed validation"
        assert "cultural_trends is required and must be an array" in exc_info.value.errors

    def test_market_fit_parser_passes_raw_object_through(self) -> None:
        raw = {
            "overall_fit_score": 64,
            "segments": [{"name": "Students"}],
            "risk_assessment": {"high_risk": ["pricing"]},
        }
        assert market_fit_parser(json.dumps(raw)) == raw
