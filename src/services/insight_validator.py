"""Parsing and schema validation for LLM insight output.

The LLM is asked for a JSON object; what comes back is a string that may be
fenced, prefixed with chatter, or structurally wrong.  This module turns it
into a validated model or a list of human-readable errors.

Two layers:

1. :func:`parse_llm_json` — fence/brace stripping plus ``json.loads``.
   Raises :class:`OutputShapeError` so the retry executor re-sends.
2. ``validate_*`` — exhaustive structural checks against the pydantic
   contract models.  A single bad field anywhere fails the whole batch;
   there is no partial repair.  Each returns a :class:`ValidationReport`.

The ``*_parser`` helpers combine both for use as the ``parse`` step of
:meth:`ILLMProvider.complete_json`, so invalid output is retried like a
parse failure.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from src.models.insights import InsightsPayload
from src.models.live import LiveInsights
from src.models.market_fit import MarketFitResponse
from src.utils.errors import OutputShapeError
from src.utils.logging import get_logger

_logger = get_logger(__name__)

# Matches markdown code fences (```json ... ``` or ``` ... ```) that LLMs
# wrap around JSON output despite being asked not to.
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# Human labels for list items, keyed by the collection they live in.
_ITEM_LABELS = {
    "audience_personas": "Persona",
    "cultural_trends": "Trend",
    "content_suggestions": "Content",
    "taste_intersections": "Taste intersection",
    "cross_domain_recommendations": "Cross-domain recommendation",
    "personas": "Persona",
    "trends": "Trend",
    "content": "Content",
    "segments": "Segment",
}


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of validating one candidate payload."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    model: BaseModel | None = None


def parse_llm_json(text: str, provider_name: str = "openai") -> dict[str, Any]:
    """Extract a JSON object from raw LLM output.

    Raises
    ------
    OutputShapeError
        If no JSON object can be decoded.
    """
    cleaned = (text or "").strip()

    fence_match = _JSON_FENCE_RE.search(cleaned)
    if fence_match:
        cleaned = fence_match.group(1).strip()

    if not cleaned.startswith("{"):
        brace_start = cleaned.find("{")
        brace_end = cleaned.rfind("}")
        if brace_start != -1 and brace_end > brace_start:
            cleaned = cleaned[brace_start : brace_end + 1]

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise OutputShapeError(
            message="OpenAI API returned invalid JSON format",
            provider_name=provider_name,
            errors=[str(exc)],
        ) from exc

    if not isinstance(parsed, dict):
        raise OutputShapeError(
            message="LLM response is not a JSON object",
            provider_name=provider_name,
            errors=[f"expected object, got {type(parsed).__name__}"],
        )
    return parsed


def _format_error(error: dict[str, Any]) -> str:
    loc = list(error.get("loc", ()))
    message = error.get("msg", "invalid value")

    if len(loc) >= 2 and isinstance(loc[1], int) and loc[0] in _ITEM_LABELS:
        label = f"{_ITEM_LABELS[loc[0]]} {loc[1]}"
        path = ".".join(str(part) for part in loc[2:])
        return f"{label}: {path} {message}" if path else f"{label}: {message}"

    path = ".".join(str(part) for part in loc)
    if error.get("type") == "missing" and len(loc) == 1:
        return f"{path} is required and must be an array"
    if error.get("type") == "list_type" and len(loc) == 1:
        return f"{path} must be an array"
    return f"{path}: {message}" if path else message


def _validate(candidate: Any, model: type[BaseModel], what: str) -> ValidationReport:
    if not isinstance(candidate, dict):
        return ValidationReport(valid=False, errors=[f"{what} must be an object"])
    try:
        parsed = model.model_validate(candidate)
    except ValidationError as exc:
        errors = [_format_error(err) for err in exc.errors()]
        return ValidationReport(valid=False, errors=errors)
    return ValidationReport(valid=True, model=parsed)


def validate_insights(candidate: Any) -> ValidationReport:
    """Check a deep-pipeline payload against the full insight contract."""
    return _validate(candidate, InsightsPayload, "Insights")


def validate_live_insights(candidate: Any) -> ValidationReport:
    """Check a live-discovery payload."""
    return _validate(candidate, LiveInsights, "Live insights")


def validate_market_fit(candidate: Any) -> ValidationReport:
    """Coarse check: only ``overall_fit_score`` and ``segments`` are required."""
    return _validate(candidate, MarketFitResponse, "Market fit analysis")


def make_parser(
    validator: Callable[[Any], ValidationReport],
    provider_name: str = "openai",
    return_raw: bool = False,
) -> Callable[[str], Any]:
    """Build a ``parse`` step that returns the validated model or raises.

    With ``return_raw`` the decoded dict is returned untouched instead of
    the model, for pass-through responses.

    The raised :class:`OutputShapeError` carries every validation error so
    the orchestrator can log them once the retries run out.
    """

    def parse(text: str) -> Any:
        candidate = parse_llm_json(text, provider_name)
        report = validator(candidate)
        if not report.valid:
            _logger.warning("llm_output_invalid", errors=report.errors[:10], error_count=len(report.errors))
            raise OutputShapeError(
                message="Generated insights failed validation",
                provider_name=provider_name,
                errors=report.errors,
            )
        return candidate if return_raw else report.model

    return parse


insights_parser = make_parser(validate_insights)
live_insights_parser = make_parser(validate_live_insights)
market_fit_parser = make_parser(validate_market_fit, return_raw=True)
