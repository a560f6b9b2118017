"""Prompt construction for the insight orchestrators.

Every builder is a state-free function: (request, cultural data) → prompt
text.  The ``*_CALL`` constants hold the model parameters each orchestrator
uses so the prompts and their token budgets live side by side.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from src.models.market_fit import MarketFitRequest
from src.models.project import InsightBrief


@dataclass(frozen=True)
class LLMCallSpec:
    """Model parameters for one kind of LLM call."""

    model: str
    max_tokens: int
    temperature: float


DEEP_INSIGHTS_CALL = LLMCallSpec(model="gpt-4", max_tokens=4000, temperature=0.7)
LIVE_INSIGHTS_CALL = LLMCallSpec(model="gpt-4o", max_tokens=1536, temperature=0.8)
MARKET_FIT_CALL = LLMCallSpec(model="gpt-4o", max_tokens=3072, temperature=0.7)
CONVERSATION_CALL = LLMCallSpec(model="gpt-4", max_tokens=1500, temperature=0.7)


DEEP_SYSTEM_PROMPT = (
    "You are an expert marketing strategist and cultural analyst specializing in "
    "audience insights and content strategy. You interpret Qloo's Taste AI cultural "
    "intelligence data (taste profiles, demographics, preferences and affinity scores) "
    "and translate it into actionable marketing insights. Always respond with valid "
    "JSON in the exact format requested. Confidence scores must be whole numbers "
    "between 0-100. Affinity scores must be decimal numbers between 0-1."
)

LIVE_SYSTEM_PROMPT = (
    "You are an expert real-time audience analyst. Generate quick, actionable insights "
    "for live discovery. Always respond with valid JSON optimized for immediate use."
)

MARKET_FIT_SYSTEM_PROMPT = (
    "You are an expert market analyst and business strategist specializing in "
    "product-market fit analysis. Generate comprehensive, actionable market insights "
    "grounded in cultural intelligence. Always respond with valid JSON."
)

_DEEP_SCHEMA = """\
{
  "audience_personas": [
    {
      "name": "string",
      "description": "string",
      "characteristics": ["string"],
      "demographics": {"age_range": "string", "interests": ["string"], "platforms": ["string"]},
      "cultural_affinities": ["string"],
      "behavioral_patterns": ["string"],
      "affinity_scores": {"domain1": 0.85, "domain2": 0.72}
    }
  ],
  "cultural_trends": [
    {
      "title": "string",
      "description": "string",
      "confidence": 85,
      "impact": "string",
      "timeline": "string",
      "qloo_connection": "string",
      "affinity_score": 0.85
    }
  ],
  "content_suggestions": [
    {
      "title": "string",
      "description": "string",
      "platforms": ["string"],
      "content_type": "string",
      "copy": "string",
      "engagement_potential": "string",
      "cultural_timing": "string",
      "affinity_score": 0.85
    }
  ],
  "taste_intersections": [
    {
      "intersection_name": "string",
      "description": "string",
      "shared_attributes": ["string"],
      "overlap_percentage": 75,
      "personas_involved": ["string"],
      "common_interests": ["string"],
      "marketing_opportunities": ["string"]
    }
  ],
  "cross_domain_recommendations": [
    {
      "source_domain": "string",
      "target_domain": "string",
      "recommendation_title": "string",
      "description": "string",
      "confidence_score": 85,
      "related_entities": ["string"],
      "expansion_opportunities": ["string"],
      "audience_fit": 0.85,
      "implementation_difficulty": "Low|Medium|High"
    }
  ]
}"""

_LIVE_SCHEMA = """\
{
  "personas": [
    {"name": "string", "description": "string", "affinity_score": 0.85,
     "key_traits": ["string"], "platforms": ["string"], "confidence": 85}
  ],
  "trends": [
    {"title": "string", "description": "string", "strength": 80,
     "timeline": "string", "confidence": 85}
  ],
  "content": [
    {"title": "string", "description": "string", "platforms": ["string"],
     "engagement_potential": 80, "confidence": 85}
  ],
  "market_fit_score": 80,
  "cultural_relevance": 75
}"""

_MARKET_FIT_SCHEMA = """\
{
  "overall_fit_score": 78,
  "segments": [
    {
      "name": "string",
      "match_percentage": 80,
      "description": "string",
      "audience_size": "string",
      "key_characteristics": ["string"],
      "recommended_channels": ["string"],
      "price_sensitivity": "Low|Medium|High",
      "competition_level": "Low|Medium|High",
      "engagement_potential": 80,
      "conversion_likelihood": 60,
      "market_maturity": "Early|Growing|Mature|Declining",
      "cultural_alignment": 75
    }
  ],
  "market_size_estimate": {"tam": "string", "sam": "string", "som": "string",
                           "growth_rate": "string", "market_trends": ["string"]},
  "competitive_landscape": {"similar_products": ["string"], "market_gaps": ["string"],
                            "positioning_opportunities": ["string"],
                            "competitive_analysis": [{"name": "string", "market_share": 10,
                              "strengths": ["string"], "weaknesses": ["string"],
                              "pricing_strategy": "string", "target_segments": ["string"],
                              "differentiation_opportunity": "string"}]},
  "recommendations": {"primary_target": "string",
                      "launch_strategy": [{"phase": "string", "timeline": "string",
                        "key_activities": ["string"], "success_metrics": ["string"],
                        "budget_allocation": "string", "risk_factors": ["string"]}],
                      "pricing_insights": "string", "content_strategy": ["string"],
                      "go_to_market_timeline": "string"},
  "market_opportunities": [{"title": "string", "description": "string", "market_size": "string",
                            "difficulty": "Low|Medium|High", "time_to_market": "string",
                            "investment_required": "string", "success_probability": 70}],
  "risk_assessment": {"high_risk": ["string"], "medium_risk": ["string"],
                      "low_risk": ["string"], "mitigation_strategies": ["string"]},
  "cultural_insights": {"trending_themes": ["string"], "cultural_moments": ["string"],
                        "seasonal_opportunities": ["string"], "demographic_shifts": ["string"]}
}"""


def _join(values: list[str], default: str) -> str:
    return ", ".join(values) if values else default


def _dump(data: dict[str, Any] | None) -> str:
    return json.dumps(data or {}, indent=2, sort_keys=True, default=str)


def build_deep_prompt(brief: InsightBrief, cultural_data: dict[str, Any]) -> str:
    """User prompt for the deep (per-project) insight generation."""
    return f"""\
Based on the following project and cultural intelligence data from Qloo's Taste AI, generate detailed audience insights:

PROJECT DETAILS:
- Title: {brief.title or "Untitled project"}
- Description: {brief.description}
- Industry: {brief.industry or "General"}
- Cultural Domains: {_join(brief.cultural_domains, "General")}
- Geographical Targets: {_join(brief.geographical_targets, "Global")}

QLOO CULTURAL INTELLIGENCE DATA:
{_dump(cultural_data)}

IMPORTANT:
- Confidence scores must be whole numbers between 0-100 (e.g., 85, not 0.85 or 85%)
- Affinity scores must be decimal numbers between 0-1 (e.g., 0.85, not 85)
- Include affinity_scores for each persona with at least 5 cultural domains
- Include taste_intersections showing overlaps between personas
- Include cross_domain_recommendations for market expansion

Format the response as valid JSON with this exact structure:
{_DEEP_SCHEMA}

Generate 3-4 personas, 4-5 trends, 6-8 content suggestions, 2-3 taste intersections, and 3-4 cross-domain recommendations. Ensure all insights are specific, actionable, and directly leverage the cultural intelligence data provided.
"""


def build_live_prompt(brief: InsightBrief, cultural_data: dict[str, Any]) -> str:
    """User prompt for live discovery (fewer items, numeric scores)."""
    age = f"{brief.age_range[0]}-{brief.age_range[1]}" if brief.age_range else "All ages"
    return f"""\
Based on the following input and Qloo cultural intelligence data, generate live audience insights:

INPUT DETAILS:
- Description: {brief.description}
- Industry: {brief.industry or "General"}
- Cultural Domains: {_join(brief.cultural_domains, "None specified")}
- Geographic Targets: {_join(brief.geographical_targets, "Global")}
- Age Range: {age}

QLOO CULTURAL DATA:
{_dump(cultural_data)}

Generate live insights optimized for speed and immediate actionability, as valid JSON:
{_LIVE_SCHEMA}

Affinity scores are decimals between 0-1; confidence, strength and engagement_potential are whole numbers between 0-100.
Generate 3 personas, 3 trends, and 4 content ideas. Focus on immediate actionability and high confidence scores.
"""


def build_market_fit_prompt(request: MarketFitRequest) -> str:
    """User prompt for market-fit analysis (no cultural data)."""
    return f"""\
Generate a comprehensive product-market fit analysis for the following business:

PRODUCT DETAILS:
- Description: {request.description}
- Industry: {request.industry}
- Target Market: {request.target_market}
- Business Model: {request.business_model}

Include an overall_fit_score (whole number 0-100), market segments, competitive analysis, a phased launch strategy, market opportunities, a risk assessment and cultural insights. Format as valid JSON with this structure:
{_MARKET_FIT_SCHEMA}

Generate 3-4 market segments, a detailed competitive analysis and a comprehensive launch strategy.
"""
