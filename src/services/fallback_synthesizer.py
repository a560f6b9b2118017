"""Deterministic, non-AI substitutes for cultural data and insights.

Used when an upstream is unconfigured or exhausted its retries, and when the
LLM's output never passed validation.  Everything here is a pure function of
its inputs: the same brief and cultural payload always produce the same
result, so a fallback response is reproducible and testable.

    mock_cultural_data(brief)                 stand-in for a Qloo payload
    synthesize_insights(brief, cultural)      full InsightsPayload
    synthesize_live_insights(brief, cultural) live projection of the above

The live shape is derived from :func:`synthesize_insights` rather than
written separately so the two cannot drift apart.
"""

from __future__ import annotations

from typing import Any

from src.models.insights import (
    ContentSuggestion,
    CrossDomainRecommendation,
    Demographics,
    InsightsPayload,
    Persona,
    TasteIntersection,
    Trend,
)
from src.models.live import LiveContent, LiveInsights, LivePersona, LiveTrend
from src.models.project import InsightBrief

FALLBACK_WARNING = (
    "AI-generated insights were unavailable or failed validation; "
    "showing baseline insights instead."
)

_DEFAULT_DOMAINS = ["music", "fashion", "film", "food", "travel"]
_AFFINITY_LADDER = [0.86, 0.78, 0.71, 0.64, 0.58]
_ENGAGEMENT_SCORES = {"High": 88, "Medium": 74, "Low": 60}


def _domains(brief: InsightBrief) -> list[str]:
    return list(brief.cultural_domains) or list(_DEFAULT_DOMAINS)


def _region(brief: InsightBrief) -> str:
    return ", ".join(brief.geographical_targets) or "Global"


def _industry(brief: InsightBrief) -> str:
    return brief.industry or "general"


def _affinity_scores(domains: list[str], offset: int) -> dict[str, float]:
    scores: dict[str, float] = {}
    for i, domain in enumerate(domains[:5]):
        scores[domain] = _AFFINITY_LADDER[(i + offset) % len(_AFFINITY_LADDER)]
    return scores


def _cultural_affinity_scores(cultural_data: dict[str, Any] | None) -> dict[str, float]:
    """Pull numeric domain scores from a real Qloo payload when it has them."""
    if not cultural_data or cultural_data.get("mock"):
        return {}
    raw = cultural_data.get("affinity_scores")
    if not isinstance(raw, dict):
        return {}
    return {
        str(k): float(v)
        for k, v in raw.items()
        if isinstance(v, (int, float)) and not isinstance(v, bool) and 0 <= v <= 1
    }


def mock_cultural_data(brief: InsightBrief) -> dict[str, Any]:
    """Deterministic stand-in for a Cultural-Graph response.

    Marked with ``"mock": True`` so downstream consumers can tell it apart.
    Never written to the cache.
    """
    domains = _domains(brief)
    return {
        "mock": True,
        "input": {
            "description": brief.description,
            "industry": _industry(brief),
            "language": "en",
        },
        "taste_profile": {
            "domains": domains,
            "regions": list(brief.geographical_targets) or ["Global"],
        },
        "affinity_scores": _affinity_scores(domains, 0),
        "demographics": {"primary_age_range": "18-34", "secondary_age_range": "35-54"},
        "related_entities": [],
    }


def synthesize_insights(
    brief: InsightBrief,
    cultural_data: dict[str, Any] | None = None,
) -> InsightsPayload:
    """Build the fixed-shape fallback insight set for *brief*.

    Always 3 personas, 4 trends, 6 content suggestions, 2 taste
    intersections and 3 cross-domain recommendations.
    """
    domains = _domains(brief)
    region = _region(brief)
    industry = _industry(brief)
    upstream_scores = _cultural_affinity_scores(cultural_data)

    def scores(offset: int) -> dict[str, float]:
        return upstream_scores or _affinity_scores(domains, offset)

    personas = [
        Persona(
            name="Culturally Curious Explorers",
            description=f"Early adopters in {region} who discover {industry} brands through {domains[0]}.",
            characteristics=["Trend-aware", "Socially connected", "Values authenticity"],
            demographics=Demographics(
                age_range="18-24",
                interests=domains[:3],
                platforms=["TikTok", "Instagram", "YouTube"],
            ),
            cultural_affinities=domains[:3],
            behavioral_patterns=["Shares discoveries with friends", "Follows niche creators"],
            affinity_scores=scores(0),
        ),
        Persona(
            name="Purpose-Driven Professionals",
            description=f"Career-focused buyers who choose {industry} brands that reflect their values.",
            characteristics=["Research-driven", "Brand loyal", "Quality over quantity"],
            demographics=Demographics(
                age_range="25-34",
                interests=domains[1:4] or domains[:1],
                platforms=["LinkedIn", "Instagram", "Podcasts"],
            ),
            cultural_affinities=domains[1:4] or domains[:1],
            behavioral_patterns=["Reads reviews before buying", "Responds to expert content"],
            affinity_scores=scores(1),
        ),
        Persona(
            name="Established Tastemakers",
            description=f"Influential consumers in {region} whose recommendations shape their circles.",
            characteristics=["Discerning", "Community-minded", "Experience-seeking"],
            demographics=Demographics(
                age_range="35-54",
                interests=domains[-3:],
                platforms=["Facebook", "Pinterest", "Email"],
            ),
            cultural_affinities=domains[-3:],
            behavioral_patterns=["Attends live events", "Invests in premium experiences"],
            affinity_scores=scores(2),
        ),
    ]

    trends = [
        Trend(
            title=f"{domains[0].title()} as Identity",
            description=f"Audiences increasingly express identity through {domains[0]}.",
            confidence=82,
            impact="High",
            timeline="Current trend",
            qloo_connection=f"Strong affinity cluster around {domains[0]}",
        ),
        Trend(
            title="Conscious Consumption",
            description="Growing demand for transparency and sustainability in purchase decisions.",
            confidence=78,
            impact="High",
            timeline="Next 6-12 months",
        ),
        Trend(
            title="Creator-Led Discovery",
            description="Independent creators are replacing traditional advertising as discovery drivers.",
            confidence=74,
            impact="Medium",
            timeline="Next 6-12 months",
        ),
        Trend(
            title=f"Hyperlocal Culture in {region}",
            description="Local scenes and micro-communities shape what travels globally.",
            confidence=69,
            impact="Medium",
            timeline="Next 12-18 months",
        ),
    ]

    suggestion_specs = [
        ("Behind the Scenes", "Video", ["TikTok", "Instagram"], "High"),
        ("Community Spotlight", "Carousel", ["Instagram", "Facebook"], "High"),
        ("Expert Perspectives", "Article", ["LinkedIn", "Blog"], "Medium"),
        ("Cultural Moment Tie-In", "Short-form video", ["TikTok", "YouTube"], "High"),
        ("Creator Collaboration", "Live stream", ["YouTube", "Instagram"], "Medium"),
        ("Customer Stories", "Testimonial", ["Facebook", "Email"], "Low"),
    ]
    content_suggestions = [
        ContentSuggestion(
            title=title,
            description=f"{content_type} content connecting the brand with {domains[i % len(domains)]} audiences.",
            platforms=platforms,
            content_type=content_type,
            copy_text=f"Discover how {domains[i % len(domains)]} inspires what we do.",
            engagement_potential=engagement,
            cultural_timing="Evergreen",
        )
        for i, (title, content_type, platforms, engagement) in enumerate(suggestion_specs)
    ]

    taste_intersections = [
        TasteIntersection(
            intersection_name=f"{personas[0].name} x {personas[1].name}",
            description="Shared appetite for authentic, story-led brands.",
            shared_attributes=["Values authenticity", "Socially connected"],
            overlap_percentage=62,
            personas_involved=[personas[0].name, personas[1].name],
            common_interests=domains[:2],
            marketing_opportunities=["Co-created content series"],
        ),
        TasteIntersection(
            intersection_name=f"{personas[1].name} x {personas[2].name}",
            description="Both invest in quality and respond to expert voices.",
            shared_attributes=["Quality over quantity", "Discerning"],
            overlap_percentage=48,
            personas_involved=[personas[1].name, personas[2].name],
            common_interests=domains[-2:],
            marketing_opportunities=["Premium membership offers"],
        ),
    ]

    targets = [d for d in _DEFAULT_DOMAINS if d not in domains] or list(_DEFAULT_DOMAINS)
    cross_domain_recommendations = [
        CrossDomainRecommendation(
            source_domain=domains[i % len(domains)],
            target_domain=targets[i % len(targets)],
            recommendation_title=f"Extend into {targets[i % len(targets)]}",
            description=(
                f"Audiences engaged with {domains[i % len(domains)]} show adjacent interest "
                f"in {targets[i % len(targets)]}."
            ),
            confidence_score=score,
            related_entities=[],
            expansion_opportunities=["Partnerships", "Limited collaborations"],
            audience_fit=fit,
            implementation_difficulty=difficulty,
        )
        for i, (score, fit, difficulty) in enumerate(
            [(72, 0.74, "Low"), (64, 0.66, "Medium"), (55, 0.58, "High")]
        )
    ]

    return InsightsPayload(
        audience_personas=personas,
        cultural_trends=trends,
        content_suggestions=content_suggestions,
        taste_intersections=taste_intersections,
        cross_domain_recommendations=cross_domain_recommendations,
    )


def synthesize_live_insights(
    brief: InsightBrief,
    cultural_data: dict[str, Any] | None = None,
) -> LiveInsights:
    """Project :func:`synthesize_insights` onto the live-discovery shape.

    3 personas, 3 trends, 4 content ideas.
    """
    full = synthesize_insights(brief, cultural_data)

    personas = []
    for persona in full.audience_personas[:3]:
        scores = list((persona.affinity_scores or {}).values())
        affinity = round(sum(scores) / len(scores), 2) if scores else 0.7
        personas.append(
            LivePersona(
                name=persona.name,
                description=persona.description,
                affinity_score=affinity,
                key_traits=persona.characteristics[:3],
                platforms=persona.demographics.platforms,
                confidence=round(affinity * 100),
            )
        )

    trends = [
        LiveTrend(
            title=trend.title,
            description=trend.description,
            strength=max(trend.confidence - 5, 0),
            timeline=trend.timeline,
            confidence=trend.confidence,
        )
        for trend in full.cultural_trends[:3]
    ]

    content = [
        LiveContent(
            title=suggestion.title,
            description=suggestion.description,
            platforms=suggestion.platforms,
            engagement_potential=_ENGAGEMENT_SCORES.get(suggestion.engagement_potential, 70),
            confidence=_ENGAGEMENT_SCORES.get(suggestion.engagement_potential, 70) - 4,
        )
        for suggestion in full.content_suggestions[:4]
    ]

    market_fit = round(sum(p.confidence for p in personas) / len(personas))
    relevance = round(sum(t.confidence for t in trends) / len(trends))
    return LiveInsights(
        personas=personas,
        trends=trends,
        content=content,
        market_fit_score=market_fit,
        cultural_relevance=relevance,
    )
