"""
Recommendation scoring: deterministic priority ordering of SEO improvements.

Score formula
-------------
    effort_score   = {low: 1, medium: 2, high: 3}[effort]              (unknown → 1)
    impact_score   = round(base_impact * type_multiplier + effort_penalty, 2)
    priority_score = impact_score / effort_score

    base_impact      {low: 1, medium: 2, high: 3}                       (unknown → 1)
    type_multiplier  backlink 1.0 > content 0.9 > technical 0.8 > on-page 0.7
                     > local 0.6 > schema 0.5 > other 0.4               (unknown → 0.4)
    effort_penalty   {low: 0, medium: -0.1, high: -0.2}                 (unknown → 0)

Consequences
------------
- effort_score is always 1, 2 or 3, so priority never divides by zero.
- impact_score lies in [base_impact * 0.4 - 0.2, base_impact * 1.0].
- Sorting is stable: equal priorities keep the caller's order.

Example::

    backlink / high impact / low effort   → impact 3.0, effort 1, priority 3.0
    content  / medium     / medium        → impact 1.7, effort 2, priority 0.85
    schema   / low        / high          → impact 0.3, effort 3, priority 0.1

Everything here is pure: no I/O, no randomness, no mutation of inputs.
"""

from __future__ import annotations

from seo_forecaster.models.recommendation import ScoredRecommendation, SEORecommendation

EFFORT_SCORES: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
}

IMPACT_VALUES: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
}

TYPE_MULTIPLIERS: dict[str, float] = {
    "backlink":  1.0,
    "content":   0.9,
    "technical": 0.8,
    "on-page":   0.7,
    "local":     0.6,
    "schema":    0.5,
    "other":     0.4,
}

EFFORT_PENALTIES: dict[str, float] = {
    "low":     0.0,
    "medium": -0.1,
    "high":   -0.2,
}

_DEFAULT_MULTIPLIER = 0.4


def effort_score(effort: str) -> int:
    """Map an effort level to 1/2/3; unrecognized levels score 1."""
    return EFFORT_SCORES.get(str(effort), 1)


def impact_score(recommendation: SEORecommendation) -> float:
    """Type-weighted impact minus the effort penalty, rounded to 2 decimals."""
    base = IMPACT_VALUES.get(str(recommendation.impact), 1)
    multiplier = TYPE_MULTIPLIERS.get(str(recommendation.type), _DEFAULT_MULTIPLIER)
    penalty = EFFORT_PENALTIES.get(str(recommendation.effort), 0.0)
    return round(base * multiplier + penalty, 2)


def score_recommendation(recommendation: SEORecommendation) -> ScoredRecommendation:
    impact = impact_score(recommendation)
    effort = effort_score(recommendation.effort)
    return ScoredRecommendation(
        recommendation=recommendation,
        impact_score=impact,
        effort_score=effort,
        priority_score=impact / effort,
    )


def score_recommendations(
    recommendations: list[SEORecommendation],
) -> list[ScoredRecommendation]:
    """Score every recommendation and sort by priority, highest first.

    Args:
        recommendations: Candidates in the caller's order.

    Returns:
        ``ScoredRecommendation`` list sorted by ``priority_score`` descending;
        ties keep their input order.
    """
    scored = [score_recommendation(r) for r in recommendations]
    return sorted(scored, key=lambda s: s.priority_score, reverse=True)


def assign_recommendation_ids(
    recommendations: list[SEORecommendation],
) -> list[SEORecommendation]:
    """Give every recommendation without an id the id ``rec-<n>``.

    ``n`` is the 1-based input position. Recommendations that already carry
    an id are returned unchanged; a generated id never collides with a
    caller-supplied one.
    """
    taken = {r.id for r in recommendations if r.id is not None}
    result: list[SEORecommendation] = []
    for position, rec in enumerate(recommendations, start=1):
        if rec.id is not None:
            result.append(rec)
            continue
        candidate = f"rec-{position}"
        suffix = 1
        while candidate in taken:
            suffix += 1
            candidate = f"rec-{position}-{suffix}"
        taken.add(candidate)
        result.append(rec.model_copy(update={"id": candidate}))
    return result
