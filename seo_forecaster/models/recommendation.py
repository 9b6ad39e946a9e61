"""
SEO recommendation models.

``SEORecommendation`` is a candidate improvement as supplied by the caller.
It is frozen: scoring never writes back onto it.

``ScoredRecommendation`` couples a recommendation with the derived
impact/effort/priority scores. It only lives for the duration of a forecast
run and is never persisted.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from seo_forecaster.taxonomy.recommendation_taxonomy import (
    EffortLevel,
    ImpactLevel,
    RecommendationType,
)


class SEORecommendation(BaseModel):
    """A proposed SEO improvement with qualitative impact and effort ratings.

    Attributes:
        id: Caller-supplied identifier; assigned as ``rec-<n>`` by the
            forecasting service when missing.
        type: Area of SEO work. Unrecognized values are normalized to
            ``RecommendationType.OTHER``.
        description: Free-text description of the change.
        effort: Implementation effort (low/medium/high). Any other string is
            rejected here with a ``ValidationError``, so an unknown level never
            reaches scoring. The scorer's fallback of 1 for unknown levels only
            applies to raw strings passed to ``effort_score``.
        impact: Expected impact (low/medium/high), validated the same way.
        keywords: Target keywords, if any.
        category: Free-text grouping label shown in the forecast prompt.
        time_to_implement_days: Caller's own estimate, passed through as-is.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    type: RecommendationType = RecommendationType.OTHER
    description: str
    effort: EffortLevel
    impact: ImpactLevel
    keywords: list[str] = []
    category: Optional[str] = None
    time_to_implement_days: Optional[int] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in {t.value for t in RecommendationType}:
                return RecommendationType.OTHER
        return v

    @field_validator("effort", "impact", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("description")
    @classmethod
    def validate_description_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("description must not be empty.")
        return v.strip()

    @field_validator("time_to_implement_days")
    @classmethod
    def validate_days(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("time_to_implement_days must be non-negative.")
        return v


class ScoredRecommendation(BaseModel):
    """A recommendation annotated with its derived scores.

    Attributes:
        recommendation: The untouched input recommendation.
        impact_score: ``base_impact * type_multiplier + effort_penalty``,
            rounded to 2 decimals.
        effort_score: 1, 2 or 3.
        priority_score: ``impact_score / effort_score``.
    """

    model_config = ConfigDict(frozen=True)

    recommendation: SEORecommendation
    impact_score: float
    effort_score: int
    priority_score: float
