"""
Taxonomy for SEO recommendations.

Three dimensions describe every recommendation:
  - ``RecommendationType`` (the *what*): which area of SEO does it touch?
  - ``EffortLevel`` (the *cost*): how much work to implement?
  - ``ImpactLevel`` (the *payoff*): how much improvement is expected?

Usage example::

    from seo_forecaster.taxonomy.recommendation_taxonomy import RecommendationType

    rec_type = RecommendationType.BACKLINK

This module has NO imports from any other ``seo_forecaster`` package.
"""

from enum import StrEnum


class RecommendationType(StrEnum):
    """Area of SEO work a recommendation belongs to."""

    TECHNICAL = "technical"
    """Crawlability, indexation, site speed, Core Web Vitals, redirects."""

    CONTENT = "content"
    """New pages, rewrites, content gaps, topical depth."""

    BACKLINK = "backlink"
    """Link acquisition, digital PR, disavow work."""

    ON_PAGE = "on-page"
    """Titles, meta descriptions, headings, internal links."""

    LOCAL = "local"
    """Business profiles, citations, location pages, reviews."""

    SCHEMA = "schema"
    """Structured data markup."""

    OTHER = "other"
    """Anything that does not fit the categories above."""


class EffortLevel(StrEnum):
    """Implementation cost of a recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ImpactLevel(StrEnum):
    """Expected improvement from a recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
