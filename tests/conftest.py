"""
Shared pytest fixtures for the SEO Forecaster test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``store``: ``SQLiteStore`` over ``in_memory_db`` seeded with one
    project and one site.
  - Sample recommendations and a fake predictive collaborator returning a
    canned JSON reply.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Callable, Generator, Optional

import pytest

from seo_forecaster.db.schema import apply_schema
from seo_forecaster.db.store import SQLiteStore
from seo_forecaster.models.metrics import MonthlyMetric
from seo_forecaster.models.project import Project, Site
from seo_forecaster.models.recommendation import SEORecommendation
from seo_forecaster.utils.time_utils import shift_month

FIXED_NOW = datetime(2024, 6, 15, 9, 30, 0, tzinfo=timezone.utc)


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def sample_project() -> Project:
    return Project(
        project_id="acme",
        name="Acme Garden Tools",
        industry="e-commerce",
        goals=["grow organic traffic", "more online sales"],
        conversion_value=85.0,
    )


@pytest.fixture
def sample_site() -> Site:
    return Site(site_id="acme-www", project_id="acme", domain="www.acme-garden.test")


@pytest.fixture
def store(in_memory_db, sample_project, sample_site) -> SQLiteStore:
    """``SQLiteStore`` with ``sample_project`` and ``sample_site`` saved."""
    s = SQLiteStore(in_memory_db)
    s.save_project(sample_project)
    s.save_site(sample_site)
    return s


@pytest.fixture
def observed_history() -> list[MonthlyMetric]:
    """Five observed months, 2024-01 .. 2024-05, with revenue."""
    return [
        MonthlyMetric(month="2024-01", traffic=1000, conversions=30, revenue=3000.0),
        MonthlyMetric(month="2024-02", traffic=1050, conversions=31, revenue=3100.0),
        MonthlyMetric(month="2024-03", traffic=1100, conversions=33, revenue=3200.0),
        MonthlyMetric(month="2024-04", traffic=1150, conversions=34, revenue=3300.0),
        MonthlyMetric(month="2024-05", traffic=1200, conversions=36, revenue=3400.0),
    ]


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


# ── Recommendations ───────────────────────────────────────────────────────────

@pytest.fixture
def sample_recommendations() -> list[SEORecommendation]:
    """The three-recommendation scenario: backlink > content > schema."""
    return [
        SEORecommendation(
            id="backlinks",
            type="backlink",
            description="Earn links from regional gardening blogs",
            impact="high",
            effort="low",
            category="off-page",
        ),
        SEORecommendation(
            id="faq-schema",
            type="schema",
            description="Add FAQ structured data to product pages",
            impact="low",
            effort="high",
        ),
        SEORecommendation(
            id="buying-guides",
            type="content",
            description="Publish seasonal buying guides",
            impact="medium",
            effort="medium",
            category="content",
        ),
    ]


# ── Fake predictive collaborator ──────────────────────────────────────────────

def build_forecast_reply(
    first_month: str,
    months: int,
    recommendation_ids: list[str],
    with_revenue: bool = True,
) -> dict:
    """A well-formed collaborator reply covering ``months`` months."""
    rows = []
    for i in range(months):
        traffic = 1000 + 50 * i
        row = {
            "month": shift_month(first_month, i),
            "traffic": traffic,
            "conversions": 30 + i,
            "confidence": {"low": traffic * 0.9, "high": traffic * 1.1},
        }
        if with_revenue:
            row["revenue"] = 3500 + 100 * i
        rows.append(row)
    return {
        "projectedMetrics": rows,
        "roi": {
            "trafficIncrease": 25.0,
            "conversionIncrease": 18.5,
            "revenueIncrease": 20.0,
        },
        "implementationPlan": {
            "phases": [
                {
                    "name": "Quick wins",
                    "duration": 30,
                    "recommendations": recommendation_ids[:1],
                    "expectedImpact": {"traffic": 10, "conversions": 5},
                },
                {
                    "name": "Content and markup",
                    "duration": 60,
                    "recommendations": recommendation_ids[1:],
                    "expectedImpact": {"traffic": 15, "conversions": 12},
                },
            ],
        },
        "assumptions": ["Seasonality follows the previous year", "No major algorithm update"],
    }


@pytest.fixture
def forecast_reply() -> Callable[..., dict]:
    return build_forecast_reply


class FakePredictionClient:
    """Records every call; returns ``reply`` or raises ``error``."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    def complete(self, messages, temperature, max_tokens) -> str:
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_predictor() -> Callable[..., FakePredictionClient]:
    """Factory: ``fake_predictor(reply_dict_or_text, error=None)``."""

    def _make(reply=None, error: Optional[Exception] = None) -> FakePredictionClient:
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return FakePredictionClient(reply=reply or "", error=error)

    return _make
