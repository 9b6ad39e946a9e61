"""Tests for the pydantic domain models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from seo_forecaster.models.forecast import (
    ConfidenceInterval,
    ForecastRequest,
    ForecastSeries,
    ImplementationPlan,
    ProjectedMetric,
    ROIMetrics,
)
from seo_forecaster.models.metrics import HistoricalMetrics, MonthlyMetric
from seo_forecaster.models.project import Project
from seo_forecaster.models.recommendation import SEORecommendation
from seo_forecaster.models.variance import VarianceReport
from seo_forecaster.taxonomy.recommendation_taxonomy import (
    EffortLevel,
    ImpactLevel,
    RecommendationType,
)


def _point(month: str, value: float = 100.0) -> ProjectedMetric:
    return ProjectedMetric(month=month, value=value, traffic=value, conversions=3)


class TestSEORecommendation:
    def test_case_insensitive_levels(self):
        rec = SEORecommendation(description="Fix titles", type="On-Page", impact="HIGH", effort=" Low ")
        assert rec.type == RecommendationType.ON_PAGE
        assert rec.impact == ImpactLevel.HIGH
        assert rec.effort == EffortLevel.LOW

    def test_unknown_type_becomes_other(self):
        rec = SEORecommendation(description="Podcast", type="audio", impact="low", effort="low")
        assert rec.type == RecommendationType.OTHER

    def test_missing_type_defaults_to_other(self):
        rec = SEORecommendation(description="Misc", impact="low", effort="low")
        assert rec.type == RecommendationType.OTHER

    def test_invalid_effort_rejected(self):
        with pytest.raises(ValidationError):
            SEORecommendation(description="x", impact="low", effort="huge")

    def test_invalid_impact_rejected(self):
        with pytest.raises(ValidationError):
            SEORecommendation(description="x", impact="massive", effort="low")

    def test_empty_description_rejected(self):
        with pytest.raises(ValidationError):
            SEORecommendation(description="  ", impact="low", effort="low")

    def test_frozen(self):
        rec = SEORecommendation(description="x", impact="low", effort="low")
        with pytest.raises(ValidationError):
            rec.description = "y"


class TestMonthlyMetrics:
    def test_invalid_month(self):
        with pytest.raises(ValidationError):
            MonthlyMetric(month="2024-13", traffic=1, conversions=0)

    def test_negative_traffic(self):
        with pytest.raises(ValidationError):
            MonthlyMetric(month="2024-01", traffic=-1, conversions=0)

    def test_history_must_ascend(self):
        with pytest.raises(ValidationError):
            HistoricalMetrics(
                metrics=[
                    MonthlyMetric(month="2024-02", traffic=1, conversions=0),
                    MonthlyMetric(month="2024-01", traffic=1, conversions=0),
                ]
            )

    def test_history_rejects_duplicates(self):
        m = MonthlyMetric(month="2024-02", traffic=1, conversions=0)
        with pytest.raises(ValidationError):
            HistoricalMetrics(metrics=[m, m])

    def test_history_views(self, observed_history):
        history = HistoricalMetrics(metrics=observed_history)
        assert history.last_month == "2024-05"
        assert history.traffic[0] == ("2024-01", 1000)
        assert history.revenue[-1] == ("2024-05", 3400.0)
        assert not history.is_synthetic

    def test_empty_history(self):
        history = HistoricalMetrics()
        assert len(history) == 0
        assert history.last_month is None
        assert history.revenue is None
        assert not history.is_synthetic


class TestForecastModels:
    def test_confidence_order(self):
        with pytest.raises(ValidationError):
            ConfidenceInterval(low=10, high=5)

    def test_value_inside_confidence(self):
        with pytest.raises(ValidationError):
            ProjectedMetric(
                month="2024-01", value=50, traffic=50, conversions=1,
                confidence={"low": 60, "high": 70},
            )

    def test_bounds_properties(self):
        p = ProjectedMetric(
            month="2024-01", value=65, traffic=65, conversions=1, confidence={"low": 60, "high": 70}
        )
        assert (p.lower_bound, p.upper_bound) == (60, 70)
        assert _point("2024-01").lower_bound is None

    def test_series_must_be_consecutive(self):
        with pytest.raises(ValidationError):
            ForecastSeries(
                traffic=[_point("2024-01"), _point("2024-03")],
                conversions=[_point("2024-01"), _point("2024-03")],
            )

    def test_series_must_be_parallel(self):
        with pytest.raises(ValidationError):
            ForecastSeries(
                traffic=[_point("2024-01"), _point("2024-02")],
                conversions=[_point("2024-01")],
            )

    def test_series_not_empty(self):
        with pytest.raises(ValidationError):
            ForecastSeries(traffic=[], conversions=[])

    def test_roi_accepts_camel_and_snake_case(self):
        camel = ROIMetrics(trafficIncrease=10, conversionIncrease=5, timeToPositiveROI=4)
        snake = ROIMetrics(traffic_increase=10, conversion_increase=5, time_to_positive_roi_months=4)
        assert camel == snake
        assert "traffic_increase" in camel.model_dump()

    def test_plan_total_days_falls_back_to_sum(self):
        plan = ImplementationPlan(
            phases=[
                {"name": "A", "duration": 10, "expectedImpact": {"traffic": 1, "conversions": 1}},
                {"name": "B", "duration": 20, "recommendations": ["r1"],
                 "expectedImpact": {"traffic": 2, "conversions": 2}},
            ]
        )
        assert plan.total_days == 30
        assert plan.recommendation_ids == ["r1"]

    def test_plan_requires_phases(self):
        with pytest.raises(ValidationError):
            ImplementationPlan(phases=[])

    def test_phase_duration_positive(self):
        with pytest.raises(ValidationError):
            ImplementationPlan(
                phases=[{"name": "A", "duration": 0,
                         "expectedImpact": {"traffic": 1, "conversions": 1}}]
            )


class TestForecastRequest:
    def _rec(self, id_=None):
        return SEORecommendation(id=id_, description="x", impact="low", effort="low")

    def test_requires_recommendations(self):
        with pytest.raises(ValidationError):
            ForecastRequest(project_id="p", site_id="s", recommendations=[])

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValidationError):
            ForecastRequest(project_id="p", site_id="s", recommendations=[self._rec("a"), self._rec("a")])

    def test_budget_positive(self):
        with pytest.raises(ValidationError):
            ForecastRequest(project_id="p", site_id="s", recommendations=[self._rec()], budget=0)

    def test_timeframe_at_least_one(self):
        with pytest.raises(ValidationError):
            ForecastRequest(project_id="p", site_id="s", recommendations=[self._rec()], timeframe_months=0)


class TestProjectAndVariance:
    def test_project_defaults(self):
        project = Project(project_id="p", name="P")
        assert project.industry == "unspecified"
        assert project.goals == []

    def test_accuracy_bounds(self):
        with pytest.raises(ValidationError):
            VarianceReport(
                forecast_id="f", forecast=[], actual=[], variance=[],
                accuracy=101.0, months_compared=0,
            )
