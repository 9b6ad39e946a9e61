"""
Forecast request and result models.

``ForecastRequest`` is what a caller hands to ``ForecastService.generate_forecast``.

``ForecastResult`` is the aggregate artifact of one successful run: the
recommendations considered, the projected monthly series with confidence
bounds, ROI figures, assumptions and a phased implementation plan.

All models are frozen. A stored forecast is never mutated; a new set of
recommendations produces a new ``ForecastResult``. The ROI and plan models
accept the camelCase keys used in the LLM reply (``trafficIncrease``,
``expectedImpact``...) as well as their snake_case field names, and always
serialize as snake_case for storage.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from seo_forecaster.models.metrics import HistoricalMetrics
from seo_forecaster.models.recommendation import SEORecommendation
from seo_forecaster.utils.time_utils import is_consecutive, parse_month


class ConfidenceInterval(BaseModel):
    """Lower/upper bound for a projected value."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    low: float
    high: float

    @model_validator(mode="after")
    def validate_order(self) -> "ConfidenceInterval":
        if self.low > self.high:
            raise ValueError(
                f"confidence low ({self.low}) must be <= high ({self.high})."
            )
        return self


class ProjectedMetric(BaseModel):
    """One forecast month of one series.

    ``value`` is the series' own variable (traffic for the traffic series,
    conversions for the conversions series...). The row's full projection is
    kept alongside so each point is self-describing.

    Attributes:
        month: ``YYYY-MM``.
        value: Projected value of this series' variable.
        traffic: Projected organic traffic for the month.
        conversions: Projected conversions for the month.
        revenue: Projected revenue, if forecast.
        confidence: Interval around ``value``; ``None`` when the collaborator
            gave no interval for this variable.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    month: str
    value: float
    traffic: float
    conversions: float
    revenue: Optional[float] = None
    confidence: Optional[ConfidenceInterval] = None

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str) -> str:
        parse_month(v)
        return v

    @model_validator(mode="after")
    def validate_within_confidence(self) -> "ProjectedMetric":
        if self.confidence is not None and not (
            self.confidence.low <= self.value <= self.confidence.high
        ):
            raise ValueError(
                f"{self.month}: value {self.value} outside confidence interval "
                f"[{self.confidence.low}, {self.confidence.high}]."
            )
        return self

    @property
    def lower_bound(self) -> Optional[float]:
        return self.confidence.low if self.confidence else None

    @property
    def upper_bound(self) -> Optional[float]:
        return self.confidence.high if self.confidence else None


class ForecastSeries(BaseModel):
    """Parallel projected series covering the same consecutive months."""

    model_config = ConfigDict(frozen=True)

    traffic: list[ProjectedMetric]
    conversions: list[ProjectedMetric]
    revenue: Optional[list[ProjectedMetric]] = None

    @model_validator(mode="after")
    def validate_parallel(self) -> "ForecastSeries":
        months = [p.month for p in self.traffic]
        if not months:
            raise ValueError("forecast must cover at least one month.")
        if not is_consecutive(months):
            raise ValueError(f"forecast months must be consecutive, got {months}.")
        if [p.month for p in self.conversions] != months:
            raise ValueError("conversions series must cover the same months as traffic.")
        if self.revenue is not None and [p.month for p in self.revenue] != months:
            raise ValueError("revenue series must cover the same months as traffic.")
        return self

    @property
    def months(self) -> list[str]:
        return [p.month for p in self.traffic]


class CostBenefit(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    estimated_cost: float = Field(alias="estimatedCost")
    estimated_benefit: float = Field(alias="estimatedBenefit")
    ratio: float


class ROIMetrics(BaseModel):
    """Percentage increases and derived return on investment.

    Attributes:
        traffic_increase: Expected traffic increase over the forecast period (%).
        conversion_increase: Expected conversion increase (%).
        revenue_increase: Expected revenue increase (%), if revenue is forecast.
        roi_percentage: Return on the implementation budget (%).
        time_to_positive_roi_months: Months until cumulative gain covers cost.
        cost_benefit: Cost vs. benefit breakdown.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    traffic_increase: float = Field(alias="trafficIncrease")
    conversion_increase: float = Field(alias="conversionIncrease")
    revenue_increase: Optional[float] = Field(default=None, alias="revenueIncrease")
    roi_percentage: Optional[float] = Field(default=None, alias="roiPercentage")
    time_to_positive_roi_months: Optional[float] = Field(
        default=None, alias="timeToPositiveROI"
    )
    cost_benefit: Optional[CostBenefit] = Field(default=None, alias="costBenefit")


class ExpectedImpact(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    traffic: float
    conversions: float


class ImplementationPhase(BaseModel):
    """One phase of the rollout.

    Attributes:
        name: Phase label.
        duration_days: Length of the phase in days.
        recommendations: Ids of the recommendations implemented in this phase.
        expected_impact: Percentage uplift expected once the phase lands.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    duration_days: int = Field(alias="duration")
    recommendations: list[str] = []
    expected_impact: ExpectedImpact = Field(alias="expectedImpact")

    @field_validator("duration_days")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"phase duration must be positive, got {v}.")
        return v


class ImplementationPlan(BaseModel):
    """Ordered implementation phases.

    ``total_duration_days`` is whatever the collaborator stated; use
    ``total_days`` for a value that falls back to the sum of phase durations.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    phases: list[ImplementationPhase]
    total_duration_days: Optional[int] = Field(default=None, alias="totalDuration")

    @field_validator("phases")
    @classmethod
    def validate_phases(cls, v: list[ImplementationPhase]) -> list[ImplementationPhase]:
        if not v:
            raise ValueError("implementation plan must contain at least one phase.")
        return v

    @property
    def total_days(self) -> int:
        if self.total_duration_days is not None:
            return self.total_duration_days
        return sum(p.duration_days for p in self.phases)

    @property
    def recommendation_ids(self) -> list[str]:
        return [rec_id for phase in self.phases for rec_id in phase.recommendations]


class ForecastRequest(BaseModel):
    """Input to a forecast run.

    Attributes:
        project_id: Project the forecast belongs to.
        site_id: Site whose traffic is forecast.
        recommendations: Candidate improvements (at least one).
        historical_data: Caller-supplied history; fetched from the store when
            omitted.
        timeframe_months: Months to forecast; the service default applies
            when omitted.
        budget: Implementation budget, used for cost/benefit figures.
        business_goals: Extra goals to include in the prompt.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str
    site_id: str
    recommendations: list[SEORecommendation]
    historical_data: Optional[HistoricalMetrics] = None
    timeframe_months: Optional[int] = None
    budget: Optional[float] = None
    business_goals: list[str] = []

    @field_validator("project_id", "site_id")
    @classmethod
    def validate_ids(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()

    @field_validator("recommendations")
    @classmethod
    def validate_recommendations(cls, v: list[SEORecommendation]) -> list[SEORecommendation]:
        if not v:
            raise ValueError("at least one recommendation is required.")
        ids = [r.id for r in v if r.id is not None]
        if len(ids) != len(set(ids)):
            raise ValueError("recommendation ids must be unique.")
        return v

    @field_validator("timeframe_months")
    @classmethod
    def validate_timeframe(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"timeframe_months must be >= 1, got {v}.")
        return v

    @field_validator("budget")
    @classmethod
    def validate_budget(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"budget must be positive, got {v}.")
        return v


class ForecastResult(BaseModel):
    """A persisted (or about-to-be persisted) forecast.

    Attributes:
        id: Store-assigned id; ``None`` before insertion.
        project_id: Owning project.
        site_id: Forecast site.
        recommendations: Recommendations considered, in the caller's order.
        forecast: Projected traffic/conversions/revenue series.
        roi: ROI figures.
        assumptions: Assumptions surfaced by the collaborator.
        implementation_plan: Phased rollout.
        timeframe_months: Number of months forecast.
        created_at: UTC creation time.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    project_id: str
    site_id: str
    recommendations: list[SEORecommendation]
    forecast: ForecastSeries
    roi: ROIMetrics
    assumptions: list[str] = []
    implementation_plan: ImplementationPlan
    timeframe_months: int
    created_at: Optional[datetime] = None
