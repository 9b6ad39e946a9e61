"""
Actual-vs-forecast variance models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from seo_forecaster.models.forecast import ProjectedMetric
from seo_forecaster.models.metrics import MonthlyMetric


class VarianceEntry(BaseModel):
    """Variance of one actual month against its forecast.

    An actual month with no matching forecast month is recorded as
    ``percentage=0.0, within_bounds=False``: unscored, not computed.
    """

    model_config = ConfigDict(frozen=True)

    month: str
    percentage: float
    within_bounds: bool


class VarianceReport(BaseModel):
    """Result of ``track_actual_vs_forecast``.

    Attributes:
        forecast_id: Forecast that was evaluated.
        forecast: The stored traffic series.
        actual: Actual monthly metrics in the forecast window.
        variance: One entry per actual month.
        accuracy: Percentage of actual months inside their confidence bounds.
        months_compared: Number of actual months evaluated.
    """

    model_config = ConfigDict(frozen=True)

    forecast_id: str
    forecast: list[ProjectedMetric]
    actual: list[MonthlyMetric]
    variance: list[VarianceEntry]
    accuracy: float
    months_compared: int

    @field_validator("accuracy")
    @classmethod
    def validate_accuracy(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"accuracy must be in [0, 100], got {v}.")
        return v
