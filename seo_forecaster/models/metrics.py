"""
Monthly site metrics.

``MonthlyMetric`` is one calendar month of organic traffic, conversions and
(optionally) revenue for a site: either historical ground truth fed into a
forecast, or actual observations compared against one later.

``HistoricalMetrics`` is the ordered series handed to the forecast prompt.
Rows from the synthetic baseline are labelled ``source="synthetic"`` so a
fabricated history is never mistaken for real data.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from seo_forecaster.utils.time_utils import parse_month

MetricSource = Literal["observed", "synthetic"]


class MonthlyMetric(BaseModel):
    """One month of site performance.

    Attributes:
        month: Calendar month, ``YYYY-MM``.
        traffic: Organic sessions.
        conversions: Goal completions.
        revenue: Attributed revenue, or ``None`` when the site does not track it.
        source: ``"observed"`` for stored data, ``"synthetic"`` for the
            generated baseline.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    month: str
    traffic: int
    conversions: int
    revenue: Optional[float] = None
    source: MetricSource = "observed"

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str) -> str:
        parse_month(v)
        return v

    @model_validator(mode="after")
    def validate_non_negative(self) -> "MonthlyMetric":
        if self.traffic < 0 or self.conversions < 0:
            raise ValueError("traffic and conversions must be non-negative.")
        if self.revenue is not None and self.revenue < 0:
            raise ValueError("revenue must be non-negative.")
        return self


class HistoricalMetrics(BaseModel):
    """Ascending series of ``MonthlyMetric`` rows for one site.

    Months must be strictly ascending; a duplicate month is invalid. Gaps are
    allowed here because stored history can be sparse.
    """

    model_config = ConfigDict(frozen=True)

    metrics: list[MonthlyMetric] = []

    @model_validator(mode="after")
    def validate_ordering(self) -> "HistoricalMetrics":
        months = [m.month for m in self.metrics]
        for prev, cur in zip(months, months[1:]):
            if cur == prev:
                raise ValueError(f"Duplicate month in series: {cur}.")
            if cur < prev:
                raise ValueError(
                    f"Months must be ascending; {cur} follows {prev}."
                )
        return self

    def __len__(self) -> int:
        return len(self.metrics)

    @property
    def months(self) -> list[str]:
        return [m.month for m in self.metrics]

    @property
    def traffic(self) -> list[tuple[str, int]]:
        return [(m.month, m.traffic) for m in self.metrics]

    @property
    def conversions(self) -> list[tuple[str, int]]:
        return [(m.month, m.conversions) for m in self.metrics]

    @property
    def revenue(self) -> Optional[list[tuple[str, float]]]:
        """Revenue series, or ``None`` when no month reports revenue."""
        if not self.has_revenue:
            return None
        return [(m.month, m.revenue or 0.0) for m in self.metrics]

    @property
    def has_revenue(self) -> bool:
        return any(m.revenue is not None for m in self.metrics)

    @property
    def is_synthetic(self) -> bool:
        return bool(self.metrics) and all(m.source == "synthetic" for m in self.metrics)

    @property
    def last_month(self) -> Optional[str]:
        return self.metrics[-1].month if self.metrics else None
