"""
Actual-vs-forecast variance.

For every actual month the matching projected month is found by exact
``YYYY-MM`` equality:

    percentage    = (actual - forecast) / forecast * 100     (0.0 when forecast == 0)
    within_bounds = lower_bound <= actual <= upper_bound      (inclusive)

An actual month with no projected counterpart is recorded as
``percentage=0.0, within_bounds=False``. Accuracy is the share of actual
months inside their bounds, ``0.0`` when there are no actual months.

Example::

    actual 2024-03 traffic 1200, forecast 1150 in [1000, 1400]
        → percentage ≈ 4.35, within_bounds True
"""

from __future__ import annotations

from seo_forecaster.models.forecast import ProjectedMetric
from seo_forecaster.models.metrics import MonthlyMetric
from seo_forecaster.models.variance import VarianceEntry


def variance_percentage(actual: float, forecast: float) -> float:
    if forecast == 0:
        return 0.0
    return (actual - forecast) / forecast * 100


def is_within_bounds(actual: float, projected: ProjectedMetric) -> bool:
    """Inclusive interval check; a point without an interval is never within."""
    if projected.confidence is None:
        return False
    return projected.confidence.low <= actual <= projected.confidence.high


def compute_variance(
    forecast_traffic: list[ProjectedMetric],
    actuals: list[MonthlyMetric],
) -> list[VarianceEntry]:
    """One ``VarianceEntry`` per actual month, in the order of ``actuals``."""
    by_month = {p.month: p for p in forecast_traffic}
    entries: list[VarianceEntry] = []
    for actual in actuals:
        projected = by_month.get(actual.month)
        if projected is None:
            entries.append(VarianceEntry(month=actual.month, percentage=0.0, within_bounds=False))
            continue
        entries.append(
            VarianceEntry(
                month=actual.month,
                percentage=variance_percentage(actual.traffic, projected.value),
                within_bounds=is_within_bounds(actual.traffic, projected),
            )
        )
    return entries


def compute_accuracy(entries: list[VarianceEntry]) -> float:
    """Percentage of entries within bounds; 0.0 for an empty list."""
    if not entries:
        return 0.0
    within = sum(1 for e in entries if e.within_bounds)
    return within / len(entries) * 100
