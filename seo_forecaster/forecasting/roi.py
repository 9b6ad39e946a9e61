"""
ROI derivation from projected revenue.

The collaborator's ROI block is authoritative: any figure it supplies is kept
as-is. When it leaves the cost/benefit figures out but the run has both an
implementation budget and revenue (projected and historical), the gaps are
filled from incremental revenue over the historical monthly mean:

    baseline     = mean(historical monthly revenue)
    incremental  = projected_revenue[m] - baseline            for each month m
    benefit      = sum(incremental)
    ratio        = benefit / budget
    roi_pct      = (benefit - budget) / budget * 100
    payback      = first month (1-based) where cumulative incremental >= budget
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from seo_forecaster.models.forecast import CostBenefit, ForecastSeries, ROIMetrics
from seo_forecaster.models.metrics import HistoricalMetrics

logger = logging.getLogger(__name__)


def baseline_revenue(history: HistoricalMetrics) -> Optional[float]:
    """Mean monthly revenue over the months that report it."""
    values = [m.revenue for m in history.metrics if m.revenue is not None]
    if not values:
        return None
    return sum(values) / len(values)


def payback_month(incremental: list[float], cost: float) -> Optional[int]:
    """1-based month in which cumulative incremental revenue first covers ``cost``."""
    cumulative = 0.0
    for month_index, gain in enumerate(incremental, start=1):
        cumulative += gain
        if cumulative >= cost:
            return month_index
    return None


def derive_roi(
    roi: ROIMetrics,
    forecast: ForecastSeries,
    history: HistoricalMetrics,
    budget: Optional[float],
) -> ROIMetrics:
    """Fill missing cost/benefit figures of ``roi`` from projected revenue.

    Returns ``roi`` unchanged when there is no budget, no projected revenue
    or no historical revenue.
    """
    if not budget or forecast.revenue is None:
        return roi
    baseline = baseline_revenue(history)
    if baseline is None:
        return roi

    incremental = [p.value - baseline for p in forecast.revenue]
    benefit = sum(incremental)

    update: dict[str, Any] = {}
    if roi.cost_benefit is None:
        update["cost_benefit"] = CostBenefit(
            estimated_cost=budget,
            estimated_benefit=round(benefit, 2),
            ratio=round(benefit / budget, 2),
        )
    if roi.roi_percentage is None:
        update["roi_percentage"] = round((benefit - budget) / budget * 100, 2)
    if roi.time_to_positive_roi_months is None:
        update["time_to_positive_roi_months"] = payback_month(incremental, budget)

    if update:
        logger.debug("Derived ROI fields from projected revenue: %s", sorted(update))
    return roi.model_copy(update=update)
