"""
Metrics normalizer: historical monthly metrics for the forecast prompt.

Stored history is read for the window ``[current month - 12, current month]``.
A brand-new site has no rows at all; rather than failing the run, the
normalizer fabricates a synthetic trending baseline so the rest of the
pipeline always receives a complete series.

Synthetic baseline
------------------
    base_traffic    ~ U[1000, 2000)
    conversion_rate ~ U[0.02, 0.05)
    for i = 11 .. 0  (month = current - i):
        traffic     = round(base_traffic * (1 + (11 - i) * 0.02) * U[0.9, 1.1))
        conversions = round(traffic * conversion_rate * U[0.9, 1.1))

Rows are labelled ``source="synthetic"`` and carry no revenue. Randomness
comes from an injectable ``random.Random`` so tests can seed it.
"""

from __future__ import annotations

import logging
import math
import random
from datetime import datetime
from typing import Callable, Optional

from seo_forecaster.errors import ForecastInputError
from seo_forecaster.forecasting.ports import MetricsSource
from seo_forecaster.models.metrics import HistoricalMetrics, MonthlyMetric
from seo_forecaster.utils.time_utils import month_of, shift_month, utcnow

logger = logging.getLogger(__name__)

SYNTHETIC_MONTHS = 12
_TREND_STEP = 0.02


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_synthetic_history(
    end_month: str,
    rng: Optional[random.Random] = None,
    months: int = SYNTHETIC_MONTHS,
) -> HistoricalMetrics:
    """Fabricate a plausible upward-trending history ending at ``end_month``.

    Args:
        end_month: Last (most recent) month of the series, ``YYYY-MM``.
        rng: Randomness source; a fresh unseeded ``random.Random`` if omitted.
        months: Series length.

    Returns:
        ``HistoricalMetrics`` of ``months`` consecutive synthetic rows,
        ascending, each with ``traffic > 0`` and ``conversions <= traffic``.
    """
    rng = rng or random.Random()
    base_traffic = 1000 + rng.random() * 1000
    conversion_rate = 0.02 + rng.random() * 0.03
    last = months - 1

    rows: list[MonthlyMetric] = []
    for i in range(last, -1, -1):
        trend = 1 + (last - i) * _TREND_STEP
        traffic = _round_half_up(base_traffic * trend * (0.9 + rng.random() * 0.2))
        conversions = _round_half_up(traffic * conversion_rate * (0.9 + rng.random() * 0.2))
        rows.append(
            MonthlyMetric(
                month=shift_month(end_month, -i),
                traffic=traffic,
                conversions=conversions,
                source="synthetic",
            )
        )
    return HistoricalMetrics(metrics=rows)


class MetricsNormalizer:
    """Loads a site's recent history, falling back to a synthetic baseline.

    Attributes:
        source: Where stored monthly metrics are read from.
        history_months: Look-back window in months.
        synthetic_fallback: When ``False``, a site with no history is an
            input error instead of getting a synthetic baseline.
    """

    def __init__(
        self,
        source: MetricsSource,
        history_months: int = 12,
        synthetic_fallback: bool = True,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.source = source
        self.history_months = history_months
        self.synthetic_fallback = synthetic_fallback
        self._rng = rng
        self._clock = clock

    def load_history(self, site_id: str) -> HistoricalMetrics:
        """Return stored history for ``site_id`` or a synthetic baseline.

        Read errors from the source propagate unchanged.

        Raises:
            ForecastInputError: If there is no history and the synthetic
                fallback is disabled.
        """
        current = month_of(self._clock())
        start = shift_month(current, -self.history_months)
        rows = self.source.get_site_metrics(site_id, start_month=start, end_month=current)

        if rows:
            logger.debug(
                "Loaded %d months of history for site=%s (%s..%s)",
                len(rows), site_id, rows[0].month, rows[-1].month,
            )
            return HistoricalMetrics(metrics=rows)

        if not self.synthetic_fallback:
            raise ForecastInputError(
                f"No historical metrics for site '{site_id}' since {start} "
                "and synthetic fallback is disabled."
            )

        logger.warning(
            "No historical metrics for site=%s since %s; using synthetic baseline.",
            site_id, start,
        )
        return generate_synthetic_history(current, rng=self._rng)
