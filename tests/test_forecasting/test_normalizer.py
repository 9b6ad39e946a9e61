"""
Tests for seo_forecaster/forecasting/normalizer.py.

What we test
------------
generate_synthetic_history():
  - Exactly 12 consecutive ascending months ending at the given month.
  - traffic > 0 and conversions <= traffic for every month.
  - Rows are labelled synthetic; no revenue.
  - Seeded rng gives identical output; different seeds differ.

MetricsNormalizer.load_history():
  - Stored rows in the 12-month window are returned as-is.
  - Rows older than the window are ignored.
  - Empty store → synthetic series ending at the current month.
  - synthetic_fallback=False → ForecastInputError.
  - Store read errors propagate.
"""

from __future__ import annotations

import random

import pytest

from seo_forecaster.errors import ForecastInputError, PersistenceError
from seo_forecaster.forecasting.normalizer import MetricsNormalizer, generate_synthetic_history
from seo_forecaster.models.metrics import MonthlyMetric
from seo_forecaster.utils.time_utils import is_consecutive


class TestGenerateSyntheticHistory:
    def test_twelve_consecutive_months(self):
        history = generate_synthetic_history("2024-06", rng=random.Random(7))
        assert len(history) == 12
        assert history.months[0] == "2023-07"
        assert history.months[-1] == "2024-06"
        assert is_consecutive(history.months)

    def test_traffic_positive_and_conversions_bounded(self):
        for seed in range(25):
            history = generate_synthetic_history("2025-01", rng=random.Random(seed))
            for m in history.metrics:
                assert m.traffic > 0
                assert 0 <= m.conversions <= m.traffic

    def test_rows_are_labelled_synthetic(self):
        history = generate_synthetic_history("2024-06", rng=random.Random(1))
        assert history.is_synthetic
        assert not history.has_revenue

    def test_seeded_rng_is_reproducible(self):
        a = generate_synthetic_history("2024-06", rng=random.Random(42))
        b = generate_synthetic_history("2024-06", rng=random.Random(42))
        c = generate_synthetic_history("2024-06", rng=random.Random(43))
        assert a == b
        assert a != c

    def test_traffic_within_generation_envelope(self):
        history = generate_synthetic_history("2024-06", rng=random.Random(3))
        # base in [1000, 2000), trend up to 1.22, noise in [0.9, 1.1)
        for m in history.metrics:
            assert 900 <= m.traffic <= 2000 * 1.22 * 1.1 + 1


class TestMetricsNormalizer:
    def test_returns_stored_history(self, store, observed_history, fixed_clock):
        store.save_site_metrics("acme-www", observed_history)
        normalizer = MetricsNormalizer(store, clock=fixed_clock)

        history = normalizer.load_history("acme-www")

        assert history.months == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05"]
        assert not history.is_synthetic
        assert history.has_revenue

    def test_ignores_rows_outside_window(self, store, fixed_clock):
        store.save_site_metrics(
            "acme-www",
            [
                MonthlyMetric(month="2022-01", traffic=500, conversions=5),
                MonthlyMetric(month="2023-06", traffic=900, conversions=20),
                MonthlyMetric(month="2024-05", traffic=1200, conversions=36),
            ],
        )
        history = MetricsNormalizer(store, clock=fixed_clock).load_history("acme-www")
        assert history.months == ["2023-06", "2024-05"]

    def test_new_site_gets_synthetic_baseline(self, store, fixed_clock):
        normalizer = MetricsNormalizer(store, rng=random.Random(11), clock=fixed_clock)

        history = normalizer.load_history("acme-www")

        assert len(history) == 12
        assert history.months[-1] == "2024-06"
        assert is_consecutive(history.months)
        assert history.is_synthetic
        assert all(m.traffic > 0 for m in history.metrics)

    def test_fallback_disabled_raises(self, store, fixed_clock):
        normalizer = MetricsNormalizer(store, synthetic_fallback=False, clock=fixed_clock)
        with pytest.raises(ForecastInputError):
            normalizer.load_history("acme-www")

    def test_read_errors_propagate(self, fixed_clock):
        class BrokenSource:
            def get_site_metrics(self, site_id, start_month=None, end_month=None):
                raise PersistenceError("get_site_metrics", "disk I/O error")

        normalizer = MetricsNormalizer(BrokenSource(), clock=fixed_clock)
        with pytest.raises(PersistenceError):
            normalizer.load_history("acme-www")

    def test_does_not_write(self, store, fixed_clock):
        MetricsNormalizer(store, rng=random.Random(5), clock=fixed_clock).load_history("acme-www")
        assert store.get_site_metrics("acme-www") == []
