"""
Tests for seo_forecaster.ingestion.metrics_csv: monthly metrics CSV import.

Covers:
  - parse_metrics_csv(): valid file, optional revenue, sorting, missing
    columns, bad numbers, duplicate months, header-only file, missing file
  - REQUIRED_CSV_COLUMNS set completeness
"""

from __future__ import annotations

from pathlib import Path

import pytest

from seo_forecaster.ingestion.metrics_csv import REQUIRED_CSV_COLUMNS, parse_metrics_csv
from seo_forecaster.models.metrics import MonthlyMetric


# ── Helpers ────────────────────────────────────────────────────────────────────

def _write_csv(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "metrics.csv"
    p.write_text(content, encoding="utf-8")
    return p


VALID_CSV = (
    "month,traffic,conversions,revenue\n"
    "2024-02,1240,38,\n"
    "2024-01,1180,35,4120.50\n"
    "2024-03,1200,36,4200\n"
)


def test_required_columns():
    assert REQUIRED_CSV_COLUMNS == {"month", "traffic", "conversions"}


# ── Happy path ─────────────────────────────────────────────────────────────────

class TestParseMetricsCsvValid:
    def test_returns_monthly_metrics(self, tmp_path):
        metrics = parse_metrics_csv(_write_csv(tmp_path, VALID_CSV))
        assert len(metrics) == 3
        assert all(isinstance(m, MonthlyMetric) for m in metrics)

    def test_sorted_by_month(self, tmp_path):
        metrics = parse_metrics_csv(_write_csv(tmp_path, VALID_CSV))
        assert [m.month for m in metrics] == ["2024-01", "2024-02", "2024-03"]

    def test_values_parsed(self, tmp_path):
        first = parse_metrics_csv(_write_csv(tmp_path, VALID_CSV))[0]
        assert first.traffic == 1180
        assert first.conversions == 35
        assert first.revenue == pytest.approx(4120.50)
        assert first.source == "observed"

    def test_empty_revenue_is_none(self, tmp_path):
        metrics = parse_metrics_csv(_write_csv(tmp_path, VALID_CSV))
        assert metrics[1].revenue is None

    def test_revenue_column_optional(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic,conversions\n2024-01,10,1\n")
        assert parse_metrics_csv(path)[0].revenue is None

    def test_header_whitespace_tolerated(self, tmp_path):
        path = _write_csv(tmp_path, " month , traffic , conversions \n2024-01,10,1\n")
        assert parse_metrics_csv(path)[0].traffic == 10

    def test_header_only_returns_empty(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic,conversions,revenue\n")
        assert parse_metrics_csv(path) == []


# ── Failures ───────────────────────────────────────────────────────────────────

class TestParseMetricsCsvErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_metrics_csv(tmp_path / "nope.csv")

    def test_empty_file(self, tmp_path):
        with pytest.raises(ValueError, match="no header"):
            parse_metrics_csv(_write_csv(tmp_path, ""))

    def test_missing_column(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic\n2024-01,10\n")
        with pytest.raises(ValueError, match="conversions"):
            parse_metrics_csv(path)

    def test_non_integer_traffic(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic,conversions\n2024-01,lots,1\n")
        with pytest.raises(ValueError, match="must be an integer"):
            parse_metrics_csv(path)

    def test_bad_revenue(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic,conversions,revenue\n2024-01,10,1,abc\n")
        with pytest.raises(ValueError, match="must be a number"):
            parse_metrics_csv(path)

    def test_nan_revenue(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic,conversions,revenue\n2024-01,10,1,nan\n")
        with pytest.raises(ValueError, match="1 row"):
            parse_metrics_csv(path)

    def test_invalid_month(self, tmp_path):
        path = _write_csv(tmp_path, "month,traffic,conversions\n2024-13,10,1\n")
        with pytest.raises(ValueError, match="1 row"):
            parse_metrics_csv(path)

    def test_duplicate_month(self, tmp_path):
        path = _write_csv(
            tmp_path, "month,traffic,conversions\n2024-01,10,1\n2024-01,12,2\n"
        )
        with pytest.raises(ValueError, match="Duplicate month 2024-01"):
            parse_metrics_csv(path)

    def test_all_errors_reported_together(self, tmp_path):
        path = _write_csv(
            tmp_path, "month,traffic,conversions\n2024-01,x,1\n2024-02,10,y\n2024-03,10,1\n"
        )
        with pytest.raises(ValueError) as exc_info:
            parse_metrics_csv(path)
        message = str(exc_info.value)
        assert "2 row(s) failed" in message
        assert "Row 2" in message
        assert "Row 3" in message
