"""
CSV import parser for observed monthly site metrics.

Format: comma delimited, with a header row.
Required columns:
  month, traffic, conversions

Optional columns (empty string → None):
  revenue

Example::

    month,traffic,conversions,revenue
    2024-01,1180,35,4120.50
    2024-02,1240,38,
    2024-03,1200,36,4200

A month may appear only once per file. Imported rows are always
``source="observed"``; they feed both forecast history and variance tracking.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from seo_forecaster.models.metrics import MonthlyMetric

logger = logging.getLogger(__name__)

REQUIRED_CSV_COLUMNS = frozenset({"month", "traffic", "conversions"})


def parse_metrics_csv(path: Path) -> list[MonthlyMetric]:
    """Parse a metrics CSV into validated ``MonthlyMetric`` rows, sorted by month.

    All rows are validated before any are returned. If any row fails, a
    single ``ValueError`` lists the first 10 failures.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: On missing columns, invalid rows or duplicate months.
    """
    if not path.exists():
        raise FileNotFoundError(f"Metrics CSV file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")

        actual_cols = {c.strip() for c in reader.fieldnames}
        missing = REQUIRED_CSV_COLUMNS - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )

        rows = [{(k or "").strip(): (v or "") for k, v in row.items()} for row in reader]

    if not rows:
        logger.warning("Metrics CSV is empty (header only): %s", path)
        return []

    metrics: list[MonthlyMetric] = []
    errors: list[tuple[int, str]] = []
    seen: dict[str, int] = {}

    for i, row in enumerate(rows):
        line_no = i + 2
        try:
            metric = _row_to_metric(row)
        except (ValueError, ValidationError) as exc:
            errors.append((line_no, str(exc)))
            continue
        if metric.month in seen:
            errors.append(
                (line_no, f"Duplicate month {metric.month} (first seen on row {seen[metric.month]}).")
            )
            continue
        seen[metric.month] = line_no
        metrics.append(metric)

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:max_shown])
        suffix = f"\n  … and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(
            f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}"
        )

    metrics.sort(key=lambda m: m.month)
    logger.info("Parsed %d monthly metrics from %s", len(metrics), path.name)
    return metrics


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_metric(row: dict[str, str]) -> MonthlyMetric:
    return MonthlyMetric(
        month=_req(row, "month"),
        traffic=_parse_int(row, "traffic"),
        conversions=_parse_int(row, "conversions"),
        revenue=_parse_float(row, "revenue"),
    )


def _req(row: dict[str, str], key: str) -> str:
    v = row.get(key, "").strip()
    if not v:
        raise ValueError(f"Required field '{key}' is empty.")
    return v


def _parse_int(row: dict[str, str], key: str) -> int:
    raw = _req(row, key)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Field '{key}' must be an integer, got '{raw}'.") from None


def _parse_float(row: dict[str, str], key: str) -> Optional[float]:
    raw = row.get(key, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Field '{key}' must be a number, got '{raw}'.") from None
