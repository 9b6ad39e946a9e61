"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept model objects and return plain multi-line strings
suitable for ``typer.echo()``. No third-party dependencies (no ``rich``).

Confidence width
----------------
``format_forecast_summary()`` shows ``high - low`` next to each projected
month. A wide interval means the collaborator is unsure about that month;
read the projected value with matching caution.
"""

from __future__ import annotations

from typing import Optional

from seo_forecaster.models.forecast import ForecastResult
from seo_forecaster.models.metrics import MonthlyMetric
from seo_forecaster.models.variance import VarianceReport


def _fmt_num(value: Optional[float], spec: str = ",.0f") -> str:
    return format(value, spec) if value is not None else "-"


def _fmt_pct(value: Optional[float]) -> str:
    return f"{value:+.1f}%" if value is not None else "-"


# ── Forecast summary ──────────────────────────────────────────────────────────


def format_forecast_summary(result: ForecastResult) -> str:
    """Full text report of one forecast: series, ROI, plan and assumptions."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== SEO Forecast ===")
    lines.append(f"  Forecast:  {result.id or '(not persisted)'}")
    lines.append(f"  Project:   {result.project_id}")
    lines.append(f"  Site:      {result.site_id}")
    created = result.created_at.isoformat() if result.created_at else "-"
    lines.append(f"  Created:   {created}")
    lines.append(f"  Timeframe: {result.timeframe_months} months")

    lines.append("")
    lines.append("  [PROJECTED METRICS]")
    header = (
        f"    {'Month':<7}  {'Traffic':>10}  {'Low':>10}  {'High':>10}  "
        f"{'CI width':>9}  {'Conv.':>8}  {'Revenue':>12}"
    )
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for point in result.forecast.traffic:
        width = (
            point.confidence.high - point.confidence.low
            if point.confidence is not None else None
        )
        lines.append(
            f"    {point.month:<7}  {_fmt_num(point.value):>10}  "
            f"{_fmt_num(point.lower_bound):>10}  {_fmt_num(point.upper_bound):>10}  "
            f"{_fmt_num(width):>9}  {_fmt_num(point.conversions):>8}  "
            f"{_fmt_num(point.revenue, ',.2f'):>12}"
        )

    roi = result.roi
    lines.append("")
    lines.append("  [ROI]")
    lines.append(f"    Traffic increase:     {_fmt_pct(roi.traffic_increase)}")
    lines.append(f"    Conversion increase:  {_fmt_pct(roi.conversion_increase)}")
    lines.append(f"    Revenue increase:     {_fmt_pct(roi.revenue_increase)}")
    lines.append(f"    ROI:                  {_fmt_pct(roi.roi_percentage)}")
    payback = (
        f"{roi.time_to_positive_roi_months:g} months"
        if roi.time_to_positive_roi_months is not None else "-"
    )
    lines.append(f"    Time to positive ROI: {payback}")
    if roi.cost_benefit is not None:
        cb = roi.cost_benefit
        lines.append(
            f"    Cost / benefit:       ${cb.estimated_cost:,.2f} / "
            f"${cb.estimated_benefit:,.2f} (ratio {cb.ratio:.2f})"
        )

    descriptions = {r.id: r.description for r in result.recommendations}
    plan = result.implementation_plan
    lines.append("")
    lines.append(f"  [IMPLEMENTATION PLAN]  total {plan.total_days} days")
    for number, phase in enumerate(plan.phases, start=1):
        lines.append(
            f"    {number}. {phase.name} ({phase.duration_days}d, "
            f"traffic {_fmt_pct(phase.expected_impact.traffic)}, "
            f"conversions {_fmt_pct(phase.expected_impact.conversions)})"
        )
        for rec_id in phase.recommendations:
            lines.append(f"         - [{rec_id}] {descriptions.get(rec_id, '')}".rstrip())

    if result.assumptions:
        lines.append("")
        lines.append("  [ASSUMPTIONS]")
        for assumption in result.assumptions:
            lines.append(f"    - {assumption}")

    return "\n".join(lines)


# ── Forecast list ─────────────────────────────────────────────────────────────


def format_forecast_list(results: list[ForecastResult], project_id: str) -> str:
    """One row per forecast, in the order given (newest first from the store)."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Forecasts for project {project_id} ===")
    if not results:
        lines.append("  (no forecasts yet; run 'generate' first)")
        return "\n".join(lines)

    header = (
        f"  {'ID':<32}  {'Site':<16}  {'Created':<19}  {'Months':>6}  "
        f"{'Traffic +':>9}  {'ROI':>8}"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for r in results:
        created = r.created_at.strftime("%Y-%m-%d %H:%M:%S") if r.created_at else "-"
        lines.append(
            f"  {(r.id or '-'):<32}  {r.site_id[:16]:<16}  {created:<19}  "
            f"{r.timeframe_months:>6}  {_fmt_pct(r.roi.traffic_increase):>9}  "
            f"{_fmt_pct(r.roi.roi_percentage):>8}"
        )
    return "\n".join(lines)


# ── Variance ──────────────────────────────────────────────────────────────────


def format_variance_report(report: VarianceReport) -> str:
    """Actual vs. forecast traffic per month, with the overall accuracy."""
    actual_by_month: dict[str, MonthlyMetric] = {m.month: m for m in report.actual}
    forecast_by_month = {p.month: p for p in report.forecast}

    lines: list[str] = []
    lines.append("")
    lines.append("=== Actual vs. Forecast ===")
    lines.append(f"  Forecast: {report.forecast_id}")
    lines.append(f"  Months compared: {report.months_compared}")
    lines.append(f"  Accuracy: {report.accuracy:.1f}% of months within confidence bounds")

    if not report.variance:
        lines.append("")
        lines.append("  (no actual metrics in the forecast window yet; run 'import-metrics')")
        return "\n".join(lines)

    lines.append("")
    header = (
        f"    {'Month':<7}  {'Actual':>10}  {'Forecast':>10}  {'Low':>10}  "
        f"{'High':>10}  {'Variance':>9}  {'In bounds':>9}"
    )
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for entry in report.variance:
        actual = actual_by_month.get(entry.month)
        projected = forecast_by_month.get(entry.month)
        lines.append(
            f"    {entry.month:<7}  "
            f"{_fmt_num(actual.traffic if actual else None):>10}  "
            f"{_fmt_num(projected.value if projected else None):>10}  "
            f"{_fmt_num(projected.lower_bound if projected else None):>10}  "
            f"{_fmt_num(projected.upper_bound if projected else None):>10}  "
            f"{_fmt_pct(entry.percentage):>9}  "
            f"{'yes' if entry.within_bounds else 'no':>9}"
        )
    return "\n".join(lines)


def format_site_metrics(site_id: str, metrics: list[MonthlyMetric]) -> str:
    lines: list[str] = ["", f"=== Metrics for site {site_id} ==="]
    if not metrics:
        lines.append("  (no stored metrics)")
        return "\n".join(lines)
    header = f"    {'Month':<7}  {'Traffic':>10}  {'Conv.':>8}  {'Revenue':>12}"
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for m in metrics:
        lines.append(
            f"    {m.month:<7}  {m.traffic:>10,}  {m.conversions:>8,}  "
            f"{_fmt_num(m.revenue, ',.2f'):>12}"
        )
    return "\n".join(lines)
