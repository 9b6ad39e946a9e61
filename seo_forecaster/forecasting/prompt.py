"""
Forecast request builder: turns a project, scored recommendations and history
into the chat messages sent to the predictive collaborator.

The prompt is a pure function of its inputs: the same inputs always produce
byte-identical messages. It enumerates:

  - project metadata (name, industry, goals, business goals, budget),
  - one line per historical month
    (``- 2024-03: Traffic: 1200, Conversions: 36, Revenue: $4200``),
  - one numbered line per recommendation in priority order
    (``1. [rec-1] Build links ... (Impact: high, Effort: low, Category: links)``),
  - the required reply: a single JSON object with ``projectedMetrics``,
    ``roi``, ``implementationPlan`` and ``assumptions``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from seo_forecaster.models.metrics import HistoricalMetrics, MonthlyMetric
from seo_forecaster.models.project import Project
from seo_forecaster.models.recommendation import ScoredRecommendation
from seo_forecaster.utils.time_utils import shift_month

SYSTEM_PROMPT = (
    "You are an expert SEO forecasting analyst. You produce conservative, "
    "month-by-month traffic, conversion and revenue forecasts with confidence "
    "intervals, and you answer with a single JSON object and nothing else."
)

RESPONSE_SCHEMA = """{
  "projectedMetrics": [
    {
      "month": "YYYY-MM",
      "traffic": number,
      "conversions": number,
      "revenue": number,
      "confidence": {"low": number, "high": number},
      "conversionsConfidence": {"low": number, "high": number},
      "revenueConfidence": {"low": number, "high": number}
    }
  ],
  "roi": {
    "trafficIncrease": number,
    "conversionIncrease": number,
    "revenueIncrease": number,
    "roiPercentage": number,
    "timeToPositiveROI": number,
    "costBenefit": {"estimatedCost": number, "estimatedBenefit": number, "ratio": number}
  },
  "implementationPlan": {
    "phases": [
      {
        "name": "string",
        "duration": number,
        "recommendations": ["recommendation id"],
        "expectedImpact": {"traffic": number, "conversions": number}
      }
    ],
    "totalDuration": number
  },
  "assumptions": ["string"]
}"""


@dataclass(frozen=True)
class ForecastPrompt:
    """Chat messages for one forecast request.

    Attributes:
        system: System instruction.
        user: The full forecast request.
        first_month: First month the collaborator must forecast.
        timeframe_months: Number of months requested.
    """

    system: str
    user: str
    first_month: str
    timeframe_months: int

    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def _format_number(value: float) -> str:
    return f"{value:g}" if isinstance(value, float) else str(value)


def format_history_line(metric: MonthlyMetric) -> str:
    revenue = f"${_format_number(metric.revenue)}" if metric.revenue is not None else "n/a"
    return (
        f"- {metric.month}: Traffic: {metric.traffic}, "
        f"Conversions: {metric.conversions}, Revenue: {revenue}"
    )


def format_recommendation_line(position: int, scored: ScoredRecommendation) -> str:
    rec = scored.recommendation
    details = f"Impact: {rec.impact}, Effort: {rec.effort}"
    if rec.category:
        details += f", Category: {rec.category}"
    return f"{position}. [{rec.id}] {rec.description} ({details})"


def build_forecast_prompt(
    project: Project,
    scored: list[ScoredRecommendation],
    history: HistoricalMetrics,
    timeframe_months: int,
    budget: Optional[float] = None,
    business_goals: Optional[list[str]] = None,
) -> ForecastPrompt:
    """Assemble the forecast request for the predictive collaborator.

    The forecast starts the month after the last historical month.

    Args:
        project: Project metadata.
        scored: Recommendations, already sorted by priority.
        history: Normalized monthly history (observed or synthetic).
        timeframe_months: Number of months to forecast.
        budget: Implementation budget, if any.
        business_goals: Additional business goals, if any.

    Returns:
        A ``ForecastPrompt``; identical inputs give identical output.

    Raises:
        ValueError: If ``history`` is empty.
    """
    if history.last_month is None:
        raise ValueError("Cannot build a forecast prompt without historical metrics.")
    first_month = shift_month(history.last_month, 1)
    last_month = shift_month(first_month, timeframe_months - 1)

    lines: list[str] = [
        "Create a detailed SEO forecast for the following project.",
        "",
        "PROJECT INFORMATION:",
        f"- Name: {project.name}",
        f"- Industry: {project.industry}",
        f"- Goals: {', '.join(project.goals) if project.goals else 'not specified'}",
    ]
    if business_goals:
        lines.append(f"- Business Goals: {', '.join(business_goals)}")
    if budget:
        lines.append(f"- Implementation Budget: ${_format_number(budget)}")
    if project.conversion_value is not None:
        lines.append(f"- Average Conversion Value: ${_format_number(project.conversion_value)}")
    lines.append(f"- Forecast Timeframe: {timeframe_months} months ({first_month} to {last_month})")

    lines += ["", f"HISTORICAL METRICS (Last {len(history)} months):"]
    if history.is_synthetic:
        lines.append(
            "(No stored history for this site: the series below is a synthetic "
            "baseline estimate. Widen confidence intervals accordingly.)"
        )
    lines += [format_history_line(m) for m in history.metrics]

    lines += ["", "RECOMMENDED SEO IMPROVEMENTS (highest priority first):"]
    lines += [format_recommendation_line(i, s) for i, s in enumerate(scored, start=1)]

    lines += [
        "",
        "Based on this information, provide:",
        f"1. Projected traffic, conversions and revenue for each of the {timeframe_months} "
        f"consecutive months from {first_month} to {last_month}, with a confidence "
        "interval (low/high) around the projected traffic.",
        "2. ROI metrics: expected traffic, conversion and revenue increase (%), "
        "ROI percentage, months to positive ROI and cost/benefit if a budget is given.",
        "3. An implementation plan: ordered phases with a duration in days, the "
        "recommendation ids (the bracketed ids above) implemented in each phase, "
        "and the expected traffic/conversion impact (%).",
        "4. The key assumptions behind this forecast.",
        "",
        "Respond with a single JSON object, and nothing else, containing exactly the "
        "keys projectedMetrics, roi, implementationPlan and assumptions, following "
        "this schema:",
        RESPONSE_SCHEMA,
    ]

    return ForecastPrompt(
        system=SYSTEM_PROMPT,
        user="\n".join(lines),
        first_month=first_month,
        timeframe_months=timeframe_months,
    )
