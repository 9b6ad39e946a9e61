"""
Forecast response validator.

The predictive collaborator returns free text that should contain exactly one
JSON object. Parsing is strict:

  1. A surrounding Markdown code fence (```json ... ```) is stripped.
  2. The text is scanned for top-level JSON objects. Zero objects, or more
     than one, is a ``ForecastParseError``. So is a ``{`` that starts an
     undecodable object, and any ``NaN``/``Infinity`` literal.
  3. The object is validated against ``ForecastPayload``. Missing or
     malformed fields are a ``ForecastParseError`` carrying the pydantic
     error list. Nothing is repaired or defaulted.
  4. Projected months must be consecutive, match the requested count, and
     every plan phase may only reference known recommendation ids.

A rejected reply never yields a partial forecast.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from seo_forecaster.errors import ForecastParseError
from seo_forecaster.models.forecast import (
    ConfidenceInterval,
    ForecastSeries,
    ImplementationPlan,
    ProjectedMetric,
    ROIMetrics,
)
from seo_forecaster.utils.time_utils import is_consecutive, parse_month

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```[A-Za-z]*\s*\n(.*?)\n?\s*```\s*$", re.DOTALL)
# Reasoning models (e.g. deepseek-r1) prefix their answer with a think block.
_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


class ProjectedRow(BaseModel):
    """One month of the collaborator's ``projectedMetrics`` array."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    month: str
    traffic: float
    conversions: float
    revenue: Optional[float] = None
    confidence: ConfidenceInterval
    conversions_confidence: Optional[ConfidenceInterval] = Field(
        default=None, alias="conversionsConfidence"
    )
    revenue_confidence: Optional[ConfidenceInterval] = Field(
        default=None, alias="revenueConfidence"
    )

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: str) -> str:
        parse_month(v)
        return v

    @field_validator("traffic", "conversions", "revenue")
    @classmethod
    def validate_non_negative(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError(f"must be non-negative, got {v}.")
        return v


class ForecastPayload(BaseModel):
    """The validated structured reply of the predictive collaborator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    projected_metrics: list[ProjectedRow] = Field(alias="projectedMetrics")
    roi: ROIMetrics
    implementation_plan: ImplementationPlan = Field(alias="implementationPlan")
    assumptions: list[str]

    @field_validator("projected_metrics")
    @classmethod
    def validate_rows(cls, v: list[ProjectedRow]) -> list[ProjectedRow]:
        if not v:
            raise ValueError("projectedMetrics must not be empty.")
        months = [row.month for row in v]
        if not is_consecutive(months):
            raise ValueError(
                f"projected months must be consecutive with no gaps or duplicates, got {months}."
            )
        return v

    @property
    def months(self) -> list[str]:
        return [row.month for row in self.projected_metrics]

    def to_series(self) -> ForecastSeries:
        """Split the monthly rows into parallel traffic/conversions/revenue series.

        The revenue series is present only when every row carries revenue.

        Raises:
            ValidationError: If a projected value falls outside its interval.
        """
        rows = self.projected_metrics
        traffic = [
            ProjectedMetric(
                month=r.month,
                value=r.traffic,
                traffic=r.traffic,
                conversions=r.conversions,
                revenue=r.revenue,
                confidence=r.confidence,
            )
            for r in rows
        ]
        conversions = [
            ProjectedMetric(
                month=r.month,
                value=r.conversions,
                traffic=r.traffic,
                conversions=r.conversions,
                revenue=r.revenue,
                confidence=r.conversions_confidence,
            )
            for r in rows
        ]
        revenue = None
        if all(r.revenue is not None for r in rows):
            revenue = [
                ProjectedMetric(
                    month=r.month,
                    value=r.revenue,
                    traffic=r.traffic,
                    conversions=r.conversions,
                    revenue=r.revenue,
                    confidence=r.revenue_confidence,
                )
                for r in rows
            ]
        return ForecastSeries(traffic=traffic, conversions=conversions, revenue=revenue)


def _strip_wrapping(text: str) -> str:
    text = _THINK_RE.sub("", text)
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def _reject_constant(name: str) -> Any:
    raise ForecastParseError(f"Non-finite number {name} in collaborator reply.")


def extract_json_objects(text: str) -> list[dict[str, Any]]:
    """Return every top-level JSON object embedded in ``text``, in order.

    Raises:
        ForecastParseError: If a ``{`` starts an object that does not decode,
            or a value is ``NaN``/``Infinity``. Objects nested inside a
            broken one are never picked up on their own.
    """
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    objects: list[dict[str, Any]] = []
    pos = text.find("{")
    while pos != -1:
        try:
            obj, end = decoder.raw_decode(text, pos)
        except json.JSONDecodeError as exc:
            raise ForecastParseError(
                f"Malformed JSON object at offset {pos} in collaborator reply: {exc.msg}."
            ) from exc
        if isinstance(obj, dict):
            objects.append(obj)
        pos = text.find("{", end)
    return objects


def parse_forecast_response(
    text: str,
    expected_months: Optional[int] = None,
    recommendation_ids: Optional[set[str]] = None,
) -> ForecastPayload:
    """Parse and validate the collaborator's reply.

    Args:
        text: Raw completion text.
        expected_months: Required number of projected months, if known.
        recommendation_ids: Ids plan phases may reference, if known.

    Returns:
        The validated ``ForecastPayload``.

    Raises:
        ForecastParseError: If the reply does not contain exactly one valid
            forecast object.
    """
    if not text or not text.strip():
        raise ForecastParseError("Collaborator reply is empty.")

    objects = extract_json_objects(_strip_wrapping(text))
    if not objects:
        raise ForecastParseError("No JSON object found in collaborator reply.")
    if len(objects) > 1:
        raise ForecastParseError(
            f"Expected exactly one JSON object in collaborator reply, found {len(objects)}."
        )

    try:
        payload = ForecastPayload.model_validate(objects[0])
        # Interval checks run here so they surface as parse errors too.
        payload.to_series()
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        logger.warning("Collaborator reply failed schema validation: %d error(s)", len(errors))
        raise ForecastParseError(
            f"Collaborator reply failed schema validation ({len(errors)} error(s)).",
            errors=errors,
        ) from exc

    if expected_months is not None and len(payload.projected_metrics) != expected_months:
        raise ForecastParseError(
            f"Expected {expected_months} projected months, got {len(payload.projected_metrics)}."
        )

    if recommendation_ids is not None:
        unknown = sorted(
            {rid for rid in payload.implementation_plan.recommendation_ids}
            - set(recommendation_ids)
        )
        if unknown:
            raise ForecastParseError(
                f"Implementation plan references unknown recommendation ids: {unknown}.",
                errors=[f"unknown recommendation id: {rid}" for rid in unknown],
            )

    return payload
