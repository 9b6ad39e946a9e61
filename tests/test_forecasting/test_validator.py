"""
Tests for seo_forecaster/forecasting/validator.py.

What we test
------------
parse_forecast_response():
  - A well-formed reply parses, with or without a Markdown fence or
    surrounding prose.
  - No JSON object, two JSON objects, or an empty reply → ForecastParseError.
  - Missing roi / assumptions / projectedMetrics → ForecastParseError with errors.
  - NaN/Infinity literals, negative revenue, and a malformed object wrapping
    a valid one → ForecastParseError.
  - Month gaps, wrong month count, unknown plan ids, value outside its
    interval → ForecastParseError.

ForecastPayload.to_series():
  - Traffic carries the traffic interval; conversions has none unless given.
  - Revenue series only when every row has revenue.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from seo_forecaster.errors import ForecastGenerationError, ForecastParseError
from seo_forecaster.forecasting.validator import (
    ProjectedRow,
    extract_json_objects,
    parse_forecast_response,
)
from seo_forecaster.models.forecast import ConfidenceInterval, ROIMetrics

IDS = ["backlinks", "buying-guides", "faq-schema"]


@pytest.fixture
def reply(forecast_reply) -> dict:
    return forecast_reply("2024-06", 6, IDS)


class TestParseForecastResponse:
    def test_plain_json(self, reply):
        payload = parse_forecast_response(json.dumps(reply), expected_months=6, recommendation_ids=set(IDS))
        assert payload.months[0] == "2024-06"
        assert len(payload.projected_metrics) == 6
        assert payload.roi.traffic_increase == pytest.approx(25.0)
        assert payload.implementation_plan.total_days == 90
        assert payload.assumptions[0].startswith("Seasonality")

    def test_fenced_json(self, reply):
        text = "```json\n" + json.dumps(reply, indent=2) + "\n```"
        assert parse_forecast_response(text).months[-1] == "2024-11"

    def test_surrounding_prose(self, reply):
        text = "Here is the forecast you asked for:\n" + json.dumps(reply) + "\nGood luck!"
        assert len(parse_forecast_response(text).projected_metrics) == 6

    def test_reasoning_block_is_ignored(self, reply):
        text = "<think>consider {the trend} first</think>\n" + json.dumps(reply)
        assert len(parse_forecast_response(text).projected_metrics) == 6

    def test_no_object(self):
        with pytest.raises(ForecastParseError) as exc_info:
            parse_forecast_response("I cannot produce a forecast for this site.")
        assert exc_info.value.stage == "validation"

    def test_empty_reply(self):
        with pytest.raises(ForecastParseError):
            parse_forecast_response("   ")

    def test_two_objects_rejected(self, reply):
        text = json.dumps(reply) + "\n" + json.dumps(reply)
        with pytest.raises(ForecastParseError, match="exactly one"):
            parse_forecast_response(text)

    def test_missing_roi(self, reply):
        del reply["roi"]
        with pytest.raises(ForecastParseError) as exc_info:
            parse_forecast_response(json.dumps(reply))
        assert any(e["loc"][0] == "roi" for e in exc_info.value.errors)

    def test_missing_assumptions(self, reply):
        del reply["assumptions"]
        with pytest.raises(ForecastParseError):
            parse_forecast_response(json.dumps(reply))

    def test_missing_numeric_field_not_repaired(self, reply):
        del reply["projectedMetrics"][2]["traffic"]
        with pytest.raises(ForecastParseError):
            parse_forecast_response(json.dumps(reply))

    def test_empty_projection(self, reply):
        reply["projectedMetrics"] = []
        with pytest.raises(ForecastParseError):
            parse_forecast_response(json.dumps(reply))

    def test_month_gap(self, reply):
        reply["projectedMetrics"][3]["month"] = "2024-12"
        with pytest.raises(ForecastParseError):
            parse_forecast_response(json.dumps(reply))

    def test_wrong_month_count(self, reply):
        with pytest.raises(ForecastParseError, match="Expected 12"):
            parse_forecast_response(json.dumps(reply), expected_months=12)

    def test_unknown_plan_ids(self, reply):
        reply["implementationPlan"]["phases"][0]["recommendations"] = ["made-up"]
        with pytest.raises(ForecastParseError, match="made-up"):
            parse_forecast_response(json.dumps(reply), recommendation_ids=set(IDS))

    def test_value_outside_interval(self, reply):
        reply["projectedMetrics"][0]["confidence"] = {"low": 2000, "high": 3000}
        with pytest.raises(ForecastParseError):
            parse_forecast_response(json.dumps(reply))

    def test_nan_value_rejected(self, reply):
        reply["projectedMetrics"][1]["conversions"] = float("nan")
        with pytest.raises(ForecastParseError, match="NaN"):
            parse_forecast_response(json.dumps(reply), expected_months=6)

    def test_infinite_roi_rejected(self, reply):
        reply["roi"]["trafficIncrease"] = float("inf")
        with pytest.raises(ForecastParseError, match="Infinity"):
            parse_forecast_response(json.dumps(reply), expected_months=6)

    def test_negative_revenue_rejected(self, reply):
        reply["projectedMetrics"][0]["revenue"] = -10
        with pytest.raises(ForecastParseError) as exc_info:
            parse_forecast_response(json.dumps(reply))
        assert any("revenue" in e["loc"] for e in exc_info.value.errors)

    def test_malformed_outer_object_not_unwrapped(self, reply):
        text = '{"result": ' + json.dumps(reply) + ", }"
        with pytest.raises(ForecastParseError, match="Malformed JSON"):
            parse_forecast_response(text, expected_months=6)

    def test_parse_error_is_generation_error(self):
        with pytest.raises(ForecastGenerationError):
            parse_forecast_response("no json here")


class TestToSeries:
    def test_parallel_series(self, reply):
        series = parse_forecast_response(json.dumps(reply)).to_series()
        assert series.months == [p.month for p in series.conversions]
        first = series.traffic[0]
        assert first.value == pytest.approx(1000)
        assert first.lower_bound == pytest.approx(900)
        assert first.upper_bound == pytest.approx(1100)
        assert series.conversions[0].value == pytest.approx(30)
        assert series.conversions[0].confidence is None
        assert series.revenue is not None
        assert series.revenue[0].value == pytest.approx(3500)

    def test_no_revenue_series_without_revenue(self, forecast_reply):
        reply = forecast_reply("2024-06", 3, IDS, with_revenue=False)
        series = parse_forecast_response(json.dumps(reply)).to_series()
        assert series.revenue is None

    def test_conversions_confidence_carried(self, reply):
        for row in reply["projectedMetrics"]:
            row["conversionsConfidence"] = {"low": row["conversions"] - 5, "high": row["conversions"] + 5}
        series = parse_forecast_response(json.dumps(reply)).to_series()
        assert series.conversions[0].lower_bound == pytest.approx(25)


def test_extract_json_objects_skips_nested():
    text = 'a {"x": {"y": 1}} b {"z": 2}'
    assert extract_json_objects(text) == [{"x": {"y": 1}}, {"z": 2}]


def test_extract_json_objects_stops_at_broken_object():
    with pytest.raises(ForecastParseError):
        extract_json_objects('prefix {"x": {"y": 1}, oops} {"z": 2}')


class TestNonFiniteModels:
    """Models built outside the decoder still refuse NaN and Infinity."""

    def test_roi_rejects_infinity(self):
        with pytest.raises(ValidationError):
            ROIMetrics(traffic_increase=float("inf"), conversion_increase=1.0)

    def test_interval_rejects_nan(self):
        with pytest.raises(ValidationError):
            ConfidenceInterval(low=float("nan"), high=10.0)

    def test_projected_row_rejects_nan(self):
        with pytest.raises(ValidationError):
            ProjectedRow(
                month="2024-06",
                traffic=float("nan"),
                conversions=1,
                confidence={"low": 0, "high": 1},
            )
