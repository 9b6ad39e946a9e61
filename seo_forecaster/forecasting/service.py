"""
Forecast orchestrator.

``ForecastService`` is the library surface of the engine. One
``generate_forecast`` call is one sequential unit of work:

  1. validate the request and load project/site context
  2. history: caller-supplied, else ``MetricsNormalizer``
  3. assign missing recommendation ids, then score and sort
  4. build the prompt and call the predictive collaborator
  5. strictly validate the reply
  6. derive missing ROI figures, assemble and persist the ``ForecastResult``

Nothing is written until step 6; any failure before it leaves no record.
There is no retry, no cache and no guard against concurrent forecasts for the
same site: two overlapping calls both persist.

Collaborators are injected::

    with get_connection(config.database.db_path) as conn:
        service = ForecastService(
            store=SQLiteStore(conn),
            predictor=build_prediction_client(config.llm),
            config=config.forecast,
            llm_config=config.llm,
        )
        result = service.generate_forecast(request)
"""

from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from seo_forecaster.config import ForecastConfig, LLMConfig
from seo_forecaster.errors import (
    ForecastGenerationError,
    ForecastInputError,
    NotFoundError,
    PredictionServiceError,
)
from seo_forecaster.forecasting.normalizer import MetricsNormalizer
from seo_forecaster.forecasting.ports import ForecastBackend, PredictionClient
from seo_forecaster.forecasting.prompt import build_forecast_prompt
from seo_forecaster.forecasting.roi import derive_roi
from seo_forecaster.forecasting.scorer import assign_recommendation_ids, score_recommendations
from seo_forecaster.forecasting.validator import parse_forecast_response
from seo_forecaster.forecasting.variance import compute_accuracy, compute_variance
from seo_forecaster.models.forecast import ForecastRequest, ForecastResult
from seo_forecaster.models.metrics import HistoricalMetrics, MonthlyMetric
from seo_forecaster.models.variance import VarianceReport
from seo_forecaster.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class ForecastService:
    """Generates, stores and evaluates SEO forecasts.

    Args:
        store: Implements ``ProjectSource``, ``MetricsSource`` and
            ``ForecastStore`` (``SQLiteStore`` in production).
        predictor: ``PredictionClient`` used for the forecast call.
        config: Timeframe and history settings.
        llm_config: Completion budget (temperature, max tokens).
        rng: Randomness for the synthetic baseline; fresh per call if omitted.
        clock: Source of "now" for history windows and ``created_at``.
    """

    def __init__(
        self,
        store: ForecastBackend,
        predictor: PredictionClient,
        config: Optional[ForecastConfig] = None,
        llm_config: Optional[LLMConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.predictor = predictor
        self.config = config or ForecastConfig()
        self.llm_config = llm_config or LLMConfig()
        self._clock = clock
        self.normalizer = MetricsNormalizer(
            source=store,
            history_months=self.config.history_months,
            synthetic_fallback=self.config.synthetic_fallback,
            rng=rng,
            clock=clock,
        )

    # ── Generation ────────────────────────────────────────────────────────────

    def _coerce_request(
        self, request: Union[ForecastRequest, dict[str, Any]]
    ) -> ForecastRequest:
        if isinstance(request, ForecastRequest):
            return request
        try:
            return ForecastRequest.model_validate(request)
        except ValidationError as exc:
            raise ForecastInputError(f"Invalid forecast request: {exc}") from exc

    def _resolve_timeframe(self, request: ForecastRequest) -> int:
        months = request.timeframe_months or self.config.default_timeframe_months
        if months > self.config.max_timeframe_months:
            raise ForecastInputError(
                f"timeframe_months={months} exceeds the maximum of "
                f"{self.config.max_timeframe_months}."
            )
        return months

    def generate_forecast(
        self, request: Union[ForecastRequest, dict[str, Any]]
    ) -> ForecastResult:
        """Run the full forecast pipeline and persist the result.

        Args:
            request: A ``ForecastRequest`` or an equivalent dict.

        Returns:
            The persisted ``ForecastResult`` with its assigned ``id``.

        Raises:
            ForecastInputError: Invalid request, or unknown project/site.
            ForecastGenerationError: The collaborator call failed
                (``stage="prediction"``).
            ForecastParseError: The collaborator reply was rejected
                (``stage="validation"``).
            PersistenceError: The store failed to read or write.
        """
        request = self._coerce_request(request)
        timeframe = self._resolve_timeframe(request)
        logger.info(
            "Forecast starting | project=%s | site=%s | recommendations=%d | months=%d",
            request.project_id, request.site_id, len(request.recommendations), timeframe,
        )

        project = self.store.get_project(request.project_id)
        if project is None:
            raise ForecastInputError(f"Project '{request.project_id}' not found.")
        site = self.store.get_site(request.site_id)
        if site is None:
            raise ForecastInputError(f"Site '{request.site_id}' not found.")
        if site.project_id != project.project_id:
            raise ForecastInputError(
                f"Site '{site.site_id}' does not belong to project '{project.project_id}'."
            )

        if request.historical_data is not None and len(request.historical_data) > 0:
            history = request.historical_data
            logger.debug("Using %d caller-supplied history months", len(history))
        else:
            history = self.normalizer.load_history(site.site_id)

        recommendations = assign_recommendation_ids(request.recommendations)
        scored = score_recommendations(recommendations)
        logger.debug(
            "Scored recommendations: %s",
            ", ".join(f"{s.recommendation.id}={s.priority_score:.2f}" for s in scored),
        )

        prompt = build_forecast_prompt(
            project=project,
            scored=scored,
            history=history,
            timeframe_months=timeframe,
            budget=request.budget,
            business_goals=request.business_goals,
        )

        logger.info("Forecast stage [prediction] | site=%s", site.site_id)
        try:
            reply = self.predictor.complete(
                prompt.messages(),
                temperature=self.llm_config.temperature,
                max_tokens=self.llm_config.max_tokens,
            )
        except PredictionServiceError as exc:
            logger.error("Forecast FAILED at stage [prediction]: %s | site=%s", exc, site.site_id)
            raise ForecastGenerationError(str(exc), stage="prediction") from exc

        logger.info("Forecast stage [validation] | site=%s", site.site_id)
        try:
            payload = parse_forecast_response(
                reply,
                expected_months=timeframe,
                recommendation_ids={r.id for r in recommendations if r.id is not None},
            )
        except ForecastGenerationError as exc:
            logger.error("Forecast FAILED at stage [validation]: %s | site=%s", exc, site.site_id)
            raise

        series = payload.to_series()
        roi = derive_roi(payload.roi, series, history, request.budget)

        result = ForecastResult(
            project_id=project.project_id,
            site_id=site.site_id,
            recommendations=recommendations,
            forecast=series,
            roi=roi,
            assumptions=payload.assumptions,
            implementation_plan=payload.implementation_plan,
            timeframe_months=timeframe,
            created_at=self._clock(),
        )
        forecast_id = self.store.insert_forecast(result)
        logger.info(
            "Forecast persisted | id=%s | project=%s | site=%s | months=%s..%s",
            forecast_id, result.project_id, result.site_id,
            series.months[0], series.months[-1],
        )
        return result.model_copy(update={"id": forecast_id})

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_forecast(self, forecast_id: str) -> ForecastResult:
        """Raises ``NotFoundError`` for an unknown id."""
        result = self.store.get_forecast(forecast_id)
        if result is None:
            raise NotFoundError("forecast", forecast_id)
        return result

    def get_project_forecasts(self, project_id: str) -> list[ForecastResult]:
        """All forecasts of a project, newest first."""
        return self.store.list_project_forecasts(project_id)

    def get_latest_site_forecast(self, site_id: str) -> Optional[ForecastResult]:
        return self.store.get_latest_site_forecast(site_id)

    def delete_forecast(self, forecast_id: str) -> bool:
        """Delete a stored forecast.

        Deleting an unknown id is not an error.

        Returns:
            True if a forecast was removed.
        """
        deleted = self.store.delete_forecast(forecast_id)
        if deleted:
            logger.info("Forecast deleted | id=%s", forecast_id)
        else:
            logger.debug("Forecast delete was a no-op | id=%s", forecast_id)
        return deleted

    def get_site_metrics(
        self,
        site_id: str,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
    ) -> HistoricalMetrics:
        rows: list[MonthlyMetric] = self.store.get_site_metrics(
            site_id, start_month=start_month, end_month=end_month
        )
        return HistoricalMetrics(metrics=rows)

    # ── Variance ──────────────────────────────────────────────────────────────

    def track_actual_vs_forecast(self, forecast_id: str) -> VarianceReport:
        """Compare stored actual traffic against a forecast's confidence bounds.

        Read-only: neither the forecast nor the actuals are modified.

        Raises:
            NotFoundError: If the forecast does not exist.
        """
        forecast = self.get_forecast(forecast_id)
        traffic = forecast.forecast.traffic
        first, last = traffic[0].month, traffic[-1].month

        actuals = self.store.get_site_metrics(
            forecast.site_id, start_month=first, end_month=last
        )
        entries = compute_variance(traffic, actuals)
        accuracy = compute_accuracy(entries)
        logger.info(
            "Variance tracked | id=%s | months=%d | accuracy=%.1f%%",
            forecast_id, len(entries), accuracy,
        )
        return VarianceReport(
            forecast_id=forecast_id,
            forecast=traffic,
            actual=actuals,
            variance=entries,
            accuracy=accuracy,
            months_compared=len(entries),
        )
