"""
Collaborator interfaces consumed by the forecasting engine.

``ForecastService`` never constructs its own database or LLM client; both are
passed in at construction time. ``SQLiteStore`` implements the three storage
protocols and ``ChatCompletionClient`` implements ``PredictionClient``; tests
substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Optional, Protocol

from seo_forecaster.models.forecast import ForecastResult
from seo_forecaster.models.metrics import MonthlyMetric
from seo_forecaster.models.project import Project, Site


class ProjectSource(Protocol):
    def get_project(self, project_id: str) -> Optional[Project]: ...

    def get_site(self, site_id: str) -> Optional[Site]: ...


class MetricsSource(Protocol):
    def get_site_metrics(
        self,
        site_id: str,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
    ) -> list[MonthlyMetric]: ...


class ForecastStore(Protocol):
    def insert_forecast(self, result: ForecastResult) -> str: ...

    def get_forecast(self, forecast_id: str) -> Optional[ForecastResult]: ...

    def list_project_forecasts(self, project_id: str) -> list[ForecastResult]: ...

    def get_latest_site_forecast(self, site_id: str) -> Optional[ForecastResult]: ...

    def delete_forecast(self, forecast_id: str) -> bool: ...


class PredictionClient(Protocol):
    """Opaque text-completion collaborator.

    ``complete`` receives chat messages plus a determinism knob
    (``temperature``) and an output cap (``max_tokens``) and returns raw text
    that is expected, but not guaranteed, to contain one JSON object.
    Failures of the call itself raise ``PredictionServiceError``.
    """

    def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> str: ...


class ForecastBackend(ProjectSource, MetricsSource, ForecastStore, Protocol):
    """Everything ``ForecastService`` reads from and writes to."""
