"""
SQLite-backed implementation of the forecasting storage ports.

``SQLiteStore`` composes the repositories over a single connection and
converts ``sqlite3.Error`` into ``PersistenceError`` tagged with the failed
operation, so callers can tell a storage fault from a bad LLM reply.

Usage::

    with get_connection(config.database.db_path) as conn:
        service = ForecastService(store=SQLiteStore(conn), predictor=client)
        result = service.generate_forecast(request)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from seo_forecaster.db.repositories.forecast_repo import SEOForecastRepository
from seo_forecaster.db.repositories.metrics_repo import SiteMetricsRepository
from seo_forecaster.db.repositories.project_repo import ProjectRepository, SiteRepository
from seo_forecaster.errors import PersistenceError
from seo_forecaster.models.forecast import ForecastResult
from seo_forecaster.models.metrics import MonthlyMetric
from seo_forecaster.models.project import Project, Site

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        logger.error("Store operation %s failed: %s", operation, exc)
        raise PersistenceError(operation, str(exc)) from exc


class SQLiteStore:
    """Project, metrics and forecast storage over one SQLite connection.

    Writes are committed immediately so a persisted forecast is durable as
    soon as ``insert_forecast`` returns.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.projects = ProjectRepository(conn)
        self.sites = SiteRepository(conn)
        self.metrics = SiteMetricsRepository(conn)
        self.forecasts = SEOForecastRepository(conn)

    # ── Projects / sites ──────────────────────────────────────────────────────

    def save_project(self, project: Project) -> str:
        with _translate_errors("save_project"):
            project_id = self.projects.upsert(project)
            self.conn.commit()
        return project_id

    def save_site(self, site: Site) -> str:
        with _translate_errors("save_site"):
            site_id = self.sites.upsert(site)
            self.conn.commit()
        return site_id

    def get_project(self, project_id: str) -> Optional[Project]:
        with _translate_errors("get_project"):
            return self.projects.get_by_id(project_id)

    def get_site(self, site_id: str) -> Optional[Site]:
        with _translate_errors("get_site"):
            return self.sites.get_by_id(site_id)

    # ── Metrics ───────────────────────────────────────────────────────────────

    def save_site_metrics(self, site_id: str, metrics: list[MonthlyMetric]) -> int:
        with _translate_errors("save_site_metrics"):
            count = self.metrics.upsert_metrics(site_id, metrics)
            self.conn.commit()
        return count

    def get_site_metrics(
        self,
        site_id: str,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
    ) -> list[MonthlyMetric]:
        with _translate_errors("get_site_metrics"):
            return self.metrics.get_metrics(site_id, start_month, end_month)

    # ── Forecasts ─────────────────────────────────────────────────────────────

    def insert_forecast(self, result: ForecastResult) -> str:
        with _translate_errors("insert_forecast"):
            forecast_id = self.forecasts.insert(result)
            self.conn.commit()
        return forecast_id

    def get_forecast(self, forecast_id: str) -> Optional[ForecastResult]:
        with _translate_errors("get_forecast"):
            return self.forecasts.get_by_id(forecast_id)

    def list_project_forecasts(self, project_id: str) -> list[ForecastResult]:
        with _translate_errors("list_project_forecasts"):
            return self.forecasts.list_by_project(project_id)

    def get_latest_site_forecast(self, site_id: str) -> Optional[ForecastResult]:
        with _translate_errors("get_latest_site_forecast"):
            return self.forecasts.get_latest_by_site(site_id)

    def delete_forecast(self, forecast_id: str) -> bool:
        with _translate_errors("delete_forecast"):
            deleted = self.forecasts.delete(forecast_id)
            self.conn.commit()
        return deleted
