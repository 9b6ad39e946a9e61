"""
Repository for persisted SEO forecasts (``seo_forecasts``).

Forecast rows are insert-only: there is deliberately no update method.
Listing is newest first; rows created in the same instant fall back to
insertion order (``rowid``) so ordering is stable.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional
from uuid import uuid4

from seo_forecaster.db.repositories.base import BaseRepository
from seo_forecaster.models.forecast import (
    ForecastResult,
    ForecastSeries,
    ImplementationPlan,
    ROIMetrics,
)
from seo_forecaster.models.recommendation import SEORecommendation

logger = logging.getLogger(__name__)


class SEOForecastRepository(BaseRepository):
    """Read/write access to ``seo_forecasts``."""

    def insert(self, result: ForecastResult) -> str:
        """Insert a forecast and return its id.

        A fresh uuid4 hex id is generated when ``result.id`` is ``None``.

        Raises:
            ValueError: If ``result.created_at`` is not set.
            sqlite3.IntegrityError: On duplicate id or unknown project/site.
        """
        if result.created_at is None:
            raise ValueError("ForecastResult.created_at must be set before insertion.")

        forecast_id = result.id or uuid4().hex
        self.execute(
            """
            INSERT INTO seo_forecasts (
                forecast_id, project_id, site_id, recommendations, forecast,
                roi, assumptions, implementation_plan, timeframe_months, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                forecast_id,
                result.project_id,
                result.site_id,
                self.to_json([r.model_dump(mode="json") for r in result.recommendations]),
                self.to_json(result.forecast.model_dump(mode="json")),
                self.to_json(result.roi.model_dump(mode="json")),
                self.to_json(result.assumptions),
                self.to_json(result.implementation_plan.model_dump(mode="json")),
                result.timeframe_months,
                result.created_at.isoformat(),
            ),
        )
        return forecast_id

    def get_by_id(self, forecast_id: str) -> Optional[ForecastResult]:
        row = self.fetchone(
            "SELECT * FROM seo_forecasts WHERE forecast_id = ?;", (forecast_id,)
        )
        return _row_to_forecast(row) if row else None

    def list_by_project(self, project_id: str) -> list[ForecastResult]:
        """All forecasts for a project, newest first."""
        rows = self.fetchall(
            """
            SELECT * FROM seo_forecasts
            WHERE project_id = ?
            ORDER BY created_at DESC, rowid DESC;
            """,
            (project_id,),
        )
        return [_row_to_forecast(r) for r in rows]

    def get_latest_by_site(self, site_id: str) -> Optional[ForecastResult]:
        row = self.fetchone(
            """
            SELECT * FROM seo_forecasts
            WHERE site_id = ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT 1;
            """,
            (site_id,),
        )
        return _row_to_forecast(row) if row else None

    def delete(self, forecast_id: str) -> bool:
        """Delete a forecast. Returns ``False`` when no such row existed."""
        cursor = self.execute(
            "DELETE FROM seo_forecasts WHERE forecast_id = ?;", (forecast_id,)
        )
        return cursor.rowcount > 0


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_forecast(row: sqlite3.Row) -> ForecastResult:
    return ForecastResult(
        id=row["forecast_id"],
        project_id=row["project_id"],
        site_id=row["site_id"],
        recommendations=[
            SEORecommendation.model_validate(r)
            for r in BaseRepository.from_json(row["recommendations"], default=[])
        ],
        forecast=ForecastSeries.model_validate(BaseRepository.from_json(row["forecast"])),
        roi=ROIMetrics.model_validate(BaseRepository.from_json(row["roi"])),
        assumptions=BaseRepository.from_json(row["assumptions"], default=[]),
        implementation_plan=ImplementationPlan.model_validate(
            BaseRepository.from_json(row["implementation_plan"])
        ),
        timeframe_months=row["timeframe_months"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
