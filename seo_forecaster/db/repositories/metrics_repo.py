"""
Repository for monthly ``site_metrics``.

Month filters compare ``YYYY-MM`` strings, which order chronologically.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from seo_forecaster.db.repositories.base import BaseRepository
from seo_forecaster.models.metrics import MonthlyMetric

logger = logging.getLogger(__name__)


class SiteMetricsRepository(BaseRepository):
    """Read/write access to ``site_metrics``."""

    def upsert_metrics(self, site_id: str, metrics: list[MonthlyMetric]) -> int:
        """Insert or replace monthly metrics for a site, keyed by month.

        Existing rows for the same ``(site_id, month)`` are updated in place,
        so re-importing a corrected export is safe.

        Args:
            site_id: Target site.
            metrics: Rows to write. Synthetic rows are rejected.

        Returns:
            Number of rows written.

        Raises:
            ValueError: If any row is labelled synthetic.
        """
        if any(m.source != "observed" for m in metrics):
            raise ValueError("Only observed metrics can be stored.")

        self.executemany(
            """
            INSERT INTO site_metrics (site_id, month, traffic, conversions, revenue)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(site_id, month) DO UPDATE SET
                traffic     = excluded.traffic,
                conversions = excluded.conversions,
                revenue     = excluded.revenue,
                updated_at  = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            [(site_id, m.month, m.traffic, m.conversions, m.revenue) for m in metrics],
        )
        logger.debug("Upserted %d metric rows for site=%s", len(metrics), site_id)
        return len(metrics)

    def get_metrics(
        self,
        site_id: str,
        start_month: Optional[str] = None,
        end_month: Optional[str] = None,
    ) -> list[MonthlyMetric]:
        """Fetch a site's metrics in ascending month order.

        Args:
            site_id: Site to read.
            start_month: Inclusive lower bound (``YYYY-MM``), or ``None``.
            end_month: Inclusive upper bound (``YYYY-MM``), or ``None``.
        """
        clauses = ["site_id = ?"]
        params: list[object] = [site_id]
        if start_month is not None:
            clauses.append("month >= ?")
            params.append(start_month)
        if end_month is not None:
            clauses.append("month <= ?")
            params.append(end_month)

        rows = self.fetchall(
            f"""
            SELECT month, traffic, conversions, revenue FROM site_metrics
            WHERE {" AND ".join(clauses)}
            ORDER BY month ASC;
            """,
            tuple(params),
        )
        return [_row_to_metric(r) for r in rows]


def _row_to_metric(row: sqlite3.Row) -> MonthlyMetric:
    return MonthlyMetric(
        month=row["month"],
        traffic=row["traffic"],
        conversions=row["conversions"],
        revenue=row["revenue"],
    )
