"""
SQLite schema DDL.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Table creation order respects foreign key dependencies:
  1. projects       (no FKs)
  2. sites          (→ projects)
  3. site_metrics   (→ sites)      one row per (site_id, month)
  4. seo_forecasts  (→ projects, sites)

``seo_forecasts`` stores the nested forecast parts as JSON text columns. Rows
are written once and never updated.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_PROJECTS = """
CREATE TABLE IF NOT EXISTS projects (
    project_id        TEXT    PRIMARY KEY,
    name              TEXT    NOT NULL,
    industry          TEXT    NOT NULL DEFAULT 'unspecified',
    goals             TEXT    NOT NULL DEFAULT '[]',
    conversion_value  REAL,
    created_at        TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_SITES = """
CREATE TABLE IF NOT EXISTS sites (
    site_id     TEXT    PRIMARY KEY,
    project_id  TEXT    NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE,
    domain      TEXT    NOT NULL,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_SITE_METRICS = """
CREATE TABLE IF NOT EXISTS site_metrics (
    metric_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    site_id      TEXT    NOT NULL REFERENCES sites(site_id) ON DELETE CASCADE,
    month        TEXT    NOT NULL,
    traffic      INTEGER NOT NULL,
    conversions  INTEGER NOT NULL,
    revenue      REAL,
    created_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    UNIQUE (site_id, month)
);
"""

_DDL_SITE_METRICS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_site_metrics_site_month
    ON site_metrics(site_id, month);
"""

_DDL_SEO_FORECASTS = """
CREATE TABLE IF NOT EXISTS seo_forecasts (
    forecast_id          TEXT    PRIMARY KEY,
    project_id           TEXT    NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE,
    site_id              TEXT    NOT NULL REFERENCES sites(site_id) ON DELETE CASCADE,
    recommendations      TEXT    NOT NULL,
    forecast             TEXT    NOT NULL,
    roi                  TEXT    NOT NULL,
    assumptions          TEXT    NOT NULL,
    implementation_plan  TEXT    NOT NULL,
    timeframe_months     INTEGER NOT NULL,
    created_at           TEXT    NOT NULL
);
"""

_DDL_SEO_FORECASTS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_seo_forecasts_project_id
    ON seo_forecasts(project_id);
CREATE INDEX IF NOT EXISTS idx_seo_forecasts_site_id
    ON seo_forecasts(site_id);
"""

# ── Ordered list of all DDL to apply ──────────────────────────────────────────

_ALL_DDL: list[str] = [
    _DDL_PROJECTS,
    _DDL_SITES,
    _DDL_SITE_METRICS,
    _DDL_SITE_METRICS_INDEXES,
    _DDL_SEO_FORECASTS,
    _DDL_SEO_FORECASTS_INDEXES,
]

ALL_TABLE_NAMES: list[str] = [
    "projects",
    "sites",
    "site_metrics",
    "seo_forecasts",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes (idempotent).

    Args:
        conn: An open SQLite connection.
    """
    for ddl in _ALL_DDL:
        conn.executescript(ddl)
    conn.commit()
    logger.debug("Schema applied: %d tables verified.", len(ALL_TABLE_NAMES))
