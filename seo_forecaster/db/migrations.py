"""
Incremental schema changes for databases created by ``apply_schema()``.

Each ``Migration`` is a versioned block of SQL. ``run_migrations()`` records
applied versions in ``schema_versions`` and runs the pending ones in tuple
order. There are no down migrations.

Adding a change: append a ``Migration`` to ``MIGRATIONS`` with the next
``NNNN_`` version id. Statements must be idempotent (``IF [NOT] EXISTS``):
``init-db`` applies the base schema first and then every migration, and a
migration interrupted before it is recorded runs again.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version_id: str
    description: str
    sql: str


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version_id="0001_forecast_recency_indexes",
        description="Index (project_id, created_at) and (site_id, created_at) for newest-first reads",
        sql="""
            CREATE INDEX IF NOT EXISTS idx_seo_forecasts_project_created
                ON seo_forecasts(project_id, created_at DESC);
            CREATE INDEX IF NOT EXISTS idx_seo_forecasts_site_created
                ON seo_forecasts(site_id, created_at DESC);
        """,
    ),
)


def applied_versions(conn: sqlite3.Connection) -> set[str]:
    """Version ids already recorded; creates the tracking table on first use."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_versions (
            version_id  TEXT PRIMARY KEY,
            description TEXT,
            applied_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        );
        """
    )
    return {row[0] for row in conn.execute("SELECT version_id FROM schema_versions;")}


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply every pending migration.

    Args:
        conn: Open connection on a database with the base schema applied.

    Returns:
        Number of migrations applied by this call (0 when up to date).

    Raises:
        sqlite3.Error: A migration failed; later migrations are not attempted.
    """
    done = applied_versions(conn)
    conn.commit()
    pending = [m for m in MIGRATIONS if m.version_id not in done]

    for migration in pending:
        logger.info("Migration %s | %s", migration.version_id, migration.description)
        try:
            conn.executescript(migration.sql)
            conn.execute(
                "INSERT INTO schema_versions(version_id, description) VALUES (?, ?);",
                (migration.version_id, migration.description),
            )
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Migration %s FAILED: %s", migration.version_id, exc)
            raise

    if pending:
        logger.info("Schema up to date | applied=%d", len(pending))
    return len(pending)
