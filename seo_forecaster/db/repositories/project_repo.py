"""
Repositories for ``projects`` and ``sites``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from seo_forecaster.db.repositories.base import BaseRepository
from seo_forecaster.models.project import Project, Site

logger = logging.getLogger(__name__)


class ProjectRepository(BaseRepository):
    """Read/write access to the ``projects`` table."""

    def upsert(self, project: Project) -> str:
        """Insert a project, or update its descriptive fields if it exists.

        Returns:
            The ``project_id``.
        """
        self.execute(
            """
            INSERT INTO projects (project_id, name, industry, goals, conversion_value)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(project_id) DO UPDATE SET
                name             = excluded.name,
                industry         = excluded.industry,
                goals            = excluded.goals,
                conversion_value = excluded.conversion_value;
            """,
            (
                project.project_id,
                project.name,
                project.industry,
                self.to_json(project.goals),
                project.conversion_value,
            ),
        )
        return project.project_id

    def get_by_id(self, project_id: str) -> Optional[Project]:
        row = self.fetchone("SELECT * FROM projects WHERE project_id = ?;", (project_id,))
        return _row_to_project(row) if row else None


class SiteRepository(BaseRepository):
    """Read/write access to the ``sites`` table."""

    def upsert(self, site: Site) -> str:
        """Insert a site, or update its project/domain if it exists.

        Raises:
            sqlite3.IntegrityError: If ``site.project_id`` does not exist.
        """
        self.execute(
            """
            INSERT INTO sites (site_id, project_id, domain)
            VALUES (?, ?, ?)
            ON CONFLICT(site_id) DO UPDATE SET
                project_id = excluded.project_id,
                domain     = excluded.domain;
            """,
            (site.site_id, site.project_id, site.domain),
        )
        return site.site_id

    def get_by_id(self, site_id: str) -> Optional[Site]:
        row = self.fetchone("SELECT * FROM sites WHERE site_id = ?;", (site_id,))
        return _row_to_site(row) if row else None

    def list_for_project(self, project_id: str) -> list[Site]:
        rows = self.fetchall(
            "SELECT * FROM sites WHERE project_id = ? ORDER BY site_id;",
            (project_id,),
        )
        return [_row_to_site(r) for r in rows]


# ── Private helpers ────────────────────────────────────────────────────────────

def _row_to_project(row: sqlite3.Row) -> Project:
    return Project(
        project_id=row["project_id"],
        name=row["name"],
        industry=row["industry"],
        goals=BaseRepository.from_json(row["goals"], default=[]),
        conversion_value=row["conversion_value"],
    )


def _row_to_site(row: sqlite3.Row) -> Site:
    return Site(
        site_id=row["site_id"],
        project_id=row["project_id"],
        domain=row["domain"],
    )
