"""
Project and site context.

A project groups one or more sites (crawled domains). The forecast prompt is
built from the project's name, industry and goals; forecasts and metrics are
keyed by site.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Project(BaseModel):
    """An SEO project.

    Attributes:
        project_id: Primary key (caller-assigned string).
        name: Display name.
        industry: Industry label used to frame the forecast.
        goals: Free-text project goals.
        conversion_value: Average value of one conversion, if known.
    """

    model_config = ConfigDict(frozen=True)

    project_id: str
    name: str
    industry: str = "unspecified"
    goals: list[str] = []
    conversion_value: Optional[float] = None

    @field_validator("project_id", "name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()

    @field_validator("conversion_value")
    @classmethod
    def validate_conversion_value(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("conversion_value must be non-negative.")
        return v


class Site(BaseModel):
    """A site (domain) belonging to a project."""

    model_config = ConfigDict(frozen=True)

    site_id: str
    project_id: str
    domain: str

    @field_validator("site_id", "project_id", "domain")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()
